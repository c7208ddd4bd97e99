import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from json_toolbox.core.cli import apply_cli_args, main, parse_cli_args
from json_toolbox.core.config.app_config import LogLevel, ToolboxConfig


@pytest.fixture(autouse=True)
def _cli_environment(isolated_env: Path, restore_logging) -> Path:
    return isolated_env


def _input_file(tmp_path: Path, content: str, name: str = "input.json") -> str:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_repair_from_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _input_file(tmp_path, "{a: 1,}")

    assert main(["repair", source]) == 0
    assert capsys.readouterr().out == '{"a": 1}\n'


def test_repair_from_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("[1,2,]"))

    assert main(["repair"]) == 0
    assert capsys.readouterr().out == "[1,2]\n"


def test_validate(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validate", _input_file(tmp_path, '{"a": 1}')]) == 0
    assert capsys.readouterr().out == "valid\n"


def test_validate_invalid_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["validate", _input_file(tmp_path, "{a: 1}")]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "ERROR: Invalid JSON:" in captured.err


def test_format_with_indent(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _input_file(tmp_path, '{"a":[1]}')

    assert main(["--indent", "4", "format", source]) == 0
    assert capsys.readouterr().out == '{\n    "a": [\n        1\n    ]\n}\n'


def test_minify_to_output_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _input_file(tmp_path, '{\n  "a": 1\n}')
    target = tmp_path / "out.json"

    assert main(["-o", str(target), "minify", source]) == 0
    assert target.read_text(encoding="utf-8") == '{"a":1}\n'
    assert capsys.readouterr().out == ""


def test_yaml(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _input_file(tmp_path, '{"tags": ["a"]}')

    assert main(["yaml", source]) == 0
    assert capsys.readouterr().out == "tags:\n- a\n"


def test_xml_with_custom_root(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _input_file(tmp_path, '{"a": 1}')

    assert main(["xml", "--root", "doc", source]) == 0
    assert capsys.readouterr().out.endswith("<doc>\n  <a>1</a>\n</doc>\n")


def test_extract_with_custom_field(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _input_file(tmp_path, json.dumps({"payload": '{"b":2}'}))

    assert main(["extract", "--field", "payload", source]) == 0
    assert capsys.readouterr().out == '{\n  "b": 2\n}\n'


def test_extract_missing_field(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _input_file(tmp_path, '{"payload": 1}')

    assert main(["extract", source]) == 1
    assert (
        "ERROR: Field 'request_body' not found or not a string"
        in capsys.readouterr().err
    )


def test_stats(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _input_file(tmp_path, '{"a": {"b": 1}}')

    assert main(["stats", source]) == 0
    assert json.loads(capsys.readouterr().out) == {"size_bytes": 15, "key_count": 2}


def test_unrepairable_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["repair", _input_file(tmp_path, "{{{")]) == 1
    assert "ERROR: Unable to auto-fix JSON" in capsys.readouterr().err


def test_empty_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["repair", _input_file(tmp_path, "   ")]) == 1
    assert "ERROR: Empty JSON string" in capsys.readouterr().err


def test_missing_input_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["repair", str(tmp_path / "absent.json")]) == 1
    assert "ERROR: Could not read input" in capsys.readouterr().err


def test_input_file_not_utf8(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "latin1.json"
    source.write_bytes(b"\xff\xfe{")

    assert main(["repair", str(source)]) == 1
    assert "ERROR: Could not read input" in capsys.readouterr().err


def test_invalid_config_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = _input_file(tmp_path, "{}", name="toolbox.json")
    source = _input_file(tmp_path, "[1]")

    assert main(["--config", config, "repair", source]) == 1
    assert "ERROR: Unsupported configuration file format" in capsys.readouterr().err


def test_invalid_indent_option(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--indent", "12", "format", _input_file(tmp_path, "[1]")]) == 1
    assert "ERROR: Invalid command line option" in capsys.readouterr().err


def test_fallback_can_be_disabled_from_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("JSON_TOOLBOX_AGGRESSIVE_FALLBACK", "false")

    assert main(["repair", _input_file(tmp_path, '"a": 1')]) == 1
    assert "ERROR: Unable to auto-fix JSON" in capsys.readouterr().err


def test_subcommand_is_required() -> None:
    with pytest.raises(SystemExit) as exc_info:
        parse_cli_args([])

    assert exc_info.value.code == 2


def test_log_level_is_case_insensitive() -> None:
    args = parse_cli_args(["--log-level", "debug", "repair"])

    assert args.log_level == "DEBUG"
    assert args.input == "-"


def test_apply_cli_args_overrides_config() -> None:
    args = parse_cli_args(["--indent", "3", "--log-level", "info", "xml", "--root", "doc"])

    with patch("json_toolbox.core.cli.load_config", return_value=ToolboxConfig()):
        config = apply_cli_args(args)

    assert config.indent == 3
    assert config.xml_root == "doc"
    assert config.logging.level is LogLevel.INFO


def test_apply_cli_args_reads_environment() -> None:
    args = parse_cli_args(["extract"])

    config = apply_cli_args(args, environ={"JSON_TOOLBOX_NESTED_FIELD": "payload"})

    assert config.nested_field == "payload"
