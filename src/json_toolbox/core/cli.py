"""
Command line front end for the JSON toolbox.

Each subcommand reads a document from a file or stdin, runs one toolbox
operation and writes the result to stdout or ``--output``.
"""

import argparse
import json
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

from dotenv import load_dotenv

import json_toolbox.core.services.metrics_service as metrics
from json_toolbox.core.common.exceptions import ConfigurationError, ToolboxError
from json_toolbox.core.common.logging_utils import (
    LogContext,
    configure_logging,
    get_logger,
)
from json_toolbox.core.config.app_config import LogLevel, ToolboxConfig, load_config
from json_toolbox.core.services.json_conversion_service import JsonConversionService
from json_toolbox.core.services.json_format_service import JsonFormatService
from json_toolbox.core.services.json_repair_service import JsonRepairService

STDIN_MARKER = "-"

COMMANDS: dict[str, str] = {
    "repair": "Repair near-JSON text into valid JSON",
    "validate": "Check that the input is valid JSON",
    "format": "Pretty-print JSON",
    "minify": "Remove insignificant whitespace",
    "yaml": "Convert JSON to YAML",
    "xml": "Convert JSON to XML",
    "extract": "Pretty-print JSON stored as a string inside a field",
    "stats": "Report byte size and key count",
}


def build_cli_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="json-toolbox", description="Repair, format and convert JSON documents"
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        metavar="FILE",
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=[level.value for level in LogLevel],
        help="Override the configured log level",
    )
    parser.add_argument(
        "--indent",
        type=int,
        help="Indentation used by pretty-printing commands",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Write the result to FILE instead of stdout",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        sub.add_argument(
            "input",
            nargs="?",
            default=STDIN_MARKER,
            help="Input file (default: read stdin)",
        )
        if name == "extract":
            sub.add_argument(
                "--field",
                dest="nested_field",
                help="Field holding the escaped JSON (default: request_body)",
            )
        elif name == "xml":
            sub.add_argument("--root", dest="xml_root", help="Root element name")

    return parser


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_cli_parser().parse_args(argv)


def apply_cli_args(
    args: argparse.Namespace, environ: Mapping[str, str] | None = None
) -> ToolboxConfig:
    """Load configuration and apply CLI overrides on top of it."""
    cfg = load_config(args.config_file, environ=environ)

    updates: dict[str, object] = {}
    if args.indent is not None:
        updates["indent"] = args.indent
    if getattr(args, "nested_field", None):
        updates["nested_field"] = args.nested_field
    if getattr(args, "xml_root", None):
        updates["xml_root"] = args.xml_root

    try:
        if updates:
            cfg = ToolboxConfig.model_validate({**cfg.model_dump(), **updates})
        if args.log_level:
            cfg.logging.level = LogLevel(args.log_level)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid command line option: {exc}") from exc
    return cfg


def _read_input(source: str) -> str:
    if source == STDIN_MARKER:
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _write_output(text: str, destination: str | None) -> None:
    if not text.endswith("\n"):
        text += "\n"
    if destination:
        Path(destination).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def build_handlers(config: ToolboxConfig) -> dict[str, Callable[[str], str]]:
    """Map each subcommand to a ``text -> text`` operation."""
    repairer = JsonRepairService(config.repair)
    formatter = JsonFormatService(
        indent=config.indent, ensure_ascii=config.ensure_ascii
    )
    converter = JsonConversionService(
        xml_root=config.xml_root, allow_unicode=not config.ensure_ascii
    )

    def validate(text: str) -> str:
        formatter.validate(text)
        return "valid"

    def stats(text: str) -> str:
        result = formatter.stats(text)
        return json.dumps(
            {"size_bytes": result.size_bytes, "key_count": result.key_count}
        )

    return {
        "repair": repairer.repair,
        "validate": validate,
        "format": formatter.format,
        "minify": formatter.minify,
        "yaml": converter.to_yaml,
        "xml": converter.to_xml,
        "extract": lambda text: formatter.extract_nested(text, config.nested_field),
        "stats": stats,
    }


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    load_dotenv()
    args = parse_cli_args(argv)

    try:
        config = apply_cli_args(args)
    except ConfigurationError as e:
        sys.stderr.write(f"ERROR: {e.message}\n")
        return 1

    configure_logging(config.logging)
    logger = get_logger(__name__)

    with LogContext(logger, command=args.command, source=args.input) as log:
        try:
            text = _read_input(args.input)
        except (OSError, UnicodeDecodeError) as e:
            log.error("Could not read input", error=str(e))
            sys.stderr.write(f"ERROR: Could not read input: {e}\n")
            return 1

        handler = build_handlers(config)[args.command]
        try:
            result = handler(text)
        except ToolboxError as e:
            log.warning("Command failed", kind=e.kind, error=e.message)
            sys.stderr.write(f"ERROR: {e.message}\n")
            return 1

        log.debug("Command finished", output_chars=len(result))
        if args.command == "repair":
            log.debug("Repair outcome", paths=metrics.repair_summary())
        try:
            _write_output(result, args.output)
        except OSError as e:
            log.error("Could not write output", error=str(e))
            sys.stderr.write(f"ERROR: Could not write output: {e}\n")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
