from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest
import yaml

import json_toolbox.core.services.metrics_service as metrics
from json_toolbox.core.common.exceptions import ConversionError, JSONParsingError
from json_toolbox.core.services.json_conversion_service import (
    XML_DECLARATION,
    JsonConversionService,
    item_tag,
    xml_name,
)


class TestToYaml:
    def test_block_style_in_document_order(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        text = '{"name": "x", "tags": ["a", "b"], "n": null}'

        assert json_conversion_service.to_yaml(text) == (
            "name: x\ntags:\n- a\n- b\nn: null\n"
        )

    def test_nested_objects(self, json_conversion_service: JsonConversionService) -> None:
        assert json_conversion_service.to_yaml('{"a": {"b": 1, "c": true}}') == (
            "a:\n  b: 1\n  c: true\n"
        )

    def test_scalar_document_has_no_end_marker(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        assert json_conversion_service.to_yaml("42") == "42\n"

    def test_quotes_strings_that_look_like_numbers(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        rendered = json_conversion_service.to_yaml('{"v": "1"}')

        assert yaml.safe_load(rendered) == {"v": "1"}

    def test_keeps_unicode(self, json_conversion_service: JsonConversionService) -> None:
        assert json_conversion_service.to_yaml('{"name": "Zoë"}') == "name: Zoë\n"

    def test_invalid_input(self, json_conversion_service: JsonConversionService) -> None:
        with pytest.raises(JSONParsingError) as exc_info:
            json_conversion_service.to_yaml("{a: 1}")

        assert exc_info.value.message.startswith("YAML conversion error:")
        assert exc_info.value.details["stage"] == "to_yaml"

    def test_records_success_metric(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        json_conversion_service.to_yaml("[]")

        assert metrics.get("conversion.yaml.success") == 1


class TestToXml:
    def test_object_document(self, json_conversion_service: JsonConversionService) -> None:
        text = (
            '{"name": "x", "tags": ["a", "b"], "n": null, "ok": true,'
            ' "meta": {"k": 1.5}}'
        )

        assert json_conversion_service.to_xml(text) == (
            XML_DECLARATION
            + "\n"
            + "<root>\n"
            + "  <name>x</name>\n"
            + "  <tag>a</tag>\n"
            + "  <tag>b</tag>\n"
            + "  <n />\n"
            + "  <ok>true</ok>\n"
            + "  <meta>\n"
            + "    <k>1.5</k>\n"
            + "  </meta>\n"
            + "</root>"
        )

    def test_array_document(self, json_conversion_service: JsonConversionService) -> None:
        assert json_conversion_service.to_xml('[1, {"a": 2}]') == (
            XML_DECLARATION
            + "\n<root>\n  <item>1</item>\n  <item>\n    <a>2</a>\n  </item>\n</root>"
        )

    def test_scalar_document(self, json_conversion_service: JsonConversionService) -> None:
        assert json_conversion_service.to_xml("5") == XML_DECLARATION + "\n<root>5</root>"

    def test_custom_root(self) -> None:
        service = JsonConversionService(xml_root="doc")

        assert service.to_xml('{"a": 1}').endswith("<doc>\n  <a>1</a>\n</doc>")

    def test_empty_containers(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        root = ET.fromstring(
            json_conversion_service.to_xml('{"data": [], "obj": {}}').split("\n", 1)[1]
        )

        assert [child.tag for child in root] == ["data", "obj"]
        assert all(len(child) == 0 and child.text is None for child in root)

    def test_items_of_key_without_plural_suffix(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        assert "<data_item>1</data_item>" in json_conversion_service.to_xml(
            '{"data": [1]}'
        )

    def test_escapes_text(self, json_conversion_service: JsonConversionService) -> None:
        assert "<a>&lt;b&gt;&amp;</a>" in json_conversion_service.to_xml(
            '{"a": "<b>&"}'
        )

    def test_sanitizes_invalid_names(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        xml = json_conversion_service.to_xml(
            '{"2x": 1, "@attConsentStatus": 2, "a b": 3}'
        )

        assert "<_2x>1</_2x>" in xml
        assert "<_attConsentStatus>2</_attConsentStatus>" in xml
        assert "<a_b>3</a_b>" in xml

    def test_output_is_well_formed(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        xml = json_conversion_service.to_xml(
            '{"users": [{"name": "Ann", "roles": ["admin"]}, {"name": "Bo"}]}'
        )

        root = ET.fromstring(xml.split("\n", 1)[1])
        assert [user.findtext("name") for user in root.findall("user")] == [
            "Ann",
            "Bo",
        ]
        assert root.find("user/role").text == "admin"

    def test_invalid_input(self, json_conversion_service: JsonConversionService) -> None:
        with pytest.raises(JSONParsingError) as exc_info:
            json_conversion_service.to_xml("[1,,2]")

        assert exc_info.value.message.startswith("XML conversion error:")

    def test_records_success_metric(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        json_conversion_service.to_xml("{}")

        assert metrics.get("conversion.xml.success") == 1

    def test_rejects_control_characters(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        with pytest.raises(ConversionError) as exc_info:
            json_conversion_service.to_xml('{"a": "x\\u0001y"}')

        error = exc_info.value
        assert "U+0001" in error.message
        assert error.details == {"stage": "to_xml", "key": "a", "position": 1}
        assert metrics.get("conversion.xml.failure") == 1

    def test_rejects_control_character_in_scalar_document(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        with pytest.raises(ConversionError) as exc_info:
            json_conversion_service.to_xml('"\\u001b[0m"')

        assert exc_info.value.details["key"] == "root"

    def test_allows_tab_and_newline(
        self, json_conversion_service: JsonConversionService
    ) -> None:
        xml = json_conversion_service.to_xml('{"a": "x\\ty\\nz"}')

        root = ET.fromstring(xml.split("\n", 1)[1])
        assert root.findtext("a") == "x\ty\nz"

    def test_recursion_while_rendering(
        self,
        json_conversion_service: JsonConversionService,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _too_deep(*args: object) -> None:
            raise RecursionError("maximum recursion depth exceeded")

        monkeypatch.setattr(JsonConversionService, "_append", _too_deep)

        with pytest.raises(ConversionError) as exc_info:
            json_conversion_service.to_xml('{"a": 1}')

        assert exc_info.value.message == (
            "XML conversion error: Document nested too deeply"
        )
        assert metrics.get("conversion.xml.failure") == 1


@pytest.mark.parametrize(
    ("key", "expected"),
    [("tags", "tag"), ("users", "user"), ("data", "data_item"), ("s", "s_item")],
)
def test_item_tag(key: str, expected: str) -> None:
    assert item_tag(key) == expected


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("name", "name"),
        ("a-b.c", "a-b.c"),
        ("_x", "_x"),
        ("2x", "_2x"),
        ("a b", "a_b"),
        ("", "_"),
    ],
)
def test_xml_name(key: str, expected: str) -> None:
    assert xml_name(key) == expected
