from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from typing import Any

import yaml

import json_toolbox.core.services.metrics_service as metrics
from json_toolbox.core.common.exceptions import ConversionError
from json_toolbox.core.common.json_io import NESTED_TOO_DEEPLY, parse_json

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
TOP_LEVEL_ITEM_TAG = "item"

_YAML_DOCUMENT_END = "\n...\n"
_INVALID_NAME_CHARS = re.compile(r"[^\w.\-]")
_NAME_START = re.compile(r"[A-Za-z_]")
# Characters outside the XML 1.0 Char production
_XML_ILLEGAL_CHARS = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]"
)


def item_tag(key: str) -> str:
    """Tag used for the items of an array stored under ``key``.

    A trailing ``s`` is dropped (``tags`` -> ``tag``); keys without one get an
    ``_item`` suffix. This is a naive heuristic, not real singularization.
    """
    if len(key) > 1 and key.endswith("s"):
        return key[:-1]
    return f"{key}_item"


def xml_name(key: str) -> str:
    """Return ``key`` as an XML element name.

    Keys that are already valid names are used unchanged. Other characters
    are replaced with ``_`` and a leading ``_`` is added when the first
    character cannot start a name.
    """
    name = _INVALID_NAME_CHARS.sub("_", key)
    if not name or not _NAME_START.match(name):
        name = "_" + name
    return name


def _scalar_text(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        # bool, int and float render exactly as JSON spells them
        return json.dumps(value)
    match = _XML_ILLEGAL_CHARS.search(value)
    if match:
        raise ConversionError(
            message=(
                f"XML conversion error: value of '{key}' contains "
                f"U+{ord(match.group()):04X}, which XML 1.0 does not allow"
            ),
            details={"stage": "to_xml", "key": key, "position": match.start()},
        )
    return value


class JsonConversionService:
    """Converts JSON documents to YAML and XML."""

    def __init__(self, xml_root: str = "root", allow_unicode: bool = True) -> None:
        self._xml_root = xml_root
        self._allow_unicode = allow_unicode

    def to_yaml(self, text: str) -> str:
        value = parse_json(text, stage="to_yaml", error_prefix="YAML conversion error")
        try:
            rendered = yaml.safe_dump(
                value,
                sort_keys=False,
                allow_unicode=self._allow_unicode,
                default_flow_style=False,
            )
        except (yaml.YAMLError, RecursionError) as exc:
            metrics.record_conversion("yaml", succeeded=False)
            raise ConversionError(
                message=f"YAML conversion error: {_describe(exc)}",
                details={"stage": "to_yaml"},
            ) from exc
        if rendered.endswith(_YAML_DOCUMENT_END):
            rendered = rendered.removesuffix("...\n")
        metrics.record_conversion("yaml", succeeded=True)
        return rendered

    def to_xml(self, text: str) -> str:
        """
        Render a JSON document as XML.

        Object keys become element names. Array items are flattened into
        repeated sibling elements named by :func:`item_tag`. ``null`` and
        empty containers become empty elements.

        Raises:
            JSONParsingError: If the text is not valid JSON
            ConversionError: If a string value holds characters XML cannot
                represent, or the document is nested too deeply to render
        """
        value = parse_json(text, stage="to_xml", error_prefix="XML conversion error")
        try:
            body = self._render_xml(value)
        except ConversionError:
            metrics.record_conversion("xml", succeeded=False)
            raise
        except RecursionError as exc:
            metrics.record_conversion("xml", succeeded=False)
            raise ConversionError(
                message=f"XML conversion error: {NESTED_TOO_DEEPLY}",
                details={"stage": "to_xml"},
            ) from exc
        metrics.record_conversion("xml", succeeded=True)
        return f"{XML_DECLARATION}\n{body}"

    def _render_xml(self, value: Any) -> str:
        root = ET.Element(xml_name(self._xml_root))
        if isinstance(value, dict):
            for key, item in value.items():
                self._append(root, key, item)
        elif isinstance(value, list):
            for item in value:
                self._append(root, TOP_LEVEL_ITEM_TAG, item)
        else:
            root.text = _scalar_text(value, self._xml_root)

        ET.indent(root, space="  ")
        return ET.tostring(root, encoding="unicode")

    def _append(self, parent: ET.Element, key: str, value: Any) -> None:
        if isinstance(value, list):
            if not value:
                ET.SubElement(parent, self._element_name(key))
                return
            tag = item_tag(key)
            for item in value:
                self._append(parent, tag, item)
            return

        element = ET.SubElement(parent, self._element_name(key))
        if isinstance(value, dict):
            for inner_key, inner_value in value.items():
                self._append(element, inner_key, inner_value)
        else:
            element.text = _scalar_text(value, key)

    @staticmethod
    def _element_name(key: str) -> str:
        name = xml_name(key)
        if name != key:
            logger.debug("Key %r is not a valid XML name, using %s", key, name)
        return name


def _describe(exc: BaseException) -> str:
    if isinstance(exc, RecursionError):
        return NESTED_TOO_DEEPLY
    return str(exc)
