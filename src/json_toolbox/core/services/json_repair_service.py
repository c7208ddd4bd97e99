from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, NoReturn

from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate

import json_toolbox.core.services.metrics_service as metrics
from json_toolbox.core.common.exceptions import (
    JSONParsingError,
    SchemaValidationError,
    UnrepairableInputError,
)
from json_toolbox.core.common.json_io import (
    decode_error_details,
    ensure_text,
    loads_strict,
)
from json_toolbox.core.config.app_config import RepairConfig
from json_toolbox.core.services.repair_passes import DEFAULT_PASSES, RepairPass

logger = logging.getLogger(__name__)


@dataclass
class RepairOutcome:
    """Result of a repair run."""

    text: str
    value: Any
    applied_passes: list[str] = field(default_factory=list)
    used_fast_path: bool = False
    used_fallback: bool = False

    @property
    def changed(self) -> bool:
        return not self.used_fast_path


class JsonRepairService:
    """
    A service to repair near-JSON text into valid JSON.

    The input runs through an ordered list of rewrite passes, then a parse
    attempt. If that fails an aggressive structural fallback is tried before
    giving up with :class:`UnrepairableInputError`.
    """

    def __init__(
        self,
        config: RepairConfig | None = None,
        passes: Sequence[RepairPass] = DEFAULT_PASSES,
    ) -> None:
        self._config = config or RepairConfig()
        self._passes = tuple(passes)

    def repair(self, text: str) -> str:
        """
        Repairs a JSON-like string.

        Args:
            text: The text to repair.

        Returns:
            Text that parses as standard JSON. Valid input is returned unchanged.

        Raises:
            EmptyInputError: If the text is empty or whitespace-only.
            UnrepairableInputError: If no repair produced parseable JSON.
        """
        return self.repair_with_outcome(text).text

    def repair_with_outcome(self, text: str) -> RepairOutcome:
        """Repair ``text`` and report which path produced the result."""
        source = ensure_text(text)

        try:
            value = loads_strict(source)
        except ValueError:
            pass
        else:
            metrics.record_repair("fast_path")
            return RepairOutcome(text=source, value=value, used_fast_path=True)

        applied: list[str] = []
        fixed = self._run_passes(source.strip(), applied)
        try:
            value = loads_strict(fixed)
        except ValueError as exc:
            pipeline_error = exc
        else:
            metrics.record_repair("pipeline_success", applied)
            return RepairOutcome(text=fixed, value=value, applied_passes=applied)

        logger.debug("Repair pipeline output still invalid: %s", pipeline_error)
        if not self._config.aggressive_fallback:
            self._fail(pipeline_error, "pipeline", fixed)

        candidate = self._aggressive_fix(fixed)
        if candidate != fixed:
            logger.info("Retrying repair after structural wrapping")
            applied.append("aggressive_fallback")
            candidate = self._run_passes(candidate, applied)
        try:
            value = loads_strict(candidate)
        except ValueError as exc:
            self._fail(exc, "aggressive_fallback", candidate)

        metrics.record_repair("fallback_success", applied)
        return RepairOutcome(
            text=candidate, value=value, applied_passes=applied, used_fallback=True
        )

    def repair_json(self, text: str) -> Any:
        """
        Repairs a JSON string and returns the parsed value.

        Args:
            text: The JSON string to repair.

        Returns:
            The repaired JSON value.
        """
        return self.repair_with_outcome(text).value

    def validate_json(self, json_object: Any, schema: dict[str, Any]) -> None:
        """
        Validates a JSON value against a schema.

        Args:
            json_object: The JSON value to validate.
            schema: The JSON schema to validate against.
        """
        validate(instance=json_object, schema=schema)

    def repair_and_validate_json(
        self,
        text: str,
        schema: dict[str, Any] | None = None,
        strict: bool = False,
    ) -> Any | None:
        """
        Repairs a JSON string and optionally validates it against a schema.

        Args:
            text: The JSON string to repair and validate.
            schema: The JSON schema to validate against.
            strict: If True, raises an error if the JSON is invalid after repair.

        Returns:
            The repaired and validated JSON value, or None if repair or
            validation fails in non-strict mode.
        """
        try:
            repaired = self.repair_json(text)
            if schema:
                self.validate_json(repaired, schema)
            return repaired
        except JsonSchemaValidationError as e:
            if strict:
                raise SchemaValidationError(
                    message=f"JSON does not match required schema: {e.message}",
                    details={
                        "schema_path": list(e.absolute_path),
                        "failed_value": e.instance,
                    },
                ) from e
            logger.warning("JSON schema validation failed: %s", e.message)
            return None
        except JSONParsingError as e:
            if strict:
                raise
            logger.warning("Failed to repair JSON: %s", e.message)
            return None

    def _run_passes(self, text: str, applied: list[str]) -> str:
        for repair_pass in self._passes:
            rewritten = repair_pass.apply(text)
            if rewritten != text:
                logger.debug("Repair pass %s rewrote the text", repair_pass.name)
                applied.append(repair_pass.name)
                text = rewritten
        return text

    @staticmethod
    def _aggressive_fix(text: str) -> str:
        fixed = text.strip()
        if not fixed.startswith(("{", "[")) and ":" in fixed:
            fixed = "{" + fixed + "}"
        if fixed.startswith("[") and not fixed.endswith("]"):
            fixed += "]"
        if fixed.startswith("{") and not fixed.endswith("}"):
            fixed += "}"
        return fixed

    @staticmethod
    def _fail(exc: ValueError, stage: str, text: str) -> NoReturn:
        metrics.record_repair_failure(stage)
        details = decode_error_details(exc, stage)
        details["content_preview"] = text[:200]
        logger.warning("JSON repair failed at stage %s: %s", stage, exc)
        raise UnrepairableInputError(
            message=f"Unable to auto-fix JSON. Original error: {exc}",
            details=details,
        ) from exc
