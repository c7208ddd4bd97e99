"""
Common exception classes for the JSON toolbox.

This module defines custom exception classes used throughout the package
for better error handling and categorization.
"""

from __future__ import annotations


class ToolboxError(Exception):
    """Base exception class for all toolbox errors."""

    kind = "Toolbox"

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        **kwargs,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        # Extra keyword arguments become attributes and show up in to_dict()
        for key, value in (kwargs or {}).items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        error_dict = {
            "message": self.message,
            "type": self.__class__.__name__,
            "kind": self.kind,
            "details": self.details,
        }

        # Include any additional attributes that were set via kwargs
        for attr_name in vars(self):
            if not attr_name.startswith("_") and attr_name not in (
                "message",
                "details",
                "args",
            ):
                error_dict[attr_name] = getattr(self, attr_name)

        return {"error": error_dict}


class ConfigurationError(ToolboxError):
    """Raised when there's a configuration issue."""

    kind = "Configuration"

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class ValidationError(ToolboxError):
    """Raised when input validation fails."""

    kind = "Validation"

    def __init__(
        self, message: str = "Validation failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class EmptyInputError(ValidationError):
    """Raised when the input text is empty or whitespace-only."""

    kind = "EmptyInput"

    def __init__(
        self, message: str = "Empty JSON string", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class InvalidFieldTypeError(ValidationError):
    """Raised when a nested-JSON field is missing or not a string."""

    kind = "InvalidFieldType"

    def __init__(
        self,
        message: str = "Field not found or not a string",
        field_name: str | None = None,
        details: dict | None = None,
    ):
        det = details.copy() if details else {}
        if field_name:
            det.setdefault("field_name", field_name)
        super().__init__(message, det)


class SchemaValidationError(ValidationError):
    """Raised when a repaired document does not match a JSON schema."""

    kind = "SchemaValidation"

    def __init__(
        self,
        message: str = "JSON does not match schema",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class ParsingError(ToolboxError):
    """Raised when parsing fails."""

    kind = "Parsing"

    def __init__(
        self, message: str = "Parsing failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)


class JSONParsingError(ParsingError):
    kind = "JSONParsing"

    def __init__(
        self,
        message: str = "JSON parsing failed",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class UnrepairableInputError(JSONParsingError):
    """Raised when the repair pipeline and the fallback both fail."""

    kind = "UnrepairableInput"

    def __init__(
        self,
        message: str = "Unable to auto-fix JSON",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class NestedParseError(JSONParsingError):
    """Raised when the string content of a nested-JSON field is not JSON."""

    kind = "NestedParse"

    def __init__(
        self,
        message: str = "Could not parse nested JSON",
        details: dict | None = None,
        **kwargs,
    ):
        super().__init__(message, details, **kwargs)


class ConversionError(ToolboxError):
    kind = "Conversion"

    def __init__(
        self, message: str = "Conversion failed", details: dict | None = None, **kwargs
    ):
        super().__init__(message, details, **kwargs)
