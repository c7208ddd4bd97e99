"""Nominal marker base class for pydantic configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Nominal marker for Pydantic-based domain and configuration models."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    def __repr__(self) -> str:
        """Provide a concise, one-line summary of the object."""
        class_name = self.__class__.__name__
        fields = ", ".join(
            f"{name}={value!r}"
            for name, value in self
            if not isinstance(value, BaseModel)
        )
        return f"<{class_name} {fields}>" if fields else f"<{class_name}>"
