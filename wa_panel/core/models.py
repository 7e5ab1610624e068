"""Shared Pydantic base models for view models and API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseViewModel(BaseModel):
    """Base model with common configuration for all view models.

    Serialised with camelCase keys (``model_dump(by_alias=True)``), which is
    the shape the browser-side scripts consume.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
        extra="ignore",
    )

    def to_json(self) -> dict:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")
