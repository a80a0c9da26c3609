"""Shared pydantic configuration for domain models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PlannerModel(BaseModel):
    """
    Base for every domain record.

    Records are immutable snapshots: transitions build new instances with
    model_copy(update=...). Persistence payloads use camelCase keys, Python
    code uses snake_case; both are accepted on input.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict:
        """Serialize to a JSON-safe camelCase dict for the storage collaborator."""
        return self.model_dump(mode="json", by_alias=True)
