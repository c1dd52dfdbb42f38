"""
Shared schema configuration.

Dependencies: pydantic
System role: camelCase wire format for all transport models
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
