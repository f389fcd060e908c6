"""
RawFact - one untyped observation pulled from a host.
"""

from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class FactCategory(str, Enum):
    """Categories the extractor emits. The builder ignores anything else."""
    ENTITY = "entity"              # Marker: the entity exists
    CONSTRAINT = "constraint"
    RELATION = "relation"
    NESTED_ATTRIBUTES = "nested_attributes"
    COLUMN = "column"
    INDEX = "index"
    ROUTE = "route"
    CALLBACK = "callback"


class RawFact(BaseModel):
    """
    An (entity, category, payload) triple.

    Category is a plain string so facts written by a newer extractor
    still load; the payload is never interpreted here.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    entity: str
    category: str
    payload: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> str:
        """Short human-readable form for error messages."""
        return f"{self.entity}/{self.category} {self.payload!r}"
