"""
Base model classes.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin(BaseModel):
    """Mixin for a creation timestamp."""
    created_at: datetime = Field(default_factory=utc_now)


class BehaviorFact(BaseModel):
    """
    Base for every normalized behavior fact.

    Frozen once built. Subclasses expose:
    - key: the natural key used to match the fact across snapshots
    - sort_key: the stable ordering used inside an Entity
    """
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    @property
    def key(self) -> tuple:
        raise NotImplementedError

    @property
    def sort_key(self) -> tuple:
        return self.key
