"""
ChangeReport - structured diff between two behavior models.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from .base import utc_now
from .behavior import FACETS, Entity


class Modification(BaseModel):
    """Same natural key in both models, different parameters."""
    key: tuple[Any, ...]
    before: Any
    after: Any


class CategoryChanges(BaseModel):
    """Added/removed/modified items of one aggregate collection."""
    added: list[Any] = Field(default_factory=list)
    removed: list[Any] = Field(default_factory=list)
    modified: list[Modification] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


class EntityChanges(BaseModel):
    """Field-level changes of an entity present in both models."""
    name: str
    constraints: CategoryChanges = Field(default_factory=CategoryChanges)
    relations: CategoryChanges = Field(default_factory=CategoryChanges)
    nested_attributes: CategoryChanges = Field(default_factory=CategoryChanges)
    schema_facts: CategoryChanges = Field(default_factory=CategoryChanges)
    routes: CategoryChanges = Field(default_factory=CategoryChanges)
    callbacks: CategoryChanges = Field(default_factory=CategoryChanges)

    def facet(self, name: str) -> CategoryChanges:
        if name == "schema":
            return self.schema_facts
        return getattr(self, name)

    def is_empty(self) -> bool:
        return all(self.facet(f).is_empty() for f in FACETS)


class ChangeReport(BaseModel):
    """
    What behavior changed between two snapshots.

    Entities present in only one model are reported whole, never as a
    field-level diff. No severity judgment is made here.
    """
    previous_generation: Optional[str] = None
    current_generation: Optional[str] = None
    computed_at: datetime = Field(default_factory=utc_now)

    added_entities: list[Entity] = Field(default_factory=list)
    removed_entities: list[Entity] = Field(default_factory=list)
    entities: dict[str, EntityChanges] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.added_entities or self.removed_entities or self.entities)

    def has_removals(self) -> bool:
        """Any removed entity or removed item in any category."""
        if self.removed_entities:
            return True
        return any(
            changes.facet(f).removed
            for changes in self.entities.values()
            for f in FACETS
        )

    def summary(self) -> dict[str, int]:
        """Counts for display."""
        counts = {
            "entities_added": len(self.added_entities),
            "entities_removed": len(self.removed_entities),
            "entities_changed": len(self.entities),
            "added": 0,
            "removed": 0,
            "modified": 0,
        }
        for changes in self.entities.values():
            for f in FACETS:
                category = changes.facet(f)
                counts["added"] += len(category.added)
                counts["removed"] += len(category.removed)
                counts["modified"] += len(category.modified)
        return counts

