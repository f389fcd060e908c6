"""
Domain models - single source of truth for behavior facts.

Design principles:
- Every fact type defined once
- Frozen after build; a new extraction run replaces, never mutates
- Each fact knows its natural key (matching) and sort key (ordering)
- Backend-agnostic (repository handles persistence)
"""

from .base import BehaviorFact, TimestampMixin
from .facts import RawFact, FactCategory
from .behavior import (
    FACETS,
    BehaviorModel,
    CallbackBinding,
    CallbackPhase,
    Cardinality,
    Constraint,
    ConstraintKind,
    Entity,
    NestedAttributeAcceptor,
    Relation,
    RouteBinding,
    SchemaFact,
    SchemaFactKind,
    new_generation,
)
from .examples import Example, Polarity
from .report import ChangeReport, EntityChanges, CategoryChanges, Modification

__all__ = [
    # Base
    "BehaviorFact",
    "TimestampMixin",
    # Facts
    "RawFact",
    "FactCategory",
    # Behavior
    "FACETS",
    "BehaviorModel",
    "Entity",
    "Constraint",
    "ConstraintKind",
    "Relation",
    "Cardinality",
    "NestedAttributeAcceptor",
    "SchemaFact",
    "SchemaFactKind",
    "RouteBinding",
    "CallbackBinding",
    "CallbackPhase",
    "new_generation",
    # Examples
    "Example",
    "Polarity",
    # Report
    "ChangeReport",
    "EntityChanges",
    "CategoryChanges",
    "Modification",
]
