"""
Behavior model - the canonical, versionable aggregate of one extraction run.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .base import BehaviorFact, TimestampMixin

Number = Union[int, float]


class ConstraintKind(str, Enum):
    """Kinds of attribute constraints, in synthesis order."""
    PRESENCE = "presence"
    LENGTH = "length"
    NUMERICALITY = "numericality"
    UNIQUENESS = "uniqueness"
    FORMAT = "format"
    CUSTOM = "custom"

    @property
    def rank(self) -> int:
        return list(ConstraintKind).index(self)

    @property
    def is_bounded(self) -> bool:
        return self in (ConstraintKind.LENGTH, ConstraintKind.NUMERICALITY)


class Cardinality(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"


class SchemaFactKind(str, Enum):
    COLUMN = "column"
    INDEX = "index"


class CallbackPhase(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    AROUND = "around"


class Constraint(BehaviorFact):
    """A named rule on one attribute."""
    attribute: str
    kind: ConstraintKind

    # Bounds (length, numericality)
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None
    only_integer: bool = False

    # Blank handling
    allow_blank: bool = False
    allow_nil: bool = False

    # Kind-specific
    pattern: Optional[str] = None           # format
    scope: tuple[str, ...] = ()             # uniqueness
    case_sensitive: Optional[bool] = None   # uniqueness
    validator: Optional[str] = None         # custom

    @property
    def key(self) -> tuple:
        return (self.attribute, self.kind.value)

    @property
    def sort_key(self) -> tuple:
        return (self.attribute, self.kind.rank)


class Relation(BehaviorFact):
    """An association from the owning entity to another entity."""
    name: str
    cardinality: Cardinality
    target: Optional[str] = None  # May be dangling

    @property
    def key(self) -> tuple:
        return (self.name,)


class NestedAttributeAcceptor(BehaviorFact):
    """The owning entity accepts attribute payloads for an association."""
    association: str
    allow_destroy: bool = False
    update_only: bool = False

    @property
    def key(self) -> tuple:
        return (self.association,)


class SchemaFact(BehaviorFact):
    """
    One persisted-storage fact: a column or an index.

    Columns are keyed by name. Indexes are keyed by their covered columns,
    kept in declaration order since index column order is significant.
    """
    kind: SchemaFactKind
    name: Optional[str] = None              # Column name, or index name if known
    declared_type: Optional[str] = None     # column
    nullable: Optional[bool] = None         # column
    columns: tuple[str, ...] = ()           # index
    unique: bool = False                    # index

    @property
    def key(self) -> tuple:
        if self.kind == SchemaFactKind.COLUMN:
            return (self.kind.value, self.name)
        return (self.kind.value, ",".join(self.columns))


class RouteBinding(BehaviorFact):
    """HTTP method + path pattern resolving to entity#action."""
    method: str
    path: str
    entity: str
    action: str

    @property
    def key(self) -> tuple:
        return (self.method, self.path)

    @property
    def sort_key(self) -> tuple:
        return (self.path, self.method)


class CallbackBinding(BehaviorFact):
    """A hook the owning entity runs in a lifecycle phase."""
    phase: CallbackPhase
    hook: str
    event: Optional[str] = None  # e.g. "save", "validation"

    @property
    def key(self) -> tuple:
        return (self.phase.value, self.hook)


# Aggregate collections of an Entity, in synthesis and report order.
FACETS = (
    "constraints",
    "relations",
    "nested_attributes",
    "schema",
    "routes",
    "callbacks",
)


class Entity(BaseModel):
    """
    One introspected unit: a data model or a route-bound controller.

    Immutable once built; the next extraction run replaces it wholesale.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    constraints: tuple[Constraint, ...] = ()
    relations: tuple[Relation, ...] = ()
    nested_attributes: tuple[NestedAttributeAcceptor, ...] = ()
    schema_facts: tuple[SchemaFact, ...] = ()
    routes: tuple[RouteBinding, ...] = ()
    callbacks: tuple[CallbackBinding, ...] = ()

    def facet(self, name: str) -> tuple:
        """Get an aggregate collection by facet name."""
        if name == "schema":
            return self.schema_facts
        return getattr(self, name)

    @property
    def is_empty(self) -> bool:
        return not any(self.facet(f) for f in FACETS)


def new_generation() -> str:
    """Sortable UTC timestamp identifier for an extraction run."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


class BehaviorModel(TimestampMixin):
    """
    All entities for one extraction run.

    This is the unit of persistence and the unit of diffing.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    generation: str = Field(default_factory=new_generation)
    entities: tuple[Entity, ...] = ()

    def get(self, name: str) -> Optional[Entity]:
        """Get entity by name."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    @property
    def entity_names(self) -> list[str]:
        return [e.name for e in self.entities]

    def same_structure(self, other: "BehaviorModel") -> bool:
        """Equal entities, ignoring generation and timestamp."""
        return self.entities == other.entities

    def dangling_references(self) -> list[tuple[str, str, str]]:
        """(entity, relation, target) for relations whose target isn't in this model."""
        known = set(self.entity_names)
        dangling = []
        for entity in self.entities:
            for relation in entity.relations:
                if relation.target and relation.target not in known:
                    dangling.append((entity.name, relation.name, relation.target))
        return dangling
