"""
SQLAlchemy host - facts read from declaratively mapped classes.

Mapping rules:
- table columns          -> columns (type is the SQLAlchemy visit name)
- table indexes          -> indexes
- NOT NULL, no default   -> presence constraint
- String(n)              -> length constraint, maximum n
- unique column / UniqueConstraint -> uniqueness on one column, the rest as scope
- @validates methods     -> custom constraints
- relationship()         -> belongs_to / has_one / has_many
"""

from typing import Iterable, Union

from sqlalchemy import Enum as SAEnum, String, UniqueConstraint, inspect
from sqlalchemy.orm import configure_mappers

from .base import HostIntrospector, FacetFailure


class SQLAlchemyHost(HostIntrospector):
    """Each mapped class is an entity, named after the class."""

    name = "sqlalchemy"

    def __init__(self, source: Union[type, Iterable[type]]):
        # A declarative base (has .registry) or an explicit list of classes
        if hasattr(source, "registry"):
            self._classes = [m.class_ for m in source.registry.mappers]
        else:
            self._classes = list(source)
        self._by_name = {cls.__name__: cls for cls in self._classes}
        self._configured = False

    def _mapper(self, entity: str):
        if not self._configured:
            configure_mappers()
            self._configured = True
        return inspect(self._by_name[entity])

    def entity_names(self) -> list[str]:
        return sorted(self._by_name)

    def has_entity(self, name: str) -> bool:
        return name in self._by_name

    def columns(self, entity: str) -> list:
        table = self._mapper(entity).local_table
        return [
            {
                "name": col.name,
                "type": getattr(col.type, "__visit_name__", type(col.type).__name__.lower()),
                "nullable": bool(col.nullable),
            }
            for col in table.columns
        ]

    def indexes(self, entity: str) -> list:
        table = self._mapper(entity).local_table
        return [
            {
                "name": index.name,
                "columns": [c.name for c in index.columns],
                "unique": bool(index.unique),
            }
            for index in sorted(table.indexes, key=lambda i: i.name or "")
        ]

    def constraints(self, entity: str) -> list:
        mapper = self._mapper(entity)
        table = mapper.local_table
        items = []

        for col in table.columns:
            if (
                not col.nullable
                and not col.primary_key
                and col.default is None
                and col.server_default is None
            ):
                items.append({"attribute": col.name, "kind": "presence"})

            if isinstance(col.type, String) and not isinstance(col.type, SAEnum):
                if col.type.length:
                    items.append({
                        "attribute": col.name,
                        "kind": "length",
                        "maximum": col.type.length,
                        "allow_nil": bool(col.nullable),
                    })

        items.extend(self._uniqueness(table))

        for attribute, spec in mapper.validators.items():
            try:
                # (method, options) pairs; older releases stored the bare method
                method = spec[0] if isinstance(spec, tuple) else spec
                items.append({
                    "attribute": attribute,
                    "kind": "custom",
                    "validator": method.__name__,
                })
            except (TypeError, IndexError, AttributeError) as e:
                items.append(FacetFailure(f"validator for {attribute}: {e}"))

        return items

    @staticmethod
    def _uniqueness(table) -> list:
        """
        One uniqueness rule per attribute, so rules never share a natural key.

        A rule implied by a narrower one is dropped: unique(tenant_id) already
        makes (tenant_id, email) unique. Each remaining rule is attributed to
        its last column not yet taken; its other columns become the scope.
        """
        rules = {(col.name,) for col in table.columns if col.unique}
        for constraint in table.constraints:
            if isinstance(constraint, UniqueConstraint):
                names = tuple(c.name for c in constraint.columns)
                if names:
                    rules.add(names)

        kept = []
        for rule in sorted(rules, key=lambda r: (len(r), r)):
            if not any(set(k) <= set(rule) for k in kept):
                kept.append(rule)

        items = []
        taken = set()
        for rule in kept:
            free = [name for name in rule if name not in taken]
            if not free:
                items.append(FacetFailure(
                    f"unique {rule}: every column already carries a uniqueness rule"
                ))
                continue
            attribute = free[-1]
            taken.add(attribute)
            items.append({
                "attribute": attribute,
                "kind": "uniqueness",
                "scope": [name for name in rule if name != attribute],
            })
        return items

    def relations(self, entity: str) -> list:
        items = []
        for rel in self._mapper(entity).relationships:
            try:
                direction = rel.direction.name
                if direction == "MANYTOONE":
                    cardinality = "belongs_to"
                elif rel.uselist:
                    cardinality = "has_many"
                else:
                    cardinality = "has_one"
                items.append({
                    "name": rel.key,
                    "cardinality": cardinality,
                    "target": rel.mapper.class_.__name__,
                })
            except Exception as e:
                items.append(FacetFailure(f"relationship {rel.key}: {e}"))
        return items
