"""
Behavior model building - normalize raw facts into typed, frozen entities.

Determinism: facts are grouped by entity name and every aggregate is
sorted by a stable key before freezing, so any permutation of the same
facts builds a structurally identical model.
"""

import json
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from models import (
    BehaviorModel,
    CallbackBinding,
    CallbackPhase,
    Cardinality,
    Constraint,
    ConstraintKind,
    Entity,
    FactCategory,
    NestedAttributeAcceptor,
    RawFact,
    Relation,
    RouteBinding,
    SchemaFact,
    SchemaFactKind,
    new_generation,
)
from .errors import MalformedFactError

KIND_ALIASES = {
    "presence": ConstraintKind.PRESENCE,
    "required": ConstraintKind.PRESENCE,
    "length": ConstraintKind.LENGTH,
    "length_bounded": ConstraintKind.LENGTH,
    "numericality": ConstraintKind.NUMERICALITY,
    "numeric": ConstraintKind.NUMERICALITY,
    "numeric_bounded": ConstraintKind.NUMERICALITY,
    "uniqueness": ConstraintKind.UNIQUENESS,
    "unique": ConstraintKind.UNIQUENESS,
    "format": ConstraintKind.FORMAT,
    "custom": ConstraintKind.CUSTOM,
}

CARDINALITY_ALIASES = {
    "belongs_to": Cardinality.BELONGS_TO,
    "many_to_one": Cardinality.BELONGS_TO,
    "has_one": Cardinality.HAS_ONE,
    "one_to_one": Cardinality.HAS_ONE,
    "has_many": Cardinality.HAS_MANY,
    "one_to_many": Cardinality.HAS_MANY,
}

PHASE_ALIASES = {p.value: p for p in CallbackPhase}


# === Payload helpers ===

def _token(value: Any) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


def _required_str(fact: RawFact, *names: str) -> str:
    for name in names:
        value = fact.payload.get(name)
        if value is not None:
            if not isinstance(value, str) or not value.strip():
                raise MalformedFactError(fact, f"'{name}' must be a non-empty string")
            return value.strip()
    raise MalformedFactError(fact, f"missing '{names[0]}'")


def _optional_str(fact: RawFact, *names: str) -> Optional[str]:
    for name in names:
        value = fact.payload.get(name)
        if value is not None:
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise MalformedFactError(fact, f"'{name}' must be a string")
            return str(value).strip() or None
    return None


def _flag(fact: RawFact, name: str, default: Optional[bool] = False) -> Optional[bool]:
    value = fact.payload.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise MalformedFactError(fact, f"'{name}' must be true or false, got {value!r}")
    return value


def _choice(fact: RawFact, aliases: dict, *names: str):
    raw = _required_str(fact, *names)
    try:
        return aliases[_token(raw)]
    except KeyError:
        raise MalformedFactError(fact, f"unknown {names[0]} '{raw}'") from None


def _names(fact: RawFact, name: str) -> tuple[str, ...]:
    value = fact.payload.get(name)
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) and v for v in value):
        raise MalformedFactError(fact, f"'{name}' must be a name or a list of names")
    return tuple(v.strip() for v in value)


def _bound(fact: RawFact, name: str, value: Any, kind: ConstraintKind):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedFactError(fact, f"{name} bound must be a number, got {value!r}")
    if kind == ConstraintKind.LENGTH:
        if not isinstance(value, int):
            raise MalformedFactError(fact, f"length {name} must be an integer, got {value!r}")
        if value < 0:
            raise MalformedFactError(fact, f"length {name} can't be negative")
    return value


def _construct(fact: RawFact, model_cls, **kwargs):
    try:
        return model_cls(**kwargs)
    except ValidationError as e:
        raise MalformedFactError(fact, str(e)) from None


# === Per-category normalizers ===

def normalize_constraint(fact: RawFact) -> Constraint:
    p = fact.payload
    attribute = _required_str(fact, "attribute")
    kind = _choice(fact, KIND_ALIASES, "kind")

    minimum, maximum = p.get("minimum"), p.get("maximum")
    if p.get("is") is not None:
        if minimum is not None or maximum is not None:
            raise MalformedFactError(fact, "'is' can't be combined with minimum/maximum")
        minimum = maximum = p["is"]
    if p.get("within") is not None:
        within = p["within"]
        if not isinstance(within, (list, tuple)) or len(within) != 2:
            raise MalformedFactError(fact, "'within' must be a [minimum, maximum] pair")
        minimum, maximum = within

    if kind.is_bounded:
        minimum = _bound(fact, "minimum", minimum, kind)
        maximum = _bound(fact, "maximum", maximum, kind)
        if minimum is None and maximum is None:
            raise MalformedFactError(fact, f"{kind.value} constraint needs a minimum or a maximum")
        if minimum is not None and maximum is not None and minimum > maximum:
            raise MalformedFactError(fact, f"minimum {minimum} exceeds maximum {maximum}")
    elif minimum is not None or maximum is not None:
        raise MalformedFactError(fact, f"{kind.value} constraint can't carry bounds")

    pattern = _optional_str(fact, "pattern", "with")
    if kind == ConstraintKind.FORMAT and pattern is None:
        raise MalformedFactError(fact, "format constraint needs a pattern")

    return _construct(
        fact, Constraint,
        attribute=attribute,
        kind=kind,
        minimum=minimum,
        maximum=maximum,
        only_integer=_flag(fact, "only_integer"),
        allow_blank=_flag(fact, "allow_blank"),
        allow_nil=_flag(fact, "allow_nil"),
        pattern=pattern,
        scope=_names(fact, "scope"),
        case_sensitive=_flag(fact, "case_sensitive", default=None),
        validator=_optional_str(fact, "validator"),
    )


def normalize_relation(fact: RawFact) -> Relation:
    return _construct(
        fact, Relation,
        name=_required_str(fact, "name", "association"),
        cardinality=_choice(fact, CARDINALITY_ALIASES, "cardinality", "macro"),
        target=_optional_str(fact, "target", "class_name"),
    )


def normalize_nested(fact: RawFact) -> NestedAttributeAcceptor:
    return _construct(
        fact, NestedAttributeAcceptor,
        association=_required_str(fact, "association", "name"),
        allow_destroy=_flag(fact, "allow_destroy"),
        update_only=_flag(fact, "update_only"),
    )


def normalize_column(fact: RawFact) -> SchemaFact:
    return _construct(
        fact, SchemaFact,
        kind=SchemaFactKind.COLUMN,
        name=_required_str(fact, "name"),
        declared_type=_optional_str(fact, "type", "declared_type"),
        nullable=_flag(fact, "nullable", default=None),
    )


def normalize_index(fact: RawFact) -> SchemaFact:
    columns = _names(fact, "columns")
    if not columns:
        raise MalformedFactError(fact, "index needs at least one column")
    return _construct(
        fact, SchemaFact,
        kind=SchemaFactKind.INDEX,
        name=_optional_str(fact, "name"),
        columns=columns,
        unique=_flag(fact, "unique"),
    )


def normalize_route(fact: RawFact) -> RouteBinding:
    method = _required_str(fact, "method", "verb").upper()
    if not method.isalpha():
        raise MalformedFactError(fact, f"invalid HTTP method '{method}'")
    return _construct(
        fact, RouteBinding,
        method=method,
        path=_required_str(fact, "path"),
        entity=fact.entity,
        action=_required_str(fact, "action"),
    )


def normalize_callback(fact: RawFact) -> CallbackBinding:
    return _construct(
        fact, CallbackBinding,
        phase=_choice(fact, PHASE_ALIASES, "phase"),
        hook=_required_str(fact, "hook", "name"),
        event=_optional_str(fact, "event"),
    )


# Category -> (Entity field, normalizer). Categories not listed are ignored.
NORMALIZERS: dict[str, tuple[str, Callable[[RawFact], Any]]] = {
    FactCategory.CONSTRAINT.value: ("constraints", normalize_constraint),
    FactCategory.RELATION.value: ("relations", normalize_relation),
    FactCategory.NESTED_ATTRIBUTES.value: ("nested_attributes", normalize_nested),
    FactCategory.COLUMN.value: ("schema_facts", normalize_column),
    FactCategory.INDEX.value: ("schema_facts", normalize_index),
    FactCategory.ROUTE.value: ("routes", normalize_route),
    FactCategory.CALLBACK.value: ("callbacks", normalize_callback),
}


def _fact_order(fact: RawFact) -> tuple:
    return (fact.category, json.dumps(fact.payload, sort_keys=True, default=str))


def build_entity(name: str, facts: Iterable[RawFact]) -> Entity:
    """
    Build one entity from its facts. Referentially transparent.

    Raises:
        MalformedFactError: a payload can't be normalized, or two facts
            share a natural key with different parameters
    """
    collected: dict[str, dict[tuple, Any]] = defaultdict(dict)

    for fact in sorted(facts, key=_fact_order):
        if fact.category not in NORMALIZERS:
            continue
        field_name, normalize = NORMALIZERS[fact.category]
        item = normalize(fact)

        existing = collected[field_name].get(item.key)
        if existing is None:
            collected[field_name][item.key] = item
        elif existing != item:
            raise MalformedFactError(
                fact, f"conflicts with another {fact.category} for {item.key}"
            )

    aggregates = {
        field_name: tuple(sorted(items.values(), key=lambda i: i.sort_key))
        for field_name, items in collected.items()
    }
    return Entity(name=name, **aggregates)


def _group(facts: Iterable[RawFact]) -> dict[str, list[RawFact]]:
    grouped: dict[str, list[RawFact]] = defaultdict(list)
    for fact in sorted(facts, key=lambda f: (f.entity,) + _fact_order(f)):
        if not fact.entity or not fact.entity.strip():
            raise MalformedFactError(fact, "fact has no entity name")
        grouped[fact.entity].append(fact)
    return grouped


def build(facts: Iterable[RawFact], generation: Optional[str] = None) -> BehaviorModel:
    """
    Build a behavior model, failing on the first malformed fact.

    Entities are checked in name order, so the reported fact is the same
    for any ordering of the input.
    """
    grouped = _group(facts)
    entities = [build_entity(name, grouped[name]) for name in sorted(grouped)]
    return BehaviorModel(generation=generation or new_generation(), entities=tuple(entities))


@dataclass
class BuildOutcome:
    """A model built from every well-formed entity, plus what was dropped."""
    model: BehaviorModel
    errors: list[MalformedFactError] = field(default_factory=list)

    @property
    def dropped_entities(self) -> list[str]:
        return [e.entity for e in self.errors]


def build_collecting(facts: Iterable[RawFact], generation: Optional[str] = None) -> BuildOutcome:
    """
    Build a behavior model, dropping only the entities with malformed facts.

    A fact with no entity name can't be attributed and is reported alone.
    """
    grouped: dict[str, list[RawFact]] = defaultdict(list)
    errors: list[MalformedFactError] = []
    for fact in facts:
        if not fact.entity or not fact.entity.strip():
            errors.append(MalformedFactError(fact, "fact has no entity name"))
            continue
        grouped[fact.entity].append(fact)

    entities = []
    for name in sorted(grouped):
        try:
            entities.append(build_entity(name, grouped[name]))
        except MalformedFactError as e:
            errors.append(e)

    model = BehaviorModel(generation=generation or new_generation(), entities=tuple(entities))
    return BuildOutcome(model=model, errors=errors)
