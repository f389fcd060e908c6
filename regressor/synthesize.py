"""
Example synthesis - derive positive and negative verification examples.

All conditional logic about what to assert lives here; the renderer only
formats. Pure: the same model always yields the same example sequence,
ordered entity × facet × aggregate order.
"""

from typing import Iterator

from models import (
    BehaviorModel,
    CallbackBinding,
    Cardinality,
    Constraint,
    ConstraintKind,
    Entity,
    Example,
    NestedAttributeAcceptor,
    Polarity,
    Relation,
    RouteBinding,
    SchemaFact,
    SchemaFactKind,
)

POSITIVE = Polarity.POSITIVE
NEGATIVE = Polarity.NEGATIVE

CARDINALITY_PHRASES = {
    Cardinality.BELONGS_TO: "belongs to",
    Cardinality.HAS_ONE: "has one",
    Cardinality.HAS_MANY: "has many",
}


def _example(entity: Entity, category: str, description: str, fields: dict,
             variant: str = None, polarity: Polarity = POSITIVE) -> Example:
    # Fields the behavior doesn't carry are left out, never rendered as None
    carried = {k: v for k, v in fields.items() if v is not None}
    return Example(
        entity=entity.name,
        category=category,
        variant=variant,
        polarity=polarity,
        description=description,
        fields=carried,
    )


# === Constraints ===

def _length_examples(entity: Entity, c: Constraint) -> Iterator[Example]:
    base = {"attribute": c.attribute, "allow_blank": c.allow_blank, "allow_nil": c.allow_nil}

    if c.maximum is not None:
        yield _example(
            entity, "length", f"{c.attribute} is valid at maximum length {c.maximum}",
            {**base, "length": c.maximum, "bound": "maximum"}, variant="maximum",
        )
        yield _example(
            entity, "length", f"{c.attribute} is invalid at length {c.maximum + 1}",
            {**base, "length": c.maximum + 1, "bound": "maximum"}, variant="maximum",
            polarity=NEGATIVE,
        )

    # A minimum of 0 bounds nothing: no shorter length exists to reject
    if c.minimum is not None and c.minimum > 0:
        if c.minimum != c.maximum:
            yield _example(
                entity, "length", f"{c.attribute} is valid at minimum length {c.minimum}",
                {**base, "length": c.minimum, "bound": "minimum"}, variant="minimum",
            )
        yield _example(
            entity, "length", f"{c.attribute} is invalid at length {c.minimum - 1}",
            {**base, "length": c.minimum - 1, "bound": "minimum"}, variant="minimum",
            polarity=NEGATIVE,
        )


def _numeric_examples(entity: Entity, c: Constraint) -> Iterator[Example]:
    base = {"attribute": c.attribute, "only_integer": c.only_integer, "allow_nil": c.allow_nil}

    if c.maximum is not None:
        yield _example(
            entity, "numericality", f"{c.attribute} is valid at maximum {c.maximum}",
            {**base, "value": c.maximum, "bound": "maximum"}, variant="maximum",
        )
        yield _example(
            entity, "numericality", f"{c.attribute} is invalid at {c.maximum + 1}",
            {**base, "value": c.maximum + 1, "bound": "maximum"}, variant="maximum",
            polarity=NEGATIVE,
        )

    if c.minimum is not None:
        if c.minimum != c.maximum:
            yield _example(
                entity, "numericality", f"{c.attribute} is valid at minimum {c.minimum}",
                {**base, "value": c.minimum, "bound": "minimum"}, variant="minimum",
            )
        yield _example(
            entity, "numericality", f"{c.attribute} is invalid at {c.minimum - 1}",
            {**base, "value": c.minimum - 1, "bound": "minimum"}, variant="minimum",
            polarity=NEGATIVE,
        )


def constraint_examples(entity: Entity, c: Constraint) -> Iterator[Example]:
    if c.kind == ConstraintKind.PRESENCE:
        yield _example(entity, "presence", f"{c.attribute} is valid when present",
                       {"attribute": c.attribute})

    elif c.kind == ConstraintKind.LENGTH:
        yield from _length_examples(entity, c)

    elif c.kind == ConstraintKind.NUMERICALITY:
        yield from _numeric_examples(entity, c)

    elif c.kind == ConstraintKind.UNIQUENESS:
        description = f"{c.attribute} is unique"
        if c.scope:
            description += f" within {', '.join(c.scope)}"
        yield _example(entity, "uniqueness", description, {
            "attribute": c.attribute,
            "scope": list(c.scope),
            "case_sensitive": c.case_sensitive,
        }, variant="scoped" if c.scope else None)

    elif c.kind == ConstraintKind.FORMAT:
        yield _example(entity, "format", f"{c.attribute} matches {c.pattern}",
                       {"attribute": c.attribute, "pattern": c.pattern})

    else:
        checked_by = c.validator or "a custom validator"
        yield _example(entity, "custom", f"{c.attribute} is checked by {checked_by}",
                       {"attribute": c.attribute, "validator": c.validator})


# === Other facets ===

def relation_example(entity: Entity, r: Relation) -> Example:
    return _example(
        entity, "relation", f"{CARDINALITY_PHRASES[r.cardinality]} {r.name}",
        {"name": r.name, "cardinality": r.cardinality.value, "target": r.target},
        variant=r.cardinality.value,
    )


def nested_example(entity: Entity, n: NestedAttributeAcceptor) -> Example:
    return _example(
        entity, "nested_attributes", f"accepts nested attributes for {n.association}",
        {"association": n.association, "allow_destroy": n.allow_destroy,
         "update_only": n.update_only},
    )


def schema_example(entity: Entity, s: SchemaFact) -> Example:
    if s.kind == SchemaFactKind.COLUMN:
        description = f"has column {s.name}"
        if s.declared_type:
            description += f" of type {s.declared_type}"
        if s.nullable is not None:
            description += " (nullable)" if s.nullable else " (not null)"
        return _example(entity, "schema", description, {
            "name": s.name,
            "declared_type": s.declared_type,
            "nullable": s.nullable,
        }, variant="column")

    label = "unique index" if s.unique else "index"
    return _example(entity, "schema", f"has {label} on {', '.join(s.columns)}", {
        "name": s.name,
        "columns": list(s.columns),
        "unique": s.unique,
    }, variant="index")


def route_example(entity: Entity, r: RouteBinding) -> Example:
    return _example(
        entity, "route", f"routes {r.method} {r.path} to {r.entity}#{r.action}",
        {"method": r.method, "verb": r.method.lower(), "path": r.path,
         "target": r.entity, "action": r.action},
    )


def callback_example(entity: Entity, c: CallbackBinding) -> Example:
    if c.event:
        description = f"runs {c.hook} {c.phase.value} {c.event}"
    else:
        description = f"runs {c.hook} as a {c.phase.value} callback"
    return _example(
        entity, "callback", description,
        {"phase": c.phase.value, "hook": c.hook, "event": c.event},
        variant="on_event" if c.event else None,
    )


def entity_examples(entity: Entity) -> list[Example]:
    """All examples for one entity, in facet order."""
    examples: list[Example] = []
    for constraint in entity.constraints:
        examples.extend(constraint_examples(entity, constraint))
    examples.extend(relation_example(entity, r) for r in entity.relations)
    examples.extend(nested_example(entity, n) for n in entity.nested_attributes)
    examples.extend(schema_example(entity, s) for s in entity.schema_facts)
    examples.extend(route_example(entity, r) for r in entity.routes)
    examples.extend(callback_example(entity, c) for c in entity.callbacks)
    return examples


def synthesize(model: BehaviorModel) -> list[Example]:
    """Derive every example for a behavior model."""
    examples: list[Example] = []
    for entity in model.entities:
        examples.extend(entity_examples(entity))
    return examples
