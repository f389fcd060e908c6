"""
Snapshot diffing - what behavior changed between two models.

Algorithm:
1. Match entities by name; set difference gives wholly added/removed ones
2. For entities in both, compare each aggregate as a map keyed by natural key
3. Same key, different parameters -> modified (not removed + added)

Purely structural: widening a bound is reported the same as narrowing it.
"""

from typing import Optional

from models import (
    FACETS,
    BehaviorModel,
    CategoryChanges,
    ChangeReport,
    Entity,
    EntityChanges,
    Modification,
)


def compare_items(before: tuple, after: tuple) -> CategoryChanges:
    """Compare two aggregate collections by natural key."""
    before_map = {item.key: item for item in before}
    after_map = {item.key: item for item in after}

    changes = CategoryChanges()

    for key in sorted(set(before_map) | set(after_map), key=_key_order):
        old = before_map.get(key)
        new = after_map.get(key)

        if old is not None and new is None:
            changes.removed.append(old)
        elif new is not None and old is None:
            changes.added.append(new)
        elif old != new:
            changes.modified.append(Modification(key=key, before=old, after=new))

    return changes


def _key_order(key: tuple) -> tuple:
    # Natural keys mix str/None; compare as text
    return tuple("" if part is None else str(part) for part in key)


def compare_entity(before: Entity, after: Entity) -> Optional[EntityChanges]:
    """Field-level changes, or None if the entity is unchanged."""
    changes = EntityChanges(name=after.name)
    for facet in FACETS:
        category = compare_items(before.facet(facet), after.facet(facet))
        setattr(changes, "schema_facts" if facet == "schema" else facet, category)
    return None if changes.is_empty() else changes


def diff(previous: BehaviorModel, current: BehaviorModel) -> ChangeReport:
    """
    Compare two behavior models.

    diff(m, m) is always empty, and diff(a, b).added is diff(b, a).removed.
    """
    before_map = {e.name: e for e in previous.entities}
    after_map = {e.name: e for e in current.entities}

    report = ChangeReport(
        previous_generation=previous.generation,
        current_generation=current.generation,
    )

    for name in sorted(set(before_map) | set(after_map)):
        old = before_map.get(name)
        new = after_map.get(name)

        if old is not None and new is None:
            report.removed_entities.append(old)
        elif new is not None and old is None:
            report.added_entities.append(new)
        else:
            changes = compare_entity(old, new)
            if changes is not None:
                report.entities[name] = changes

    return report
