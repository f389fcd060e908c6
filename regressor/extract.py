"""
Fact extraction - pull raw structural facts from a host.

The extractor never interprets payloads; that is the builder's job.
A bad facet is recorded as a PartialExtractionError and extraction
carries on with everything else.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional

from hosts.base import HostIntrospector, FacetFailure
from models import RawFact, FactCategory
from .errors import ExtractionError, PartialExtractionError

# Host facet reader -> fact category, in extraction order
FACET_CATEGORIES = (
    ("constraints", FactCategory.CONSTRAINT),
    ("relations", FactCategory.RELATION),
    ("nested_attributes", FactCategory.NESTED_ATTRIBUTES),
    ("columns", FactCategory.COLUMN),
    ("indexes", FactCategory.INDEX),
    ("routes", FactCategory.ROUTE),
    ("callbacks", FactCategory.CALLBACK),
)


@dataclass
class ExtractionResult:
    """Facts that were read, plus the facets that couldn't be."""
    facts: list[RawFact] = field(default_factory=list)
    errors: list[PartialExtractionError] = field(default_factory=list)

    @property
    def entities(self) -> list[str]:
        seen = []
        for fact in self.facts:
            if fact.entity not in seen:
                seen.append(fact.entity)
        return seen

    def extend(self, other: "ExtractionResult") -> None:
        self.facts.extend(other.facts)
        self.errors.extend(other.errors)


def extract_entity(host: HostIntrospector, entity: str) -> ExtractionResult:
    """Read every facet of one entity. Never raises for a single facet."""
    result = ExtractionResult()
    result.facts.append(RawFact(entity=entity, category=FactCategory.ENTITY.value))

    for facet, category in FACET_CATEGORIES:
        try:
            items = list(getattr(host, facet)(entity) or [])
        except Exception as e:
            result.errors.append(PartialExtractionError(entity, facet, str(e) or type(e).__name__))
            continue

        for item in items:
            if isinstance(item, FacetFailure):
                result.errors.append(PartialExtractionError(entity, facet, item.detail))
            elif isinstance(item, dict):
                result.facts.append(RawFact(entity=entity, category=category.value, payload=dict(item)))
            else:
                result.errors.append(
                    PartialExtractionError(entity, facet, f"not a mapping: {item!r}")
                )

    return result


def _select_entities(
    host: HostIntrospector,
    entities: Optional[Iterable[str]],
    exclude: Iterable[str],
) -> list[str]:
    if entities is None:
        try:
            names = list(host.entity_names())
        except Exception as e:
            raise ExtractionError(f"Cannot list entities on {host.name} host: {e}") from e
    else:
        names = list(entities)
        for name in names:
            try:
                known = host.has_entity(name)
            except Exception as e:
                raise ExtractionError(f"Cannot introspect {name}: {e}", entity=name) from e
            if not known:
                raise ExtractionError(f"Unknown entity: {name}", entity=name)

    excluded = set(exclude)
    return [n for n in names if n not in excluded]


def extract(
    host: HostIntrospector,
    entities: Optional[Iterable[str]] = None,
    exclude: Iterable[str] = (),
    max_workers: int = 1,
) -> ExtractionResult:
    """
    Extract raw facts for the given entities (default: all the host knows).

    Entities are read in parallel only when the host says it is reentrant.
    Result order follows entity order regardless of completion order.

    Raises:
        ExtractionError: host can't list entities, or a requested one is unknown
    """
    names = _select_entities(host, entities, exclude)

    if max_workers > 1 and host.reentrant and len(names) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_entity = list(pool.map(lambda n: extract_entity(host, n), names))
    else:
        per_entity = [extract_entity(host, n) for n in names]

    result = ExtractionResult()
    for partial in per_entity:
        result.extend(partial)
    return result
