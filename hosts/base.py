"""
Host Introspection Interface - the sole coupling point to an application framework.

A new host type is supported by implementing HostIntrospector only.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FacetFailure:
    """
    Placeholder for one facet item the host couldn't read.

    Hosts put this in a facet list instead of raising, so the other
    items of the same facet still get extracted.
    """
    detail: str


class HostIntrospector(ABC):
    """
    Base class for host adapters.

    Each adapter must:
    1. Define name
    2. Implement entity_names()
    3. Override the facet readers it can answer (the rest return [])

    Facet readers return lists of plain dicts:
        constraints        {attribute, kind, minimum?, maximum?, ...}
        relations          {name, cardinality, target?}
        nested_attributes  {association, allow_destroy?, update_only?}
        columns            {name, type, nullable}
        indexes            {columns, unique, name?}
        routes             {method, path, action}
        callbacks          {phase, hook, event?}
    """

    name: str = "host"

    # True only if facet readers may be called from several threads at once.
    reentrant: bool = False

    @abstractmethod
    def entity_names(self) -> list[str]:
        """All introspectable entities."""
        pass

    def has_entity(self, name: str) -> bool:
        return name in self.entity_names()

    def constraints(self, entity: str) -> list:
        return []

    def relations(self, entity: str) -> list:
        return []

    def nested_attributes(self, entity: str) -> list:
        return []

    def columns(self, entity: str) -> list:
        return []

    def indexes(self, entity: str) -> list:
        return []

    def routes(self, entity: str) -> list:
        return []

    def callbacks(self, entity: str) -> list:
        return []


class CompositeHost(HostIntrospector):
    """
    Merge several hosts, e.g. ORM models plus web routes.

    An entity known to any host is known here; each facet concatenates
    what every host that knows the entity reports.
    """

    name = "composite"

    def __init__(self, *hosts: HostIntrospector):
        self.hosts = list(hosts)
        self.reentrant = all(h.reentrant for h in self.hosts)

    def entity_names(self) -> list[str]:
        names = set()
        for host in self.hosts:
            names.update(host.entity_names())
        return sorted(names)

    def has_entity(self, name: str) -> bool:
        return any(h.has_entity(name) for h in self.hosts)

    def _merged(self, facet: str, entity: str) -> list:
        # A host that fails a facet becomes one FacetFailure; the others' items stay
        items = []
        for host in self.hosts:
            if not host.has_entity(entity):
                continue
            try:
                items.extend(getattr(host, facet)(entity) or [])
            except Exception as e:
                items.append(FacetFailure(f"{host.name} host: {e or type(e).__name__}"))
        return items

    def constraints(self, entity: str) -> list:
        return self._merged("constraints", entity)

    def relations(self, entity: str) -> list:
        return self._merged("relations", entity)

    def nested_attributes(self, entity: str) -> list:
        return self._merged("nested_attributes", entity)

    def columns(self, entity: str) -> list:
        return self._merged("columns", entity)

    def indexes(self, entity: str) -> list:
        return self._merged("indexes", entity)

    def routes(self, entity: str) -> list:
        return self._merged("routes", entity)

    def callbacks(self, entity: str) -> list:
        return self._merged("callbacks", entity)
