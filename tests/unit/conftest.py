"""
Unit test fixtures.

All unit tests should be:
- Fast (< 100ms)
- Isolated (no I/O, in-memory hosts)
- Deterministic (same result every time)
"""

import pytest

from hosts import HostIntrospector, FacetFailure
from models import Constraint, Entity, Relation
from regressor import build


class DictHost(HostIntrospector):
    """In-memory host: {entity: {facet: [items]}}. A callable item raises when read."""

    name = "dict"

    def __init__(self, entities: dict, reentrant: bool = False):
        self.entities = entities
        self.reentrant = reentrant
        self.calls = []

    def entity_names(self) -> list[str]:
        return list(self.entities)

    def _read(self, entity, facet):
        self.calls.append((entity, facet))
        value = self.entities[entity].get(facet, [])
        if isinstance(value, Exception):
            raise value
        return value

    def constraints(self, entity):
        return self._read(entity, "constraints")

    def relations(self, entity):
        return self._read(entity, "relations")

    def nested_attributes(self, entity):
        return self._read(entity, "nested_attributes")

    def columns(self, entity):
        return self._read(entity, "columns")

    def indexes(self, entity):
        return self._read(entity, "indexes")

    def routes(self, entity):
        return self._read(entity, "routes")

    def callbacks(self, entity):
        return self._read(entity, "callbacks")


@pytest.fixture
def dict_host():
    """Factory for in-memory hosts."""
    return DictHost


@pytest.fixture
def foo_model(foo_facts):
    return build(foo_facts, generation="20240115T120000000000Z")


@pytest.fixture
def foo_without_bar(foo_facts):
    facts = [f for f in foo_facts if f.category != "relation"]
    return build(facts, generation="20240116T120000000000Z")


@pytest.fixture
def title_length():
    def make(minimum=None, maximum=None):
        return Entity(
            name="Foo",
            constraints=(Constraint(attribute="title", kind="length",
                                    minimum=minimum, maximum=maximum),),
        )
    return make


@pytest.fixture
def failing_routes_host(dict_host):
    """Two route-bound entities; one's route facet can't be read."""
    return dict_host({
        "models": {
            "routes": [{"method": "GET", "path": "/models/1", "action": "show"}],
        },
        "widgets": {
            "routes": RuntimeError("routing table unavailable"),
        },
        "gadgets": {
            "routes": [
                {"method": "POST", "path": "/gadgets", "action": "create"},
                FacetFailure("unparseable constraint on /gadgets/<id>"),
            ],
        },
    })


@pytest.fixture
def bar_relation():
    return Relation(name="bar", cardinality="belongs_to", target="Bar")
