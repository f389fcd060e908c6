"""
Root test configuration.

Test organization:
- unit/        Fast, isolated, no I/O
- integration/ Component boundaries, real I/O to temp locations, CLI runs

Run specific levels:
    pytest tests/unit -v           # Fast feedback loop
    pytest tests/integration -v    # Before commit
    pytest tests -v                # Everything
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from models import RawFact


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated tests")
    config.addinivalue_line("markers", "integration: Component boundary tests")
    config.addinivalue_line("markers", "slow: Tests that take > 1s")


def fact(entity: str, category: str, **payload) -> RawFact:
    """Shorthand for building a RawFact."""
    return RawFact(entity=entity, category=category, payload=payload)


@pytest.fixture
def make_fact():
    """RawFact factory: make_fact("Foo", "constraint", attribute="title", ...)."""
    return fact


@pytest.fixture
def foo_facts():
    """Foo: presence + length(0, 255) on title, belongs to bar."""
    return [
        fact("Foo", "entity"),
        fact("Foo", "constraint", attribute="title", kind="presence"),
        fact("Foo", "constraint", attribute="title", kind="length", minimum=0, maximum=255),
        fact("Foo", "relation", name="bar", cardinality="belongs_to", target="Bar"),
    ]


@pytest.fixture
def blog_manifest():
    """A small manifest document covering every facet."""
    return {
        "entities": {
            "Post": {
                "constraints": [
                    {"attribute": "title", "kind": "presence"},
                    {"attribute": "title", "kind": "length", "maximum": 120},
                    {"attribute": "slug", "kind": "uniqueness", "scope": ["blog_id"]},
                ],
                "relations": [
                    {"name": "blog", "cardinality": "belongs_to", "target": "Blog"},
                    {"name": "comments", "cardinality": "has_many", "target": "Comment"},
                ],
                "nested_attributes": ["comments"],
                "columns": [
                    {"name": "title", "type": "string", "nullable": False},
                ],
                "indexes": [
                    {"columns": ["blog_id", "slug"], "unique": True},
                ],
                "callbacks": [
                    {"phase": "before", "hook": "normalize_title", "event": "validation"},
                ],
            },
            "Blog": {
                "relations": [
                    {"name": "posts", "cardinality": "has_many", "target": "Post"},
                ],
            },
            "posts": {
                "routes": [
                    {"method": "GET", "path": "/posts/<int:id>", "action": "show"},
                ],
            },
        }
    }
