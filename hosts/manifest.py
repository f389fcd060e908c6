"""
Manifest host - entities described in a YAML/JSON document.

Useful when the host application exports its own metadata, and for
fixtures. Layout:

    entities:
      Post:
        constraints:
          - {attribute: title, kind: presence}
          - {attribute: title, kind: length, maximum: 255}
        relations:
          - {name: author, cardinality: belongs_to, target: User}
        nested_attributes: [comments]
        columns:
          - {name: title, type: string, nullable: false}
        indexes:
          - {columns: [author_id]}
        callbacks:
          - {phase: before, hook: normalize_title, event: validation}
      posts:
        routes:
          - {method: GET, path: "/posts/:id", action: show}
"""

import json
from pathlib import Path
from typing import Union

import yaml

from .base import HostIntrospector, FacetFailure

# Facets whose items may be written as a bare string, and the key it fills.
SHORTHAND = {
    "nested_attributes": "association",
    "callbacks": "hook",
}


class ManifestHost(HostIntrospector):
    """Read-only host backed by a parsed manifest document."""

    name = "manifest"
    reentrant = True

    def __init__(self, document: dict):
        if not isinstance(document, dict):
            raise ValueError("Manifest must be a mapping")
        self._entities = self._index(document.get("entities") or {})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ManifestHost":
        """Load a manifest from .yaml/.yml/.json."""
        path = Path(path)
        with open(path) as f:
            try:
                if path.suffix == ".json":
                    document = json.load(f)
                else:
                    document = yaml.safe_load(f) or {}
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                raise ValueError(f"Cannot parse manifest {path}: {e}") from e
        return cls(document)

    @staticmethod
    def _index(entities) -> dict:
        # Accept both {name: {...}} and [{name: ..., ...}]
        if isinstance(entities, list):
            indexed = {}
            for item in entities:
                if not isinstance(item, dict) or not item.get("name"):
                    raise ValueError(f"Entity entries need a name: {item!r}")
                item = dict(item)
                indexed[str(item.pop("name"))] = item
            return indexed
        if not isinstance(entities, dict):
            raise ValueError("'entities' must be a mapping or a list")

        indexed = {}
        for name, body in entities.items():
            if body is not None and not isinstance(body, dict):
                raise ValueError(f"Entity {name} must be a mapping")
            indexed[str(name)] = body or {}
        return indexed

    def entity_names(self) -> list[str]:
        return list(self._entities)

    def has_entity(self, name: str) -> bool:
        return name in self._entities

    def _facet(self, entity: str, facet: str) -> list:
        raw = self._entities[entity].get(facet) or []
        if not isinstance(raw, list):
            raise ValueError(f"expected a list, got {type(raw).__name__}")

        items = []
        for item in raw:
            if isinstance(item, str) and facet in SHORTHAND:
                items.append({SHORTHAND[facet]: item})
            elif isinstance(item, dict):
                items.append(dict(item))
            else:
                items.append(FacetFailure(f"unreadable {facet} entry: {item!r}"))
        return items

    def constraints(self, entity: str) -> list:
        return self._facet(entity, "constraints")

    def relations(self, entity: str) -> list:
        return self._facet(entity, "relations")

    def nested_attributes(self, entity: str) -> list:
        return self._facet(entity, "nested_attributes")

    def columns(self, entity: str) -> list:
        return self._facet(entity, "columns")

    def indexes(self, entity: str) -> list:
        return self._facet(entity, "indexes")

    def routes(self, entity: str) -> list:
        return self._facet(entity, "routes")

    def callbacks(self, entity: str) -> list:
        return self._facet(entity, "callbacks")
