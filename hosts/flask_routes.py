"""
Flask routes host - route bindings read from an app's url_map.

Endpoint "posts.show" binds to entity "posts", action "show". Endpoints
without a blueprint prefix bind to default_entity.
"""

from typing import Callable, Optional

from flask import Flask

from .base import HostIntrospector

IMPLICIT_METHODS = {"HEAD", "OPTIONS"}
SKIP_ENDPOINTS = {"static"}


class FlaskRoutesHost(HostIntrospector):
    """Expose each blueprint (or endpoint group) of a Flask app as an entity."""

    name = "flask"
    reentrant = True

    def __init__(
        self,
        app: Flask,
        default_entity: str = "application",
        entity_for: Optional[Callable[[str], tuple[str, str]]] = None,
    ):
        self.app = app
        self.default_entity = default_entity
        self._entity_for = entity_for or self._split_endpoint

    def _split_endpoint(self, endpoint: str) -> tuple[str, str]:
        if "." in endpoint:
            entity, action = endpoint.rsplit(".", 1)
            return entity, action
        return self.default_entity, endpoint

    def _bindings(self) -> list[dict]:
        bindings = []
        for rule in self.app.url_map.iter_rules():
            if rule.endpoint in SKIP_ENDPOINTS:
                continue
            entity, action = self._entity_for(rule.endpoint)
            for method in sorted((rule.methods or set()) - IMPLICIT_METHODS):
                bindings.append({
                    "entity": entity,
                    "method": method,
                    "path": rule.rule,
                    "action": action,
                })
        return bindings

    def entity_names(self) -> list[str]:
        return sorted({b["entity"] for b in self._bindings()})

    def routes(self, entity: str) -> list:
        return [
            {"method": b["method"], "path": b["path"], "action": b["action"]}
            for b in self._bindings()
            if b["entity"] == entity
        ]
