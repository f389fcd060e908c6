"""
Host adapters.

Usage:
    from hosts import resolve_host

    host = resolve_host("behavior.yaml")            # Manifest file
    host = resolve_host("myapp.web:app")            # Flask app -> routes
    host = resolve_host("myapp.db:Base")            # Declarative base -> models
    host = resolve_host(["myapp.db:Base", "myapp.web:app"])  # Both, merged

Add new adapters by subclassing HostIntrospector.
"""

import importlib
from pathlib import Path
from typing import Union

from flask import Flask

from .base import HostIntrospector, CompositeHost, FacetFailure
from .manifest import ManifestHost
from .flask_routes import FlaskRoutesHost

MANIFEST_SUFFIXES = {".yaml", ".yml", ".json"}


def _import_object(reference: str):
    module_name, _, attr = reference.partition(":")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def _wrap(obj) -> HostIntrospector:
    if isinstance(obj, HostIntrospector):
        return obj
    if isinstance(obj, Flask):
        return FlaskRoutesHost(obj)
    if hasattr(obj, "registry"):
        from .sqlalchemy_models import SQLAlchemyHost
        return SQLAlchemyHost(obj)
    if isinstance(obj, dict):
        return ManifestHost(obj)
    raise ValueError(f"Don't know how to introspect {type(obj).__name__}")


def resolve_host(spec: Union[str, list, HostIntrospector]) -> HostIntrospector:
    """Build a host from a manifest path, a module:attr reference, or a list of those."""
    if isinstance(spec, HostIntrospector):
        return spec
    if isinstance(spec, (list, tuple)):
        hosts = [resolve_host(s) for s in spec]
        return hosts[0] if len(hosts) == 1 else CompositeHost(*hosts)

    if Path(spec).suffix in MANIFEST_SUFFIXES:
        return ManifestHost.from_file(spec)
    if ":" in spec:
        return _wrap(_import_object(spec))
    raise ValueError(f"Unknown host: {spec} (expected a manifest file or module:attribute)")


__all__ = [
    "HostIntrospector",
    "CompositeHost",
    "FacetFailure",
    "ManifestHost",
    "FlaskRoutesHost",
    "resolve_host",
]
