"""
Repository layer - where captures live between runs.

Usage:
    from repositories import configure_backend, get_repository

    configure_backend("json", base_path=".regressor")
    repo = get_repository()
    repo.facts.save(model.generation, facts)
    repo.snapshots.save(model)
    previous = repo.facts.resolve("previous")

Only the JSON backend ships; the CLI configures it from settings.
"""

from pathlib import Path
from typing import Optional

from .base import Repository, SnapshotRepository, FactRepository
from .json_backend import JsonRepository, read_facts

BACKENDS = {
    "json": JsonRepository,
}

_backend: str = "json"
_base_path: Optional[Path] = None
_instance: Optional[Repository] = None


def get_repository() -> Repository:
    """The configured repository, built on first use."""
    global _instance

    if _instance is None:
        try:
            factory = BACKENDS[_backend]
        except KeyError:
            raise ValueError(f"Unknown backend: {_backend}") from None
        _instance = factory(_base_path)

    return _instance


def configure_backend(backend: str, base_path: Optional[Path] = None) -> None:
    """Select a backend and capture directory; the next get_repository() rebuilds."""
    global _backend, _base_path, _instance
    _backend = backend
    _base_path = Path(base_path) if base_path else None
    _instance = None


__all__ = [
    "get_repository",
    "configure_backend",
    "Repository",
    "SnapshotRepository",
    "FactRepository",
    "JsonRepository",
    "read_facts",
]
