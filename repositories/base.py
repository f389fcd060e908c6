"""
Repository base classes - define the interface.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, Iterator

from models import BehaviorModel, RawFact

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """Abstract base for generation-keyed repositories."""

    @abstractmethod
    def get(self, generation: str) -> Optional[T]:
        """Get by generation identifier."""
        pass

    @abstractmethod
    def delete(self, generation: str) -> bool:
        """Delete by generation. Returns True if deleted."""
        pass

    @abstractmethod
    def generations(self) -> list[str]:
        """Stored generation identifiers, oldest first."""
        pass

    def exists(self, generation: str) -> bool:
        return generation in self.generations()

    def latest_generation(self) -> Optional[str]:
        generations = self.generations()
        return generations[-1] if generations else None

    def resolve(self, ref: str) -> Optional[str]:
        """
        Resolve a generation reference.

        "latest" and "previous" are relative to the newest stored
        generation; anything else must be a stored generation.
        """
        generations = self.generations()
        if ref == "latest":
            return generations[-1] if generations else None
        if ref == "previous":
            return generations[-2] if len(generations) > 1 else None
        return ref if ref in generations else None


class SnapshotRepository(BaseRepository[BehaviorModel]):
    """Repository for behavior model snapshots."""

    @abstractmethod
    def save(self, model: BehaviorModel) -> None:
        """Save a snapshot under its generation."""
        pass

    def latest(self) -> Optional[BehaviorModel]:
        generation = self.latest_generation()
        return self.get(generation) if generation else None


class FactRepository(BaseRepository[list[RawFact]]):
    """Repository for captured raw fact sets."""

    @abstractmethod
    def save(self, generation: str, facts: list[RawFact]) -> None:
        """Save a fact set, replacing any previous one for the generation."""
        pass

    @abstractmethod
    def iterate(self, generation: str) -> Iterator[RawFact]:
        """Iterate facts without loading all into memory."""
        pass


class Repository:
    """
    Aggregate repository - provides access to all stores.

    This is what consumers use. Backend implementations provide
    concrete versions of each sub-repository.
    """

    @property
    @abstractmethod
    def snapshots(self) -> SnapshotRepository:
        """Access snapshot repository."""
        pass

    @property
    @abstractmethod
    def facts(self) -> FactRepository:
        """Access fact-set repository."""
        pass
