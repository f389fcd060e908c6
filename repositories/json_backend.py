"""
JSON file backend - stores data as JSON/JSONL files.

Directory structure:
    {snapshots_dir}/
        snapshots/{generation}.json   - BehaviorModel
        facts/{generation}.jsonl      - RawFacts, one per line
"""

import json
import re
import sys
import threading
from pathlib import Path
from typing import Optional, Iterator

from pydantic import ValidationError

from config import SNAPSHOTS_DIR
from models import BehaviorModel, RawFact
from .base import (
    Repository,
    SnapshotRepository,
    FactRepository,
)

GENERATION_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


def _check_generation(generation: str) -> str:
    if not GENERATION_PATTERN.match(generation or ""):
        raise ValueError(f"Invalid generation identifier: {generation!r}")
    return generation


class WriteQueue:
    """Thread-safe write serialization."""

    def __init__(self):
        self._lock = threading.Lock()

    def write_text(self, path: Path, text: str) -> None:
        """Atomic write."""
        with self._lock:
            temp = path.with_suffix(path.suffix + ".tmp")
            with open(temp, "w") as f:
                f.write(text)
            temp.replace(path)

    def write_jsonl(self, path: Path, rows: list[dict]) -> None:
        """Atomic JSONL write."""
        self.write_text(path, "".join(json.dumps(r, default=str) + "\n" for r in rows))


_write_queue = WriteQueue()


class JsonSnapshotRepository(SnapshotRepository):
    """JSON file implementation of snapshot repository."""

    def __init__(self, base_path: Path = None):
        self._base_path = Path(base_path or SNAPSHOTS_DIR) / "snapshots"

    def _snapshot_file(self, generation: str) -> Path:
        return self._base_path / f"{_check_generation(generation)}.json"

    def get(self, generation: str) -> Optional[BehaviorModel]:
        path = self._snapshot_file(generation)
        if not path.exists():
            return None

        try:
            return BehaviorModel.model_validate_json(path.read_text())
        except ValidationError as e:
            print(f"[WARN] Corrupt snapshot {generation}: {e}", file=sys.stderr)
            return None

    def save(self, model: BehaviorModel) -> None:
        self._base_path.mkdir(parents=True, exist_ok=True)
        _write_queue.write_text(self._snapshot_file(model.generation), model.model_dump_json(indent=2))

    def delete(self, generation: str) -> bool:
        path = self._snapshot_file(generation)
        if not path.exists():
            return False
        path.unlink()
        return True

    def generations(self) -> list[str]:
        if not self._base_path.exists():
            return []
        return sorted(p.stem for p in self._base_path.glob("*.json"))


class JsonFactRepository(FactRepository):
    """JSONL implementation of fact-set repository."""

    def __init__(self, base_path: Path = None):
        self._base_path = Path(base_path or SNAPSHOTS_DIR) / "facts"

    def _facts_file(self, generation: str) -> Path:
        return self._base_path / f"{_check_generation(generation)}.jsonl"

    def get(self, generation: str) -> Optional[list[RawFact]]:
        if not self._facts_file(generation).exists():
            return None
        return list(self.iterate(generation))

    def save(self, generation: str, facts: list[RawFact]) -> None:
        self._base_path.mkdir(parents=True, exist_ok=True)
        _write_queue.write_jsonl(
            self._facts_file(generation),
            [fact.model_dump(mode="json") for fact in facts],
        )

    def delete(self, generation: str) -> bool:
        path = self._facts_file(generation)
        if not path.exists():
            return False
        path.unlink()
        return True

    def generations(self) -> list[str]:
        if not self._base_path.exists():
            return []
        return sorted(p.stem for p in self._base_path.glob("*.jsonl"))

    def iterate(self, generation: str) -> Iterator[RawFact]:
        yield from read_facts(self._facts_file(generation))


def read_facts(path: Path) -> Iterator[RawFact]:
    """Read a JSONL fact file, skipping corrupt lines."""
    path = Path(path)
    if not path.exists():
        return

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield RawFact.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as e:
                print(f"[WARN] Corrupt line {line_num} in {path.name}: {e}", file=sys.stderr)


class JsonRepository(Repository):
    """JSON file backend implementation."""

    def __init__(self, base_path: Path = None):
        self._base_path = Path(base_path or SNAPSHOTS_DIR)
        self._snapshots = JsonSnapshotRepository(self._base_path)
        self._facts = JsonFactRepository(self._base_path)

    @property
    def snapshots(self) -> SnapshotRepository:
        return self._snapshots

    @property
    def facts(self) -> FactRepository:
        return self._facts
