"""
Configuration for the behavior regressor.

Precedence: command-line flags > regressor.yaml > environment (.env).
"""

import os
import yaml
from pathlib import Path
from typing import List, Optional, Union
from dataclasses import dataclass, field, fields
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Paths
CONFIG_FILE = Path(os.environ.get("REGRESSOR_CONFIG", "regressor.yaml"))
SNAPSHOTS_DIR = Path(os.environ.get("REGRESSOR_SNAPSHOTS_DIR", ".regressor"))
OUTPUT_DIR = Path(os.environ.get("REGRESSOR_OUTPUT_DIR", "spec/regressor"))
DEFAULT_TEMPLATE = os.environ.get("REGRESSOR_TEMPLATE", "rspec")
DEFAULT_HOST = os.environ.get("REGRESSOR_HOST")


@dataclass
class RegressorSettings:
    """
    Settings for one invocation.

    `host` is a manifest path, a "module:attribute" reference, or a list
    of either (merged into one host).
    """
    host: Optional[Union[str, List[str]]] = None
    template: str = DEFAULT_TEMPLATE
    output_dir: Path = OUTPUT_DIR
    snapshots_dir: Path = SNAPSHOTS_DIR
    entities: Optional[List[str]] = None
    exclude_entities: List[str] = field(default_factory=list)
    max_workers: int = 1
    fail_on_removal: bool = False

    def __post_init__(self):
        if self.host is None:
            self.host = DEFAULT_HOST
        self.output_dir = Path(self.output_dir)
        self.snapshots_dir = Path(self.snapshots_dir)
        self.max_workers = int(self.max_workers)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @classmethod
    def from_dict(cls, data: dict) -> "RegressorSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**data)

    def override(self, **values) -> "RegressorSettings":
        """Copy with every non-None value replaced."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update({k: v for k, v in values.items() if v is not None})
        return RegressorSettings(**current)


def load_settings(path: Optional[Union[str, Path]] = None) -> RegressorSettings:
    """
    Load settings from YAML.

    A missing default file means defaults; a missing explicitly named
    file is an error.
    """
    config_path = Path(path) if path else CONFIG_FILE
    if not config_path.exists():
        if path:
            raise FileNotFoundError(f"Config not found: {config_path}")
        return RegressorSettings()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping")

    return RegressorSettings.from_dict(data)
