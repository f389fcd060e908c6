"""
Declarative output templates.

A template maps example fields to literal text and performs no logic.
Each YAML file in this directory is one template; a path to any other
YAML file works too.

    name: markdown
    description: Human-readable checklist
    file_name: "$entity_snake.md"
    header: "# Behavior of $entity_count entities"
    entity_open: "## $entity"
    indent: ""
    fields:
      columns: list          # formatting rule per field
    slots:
      "*.positive": "- [+] $description"
      "*.negative": "- [-] $description"

Slot keys are category[.variant][.polarity]; "*" matches any category.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

import yaml

TEMPLATE_DIR = Path(__file__).parent


@dataclass
class SpecTemplate:
    name: str
    description: str
    slots: dict[str, str]
    header: str = ""
    footer: str = ""
    entity_open: str = ""
    entity_close: str = ""
    indent: str = ""
    separator: str = "\n"
    file_name: str = "$entity_snake.txt"
    fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "SpecTemplate":
        if not isinstance(data, dict) or not isinstance(data.get("slots"), dict):
            raise ValueError("Template needs a 'slots' mapping")
        separator = data.get("separator")
        return cls(
            name=data.get("name", "custom"),
            description=data.get("description", ""),
            slots={str(k): str(v) for k, v in data["slots"].items()},
            header=data.get("header") or "",
            footer=data.get("footer") or "",
            entity_open=data.get("entity_open") or "",
            entity_close=data.get("entity_close") or "",
            indent=data.get("indent") or "",
            separator="\n" if separator is None else str(separator),
            file_name=data.get("file_name") or "$entity_snake.txt",
            fields={str(k): str(v) for k, v in (data.get("fields") or {}).items()},
        )


def load_template(name: Union[str, Path]) -> SpecTemplate:
    """Load a bundled template by name, or any template file by path."""
    path = Path(name)
    if not path.suffix:
        path = TEMPLATE_DIR / f"{name}.yaml"

    if not path.exists():
        raise FileNotFoundError(f"Template not found: {name}")

    with open(path) as f:
        data = yaml.safe_load(f)

    return SpecTemplate.from_dict(data)


def list_templates() -> list[str]:
    """Names of the bundled templates."""
    return sorted(p.stem for p in TEMPLATE_DIR.glob("*.yaml"))
