"""
Spec rendering - examples to text through a declarative template.

The renderer makes no decisions about what to assert. It looks up the
slot for each example, applies the template's per-field formatting rules
and substitutes $placeholders. Writing the text anywhere is the caller's job.
"""

import json
import re
from string import Template
from typing import Any, Iterable, Optional

from models import Example
from templates import SpecTemplate
from .errors import TemplateError


# === Field formatting rules ===

def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(_text(v) for v in value)
    return str(value)


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else [value]


FORMATTERS = {
    "raw": _text,
    "quoted": lambda v: json.dumps(_text(v)),
    "symbol": lambda v: f":{_text(v)}",
    "symbols": lambda v: "[" + ", ".join(f":{_text(x)}" for x in _as_list(v)) + "]",
    "list": lambda v: json.dumps(_as_list(v)),
    "python": repr,
    "lower": lambda v: _text(v).lower(),
    "upper": lambda v: _text(v).upper(),
}


def _format(template: SpecTemplate, name: str, value: Any) -> str:
    rule = template.fields.get(name, "raw")
    try:
        formatter = FORMATTERS[rule]
    except KeyError:
        raise TemplateError(
            f"Template '{template.name}' uses unknown formatting rule '{rule}' for '{name}'",
            field=name,
        ) from None
    return formatter(value)


# === Entity naming ===

def entity_class(name: str) -> str:
    """Post -> Post, blog_posts -> BlogPosts"""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", name) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def entity_snake(name: str) -> str:
    """BlogPost -> blog_post, api/v1-posts -> api_v1_posts"""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name)
    return re.sub(r"[^0-9A-Za-z]+", "_", snake).strip("_").lower()


def entity_values(name: str) -> dict[str, str]:
    return {
        "entity": name,
        "entity_class": entity_class(name),
        "entity_snake": entity_snake(name),
    }


# === Substitution ===

def _substitute(text: str, values: dict, where: str, example: Optional[Example] = None) -> str:
    try:
        return Template(text).substitute(values)
    except KeyError as e:
        missing = e.args[0]
        if example is not None:
            message = (
                f"Slot '{where}' references '{missing}', which "
                f"{example.category} examples of {example.entity} don't carry"
            )
        else:
            message = f"'{where}' references unknown field '{missing}'"
        raise TemplateError(message, example=example, field=missing) from None
    except ValueError as e:
        raise TemplateError(f"Invalid placeholder in '{where}': {e}", example=example) from None


def slot_keys(example: Example) -> list[str]:
    """Candidate slot keys, most specific first."""
    polarity = example.polarity.value
    keys = []
    for category in (example.category, "*"):
        if example.variant:
            keys.append(f"{category}.{example.variant}.{polarity}")
            keys.append(f"{category}.{example.variant}")
        keys.append(f"{category}.{polarity}")
        keys.append(category)
    return keys


def find_slot(example: Example, template: SpecTemplate) -> tuple[str, str]:
    for key in slot_keys(example):
        if key in template.slots:
            return key, template.slots[key]
    raise TemplateError(
        f"Template '{template.name}' has no slot for {example.category} "
        f"({example.polarity.value}) examples",
        example=example,
    )


def render_example(example: Example, template: SpecTemplate) -> str:
    """Render one example through its slot."""
    key, slot = find_slot(example, template)

    values = entity_values(example.entity)
    values.update({
        "description": example.description,
        "polarity": example.polarity.value,
        "category": example.category,
    })
    if example.variant:
        values["variant"] = example.variant
    for name, value in example.fields.items():
        values[name] = _format(template, name, value)

    text = _substitute(slot, values, key, example)
    if not template.indent:
        return text
    return "\n".join(template.indent + line if line else line for line in text.split("\n"))


def _group_by_entity(examples: Iterable[Example]) -> dict[str, list[Example]]:
    groups: dict[str, list[Example]] = {}
    for example in examples:
        groups.setdefault(example.entity, []).append(example)
    return groups


def _entity_block(name: str, examples: list[Example], template: SpecTemplate) -> str:
    values = entity_values(name)
    lines = []
    if template.entity_open:
        lines.append(_substitute(template.entity_open.rstrip("\n"), values, "entity_open"))
    lines.extend(render_example(e, template) for e in examples)
    if template.entity_close:
        lines.append(_substitute(template.entity_close.rstrip("\n"), values, "entity_close"))
    return "\n".join(lines)


def _document(blocks: list[str], template: SpecTemplate, values: dict) -> str:
    parts = []
    if template.header:
        parts.append(_substitute(template.header.rstrip("\n"), values, "header"))
    parts.extend(blocks)
    if template.footer:
        parts.append(_substitute(template.footer.rstrip("\n"), values, "footer"))
    return template.separator.join(parts) + "\n"


def render(examples: Iterable[Example], template: SpecTemplate, generation: str = "") -> str:
    """
    Render all examples into one document.

    Raises:
        TemplateError: a slot is missing or references a field an example lacks
    """
    examples = list(examples)
    groups = _group_by_entity(examples)
    blocks = [_entity_block(name, group, template) for name, group in groups.items()]
    values = {
        "generation": generation,
        "entity_count": str(len(groups)),
        "example_count": str(len(examples)),
    }
    return _document(blocks, template, values)


def render_files(
    examples: Iterable[Example],
    template: SpecTemplate,
    generation: str = "",
) -> dict[str, str]:
    """
    Render one document per entity, keyed by the template's file name.

    Raises:
        TemplateError: a slot or field is missing, or two entities map to
            the same file name
    """
    files = {}
    owners: dict[str, str] = {}
    for name, group in _group_by_entity(examples).items():
        values = {
            **entity_values(name),
            "generation": generation,
            "entity_count": "1",
            "example_count": str(len(group)),
        }
        file_name = _substitute(template.file_name, entity_values(name), "file_name")
        if file_name in owners:
            raise TemplateError(
                f"Entities '{owners[file_name]}' and '{name}' both render to {file_name}"
            )
        owners[file_name] = name
        files[file_name] = _document([_entity_block(name, group, template)], template, values)
    return files
