"""
Error taxonomy.

- ExtractionError: host unreachable or entity unknown. Aborts the run.
- PartialExtractionError: one facet unreadable. Collected, run continues.
- MalformedFactError: a payload can't be normalized. Fatal for its entity only.
- TemplateError: rendering failed. The behavior model stays valid.
"""

from typing import Optional


class RegressorError(Exception):
    """Base for all engine errors."""


class ExtractionError(RegressorError):
    """The host could not be introspected at all."""

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity


class PartialExtractionError(RegressorError):
    """One facet (or one item of a facet) could not be read."""

    def __init__(self, entity: str, facet: str, detail: str):
        super().__init__(f"{entity}: could not read {facet}: {detail}")
        self.entity = entity
        self.facet = facet
        self.detail = detail


class MalformedFactError(RegressorError):
    """A raw fact's payload doesn't fit its typed representation."""

    def __init__(self, fact, reason: str):
        super().__init__(f"Malformed fact {fact.describe()}: {reason}")
        self.fact = fact
        self.reason = reason

    @property
    def entity(self) -> str:
        return self.fact.entity


class TemplateError(RegressorError):
    """A template slot is missing or references a field the example lacks."""

    def __init__(self, message: str, example=None, field: Optional[str] = None):
        super().__init__(message)
        self.example = example
        self.field = field
