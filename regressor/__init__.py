"""
Regressor - behavior specs and regression diffs from application metadata

The host application is read purely as a source of structural facts.
Those facts become a canonical behavior model, which feeds two paths:
spec generation and snapshot diffing.

Modules:
- extract: Pull raw facts from a host, collecting per-facet failures
- build: Normalize raw facts into a frozen, ordered BehaviorModel
- synthesize: Derive boundary examples from each fact
- render: Turn examples into spec text through a declarative template
- diff: Compare two behavior models by natural key
- pipeline: Orchestrate runs (EXTRACT → BUILD → {SYNTHESIZE → RENDER | DIFF})
"""

from .errors import (
    RegressorError,
    ExtractionError,
    PartialExtractionError,
    MalformedFactError,
    TemplateError,
)
from .extract import extract, extract_entity, ExtractionResult
from .build import build, build_entity, build_collecting, BuildOutcome
from .synthesize import synthesize, entity_examples
from .render import render, render_files, render_example
from .diff import diff, compare_entity, compare_items
from .pipeline import (
    RunReport,
    Run,
    Comparison,
    capture,
    rebuild,
    generate,
    render_run,
    compare,
)

__all__ = [
    # errors
    'RegressorError',
    'ExtractionError',
    'PartialExtractionError',
    'MalformedFactError',
    'TemplateError',
    # extract
    'extract',
    'extract_entity',
    'ExtractionResult',
    # build
    'build',
    'build_entity',
    'build_collecting',
    'BuildOutcome',
    # synthesize
    'synthesize',
    'entity_examples',
    # render
    'render',
    'render_files',
    'render_example',
    # diff
    'diff',
    'compare_entity',
    'compare_items',
    # pipeline
    'RunReport',
    'Run',
    'Comparison',
    'capture',
    'rebuild',
    'generate',
    'render_run',
    'compare',
]
