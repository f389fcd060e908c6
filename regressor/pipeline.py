"""
Run orchestration.

    EXTRACT → BUILD → {SYNTHESIZE → RENDER | DIFF}

A run never stops at the first facet or entity failure. Everything that
went wrong is collected into a RunReport so the caller can show all of it
before deciding the exit status. Only ExtractionError aborts outright.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from hosts.base import HostIntrospector
from models import BehaviorModel, ChangeReport, Example, RawFact
from templates import SpecTemplate
from .build import build_collecting
from .diff import diff
from .errors import (
    RegressorError,
    ExtractionError,
    PartialExtractionError,
    MalformedFactError,
    TemplateError,
)
from .extract import extract
from .render import render, render_files
from .synthesize import synthesize


@dataclass
class RunReport:
    """Every failure collected during one run."""
    fatal: Optional[ExtractionError] = None
    partial: list[PartialExtractionError] = field(default_factory=list)
    malformed: list[MalformedFactError] = field(default_factory=list)
    template: list[TemplateError] = field(default_factory=list)

    @property
    def failures(self) -> list[RegressorError]:
        found: list[RegressorError] = [self.fatal] if self.fatal else []
        return found + self.partial + self.malformed + self.template

    @property
    def failed(self) -> bool:
        """True if anything beyond a partial facet read went wrong."""
        return bool(self.fatal or self.malformed or self.template)

    def merge(self, other: "RunReport") -> None:
        self.fatal = self.fatal or other.fatal
        self.partial.extend(other.partial)
        self.malformed.extend(other.malformed)
        self.template.extend(other.template)


@dataclass
class Run:
    """Artifacts of one run. Missing pieces mean the run stopped before them."""
    report: RunReport = field(default_factory=RunReport)
    facts: list[RawFact] = field(default_factory=list)
    model: Optional[BehaviorModel] = None
    examples: list[Example] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None


def rebuild(facts: Iterable[RawFact], generation: Optional[str] = None) -> Run:
    """Build a model from already captured facts, collecting malformed ones."""
    run = Run(facts=list(facts))
    outcome = build_collecting(run.facts, generation=generation)
    run.model = outcome.model
    run.report.malformed.extend(outcome.errors)
    return run


def capture(
    host: HostIntrospector,
    entities: Optional[Iterable[str]] = None,
    exclude: Iterable[str] = (),
    max_workers: int = 1,
    generation: Optional[str] = None,
) -> Run:
    """
    Extract and build.

    An ExtractionError is recorded as the report's fatal failure and the
    returned run has no model.
    """
    try:
        extracted = extract(host, entities=entities, exclude=exclude, max_workers=max_workers)
    except ExtractionError as e:
        run = Run()
        run.report.fatal = e
        return run

    run = rebuild(extracted.facts, generation=generation)
    run.report.partial.extend(extracted.errors)
    return run


def render_run(run: Run, template: SpecTemplate, per_entity: bool = True) -> Run:
    """Synthesize and render a built run in place."""
    if run.model is None:
        return run

    run.examples = synthesize(run.model)

    try:
        if per_entity:
            run.files = render_files(run.examples, template, generation=run.model.generation)
        else:
            run.text = render(run.examples, template, generation=run.model.generation)
    except TemplateError as e:
        run.report.template.append(e)
    return run


def generate(
    host: HostIntrospector,
    template: SpecTemplate,
    entities: Optional[Iterable[str]] = None,
    exclude: Iterable[str] = (),
    max_workers: int = 1,
    per_entity: bool = True,
    generation: Optional[str] = None,
) -> Run:
    """Extract, build, synthesize and render in one go."""
    run = capture(host, entities=entities, exclude=exclude,
                  max_workers=max_workers, generation=generation)
    return render_run(run, template, per_entity=per_entity)


@dataclass
class Comparison:
    """A diff between two runs, with failures from both sides."""
    previous: Run
    current: Run
    change_report: Optional[ChangeReport] = None

    @property
    def report(self) -> RunReport:
        combined = RunReport()
        combined.merge(self.previous.report)
        combined.merge(self.current.report)
        return combined


def compare(previous: Run, current: Run) -> Comparison:
    """Diff two built runs. No report is produced if either has no model."""
    comparison = Comparison(previous=previous, current=current)
    if previous.model is not None and current.model is not None:
        comparison.change_report = diff(previous.model, current.model)
    return comparison
