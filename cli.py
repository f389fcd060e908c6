#!/usr/bin/env python3
"""
Behavior Regressor - Main CLI Entry Point

Capture an application's structural behavior, generate specs from it,
and diff captures to see exactly which behavior changed.
"""

import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from config import RegressorSettings, load_settings
from hosts import resolve_host
from models import ChangeReport, FACETS
from regressor import (
    ExtractionError,
    PartialExtractionError,
    RunReport,
    Run,
    capture,
    compare,
    generate,
    rebuild,
)
from repositories import Repository, configure_backend, get_repository, read_facts
from templates import load_template, list_templates

# Reports and listings go to stdout; failures and status lines to stderr
report_console = Console()
console = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REMOVALS = 2


# === Output helpers ===

def print_failures(report: RunReport):
    """Print every collected failure, not just the first."""
    failures = report.failures
    if not failures:
        return

    table = Table(title=f"{len(failures)} failure(s)", box=box.ROUNDED)
    table.add_column("Kind", style="bold")
    table.add_column("Entity", style="cyan")
    table.add_column("Detail")

    for error in failures:
        entity = getattr(error, "entity", None) or "-"
        style = "yellow" if isinstance(error, PartialExtractionError) else "red"
        table.add_row(f"[{style}]{type(error).__name__}[/{style}]", entity, str(error))

    console.print(table)


def _item_label(item) -> str:
    return " ".join(str(part) for part in item.key if part is not None)


def _changed_fields(before, after) -> str:
    old, new = before.model_dump(mode="json"), after.model_dump(mode="json")
    return ", ".join(
        f"{name}: {old[name]} → {new[name]}"
        for name in old
        if old[name] != new[name]
    )


def print_change_report(report: ChangeReport):
    """Human-readable change report."""
    summary = report.summary()
    report_console.print(Panel.fit(
        f"[bold]{report.previous_generation}[/bold] → [bold]{report.current_generation}[/bold]\n"
        f"[green]+{summary['added']}[/green]  [red]-{summary['removed']}[/red]  "
        f"[yellow]~{summary['modified']}[/yellow]  "
        f"entities: +{summary['entities_added']} -{summary['entities_removed']} "
        f"~{summary['entities_changed']}",
        title="Behavior diff",
    ))

    if report.is_empty():
        report_console.print("[dim]No behavior changes.[/dim]")
        return

    for entity in report.added_entities:
        report_console.print(f"[green]+ entity {entity.name}[/green]")
    for entity in report.removed_entities:
        report_console.print(f"[red]- entity {entity.name}[/red]")

    for name, changes in report.entities.items():
        table = Table(title=name, box=box.ROUNDED, show_header=False)
        table.add_column("", width=1)
        table.add_column("Category", style="dim")
        table.add_column("Item")

        for facet in FACETS:
            category = changes.facet(facet)
            for item in category.added:
                table.add_row("[green]+[/green]", facet, _item_label(item))
            for item in category.removed:
                table.add_row("[red]-[/red]", facet, _item_label(item))
            for mod in category.modified:
                table.add_row(
                    "[yellow]~[/yellow]", facet,
                    f"{_item_label(mod.after)} ({_changed_fields(mod.before, mod.after)})",
                )

        report_console.print(table)


def _exit_code(report: RunReport) -> int:
    return EXIT_FAILED if report.failed else EXIT_OK


# === Commands ===

def _host(settings: RegressorSettings):
    if not settings.host:
        raise ExtractionError("No host configured (use --host or REGRESSOR_HOST)")
    try:
        return resolve_host(settings.host)
    except (OSError, ImportError, AttributeError, ValueError) as e:
        raise ExtractionError(f"Cannot load host {settings.host}: {e}") from e


def _capture(settings: RegressorSettings) -> Run:
    try:
        host = _host(settings)
    except ExtractionError as e:
        run = Run()
        run.report.fatal = e
        return run
    return capture(
        host,
        entities=settings.entities,
        exclude=settings.exclude_entities,
        max_workers=settings.max_workers,
    )


def _persist(run: Run, repo: Repository):
    repo.facts.save(run.model.generation, run.facts)
    repo.snapshots.save(run.model)
    console.print(
        f"[green]Captured {run.model.generation}[/green] "
        f"[dim]({len(run.model.entities)} entities, {len(run.facts)} facts)[/dim]"
    )


def cmd_capture(settings: RegressorSettings) -> int:
    """Extract, build and persist facts + snapshot."""
    run = _capture(settings)
    if run.model is not None:
        _persist(run, get_repository())
    print_failures(run.report)
    return _exit_code(run.report)


def cmd_generate(settings: RegressorSettings, output: Optional[str], save: bool) -> int:
    """Extract, build, synthesize and render."""
    try:
        template = load_template(settings.template)
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot load template {settings.template}: {e}[/red]")
        console.print(f"[dim]Bundled templates: {', '.join(list_templates())}[/dim]")
        return EXIT_FAILED

    to_stdout = output == "-"
    try:
        host = _host(settings)
    except ExtractionError as e:
        run = Run()
        run.report.fatal = e
        print_failures(run.report)
        return EXIT_FAILED

    run = generate(
        host,
        template,
        entities=settings.entities,
        exclude=settings.exclude_entities,
        max_workers=settings.max_workers,
        per_entity=not to_stdout,
    )

    if save and run.model is not None:
        _persist(run, get_repository())

    if to_stdout and run.text is not None:
        sys.stdout.write(run.text)
    elif run.files:
        out_dir = Path(output) if output else settings.output_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        for file_name, text in run.files.items():
            (out_dir / file_name).write_text(text)
        console.print(
            f"[green]Wrote {len(run.files)} spec file(s)[/green] "
            f"[dim]({len(run.examples)} examples) to {out_dir}[/dim]"
        )

    print_failures(run.report)
    return _exit_code(run.report)


def _load_ref(ref: str, repo: Repository) -> Run:
    """A captured fact set by generation id, latest/previous, or .jsonl path."""
    if ref.endswith(".jsonl"):
        path = Path(ref)
        if not path.exists():
            raise FileNotFoundError(f"Fact file not found: {ref}")
        return rebuild(read_facts(path), generation=path.stem)

    generation = repo.facts.resolve(ref)
    if generation is None:
        raise FileNotFoundError(f"No captured facts for '{ref}'")
    return rebuild(repo.facts.iterate(generation), generation=generation)


def cmd_diff(
    settings: RegressorSettings,
    previous: Optional[str],
    current: Optional[str],
    as_json: bool,
    live: bool,
) -> int:
    """Rebuild two captured fact sets (or one plus a live run) and diff them."""
    repo = get_repository()
    try:
        if live:
            before = _load_ref(previous or "latest", repo)
            after = _capture(settings)
        else:
            before = _load_ref(previous or "previous", repo)
            after = _load_ref(current or "latest", repo)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return EXIT_FAILED

    comparison = compare(before, after)
    report = comparison.report

    if comparison.change_report is not None:
        if as_json:
            sys.stdout.write(comparison.change_report.model_dump_json(indent=2) + "\n")
        else:
            print_change_report(comparison.change_report)

    print_failures(report)
    if report.failed or comparison.change_report is None:
        return EXIT_FAILED
    if settings.fail_on_removal and comparison.change_report.has_removals():
        if not as_json:
            console.print("[red]Behavior was removed.[/red]")
        return EXIT_REMOVALS
    return EXIT_OK


def cmd_snapshots(settings: RegressorSettings) -> int:
    """List stored generations."""
    repo = get_repository()
    generations = sorted(set(repo.snapshots.generations()) | set(repo.facts.generations()))

    if not generations:
        report_console.print("[dim]No captures yet. Start one with: regressor capture --host ...[/dim]")
        return EXIT_OK

    table = Table(title="Captures", box=box.ROUNDED)
    table.add_column("Generation", style="cyan")
    table.add_column("Captured", style="dim")
    table.add_column("Entities", justify="right")
    table.add_column("Facts", justify="right")

    for generation in generations:
        model = repo.snapshots.get(generation)
        facts = repo.facts.get(generation)
        table.add_row(
            generation,
            model.created_at.strftime("%Y-%m-%d %H:%M") if model else "-",
            str(len(model.entities)) if model else "-",
            str(len(facts)) if facts is not None else "-",
        )

    report_console.print(table)
    return EXIT_OK


# === Entry point ===

def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Behavior Regressor - specs and regression diffs from application metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  regressor capture --host app/manifest.yaml
  regressor generate --host myapp:app --template rspec
  regressor generate --host manifest.yaml --output -
  regressor diff previous latest --fail-on-removal
  regressor diff --host myapp.models:Base
  regressor snapshots
        """
    )
    parser.add_argument("--config", "-c", help="Settings file (default: regressor.yaml)")
    parser.add_argument("--snapshots-dir", help="Where captures are stored")

    def host_options(p):
        p.add_argument("--host", action="append",
                       help="Manifest file or module:attribute (repeat to merge hosts)")
        p.add_argument("--entity", "-e", action="append", dest="entities",
                       help="Only this entity (repeatable)")
        p.add_argument("--exclude", "-x", action="append", dest="exclude",
                       help="Skip this entity (repeatable)")
        p.add_argument("--workers", "-w", type=int, help="Parallel extraction workers")

    sub = parser.add_subparsers(dest="command", required=True)

    p_capture = sub.add_parser("capture", help="Capture facts and a behavior snapshot")
    host_options(p_capture)

    p_generate = sub.add_parser("generate", help="Generate spec files")
    host_options(p_generate)
    p_generate.add_argument("--template", "-t", help=f"Template name or path ({', '.join(list_templates())})")
    p_generate.add_argument("--output", "-o", help="Output directory, or - for stdout")
    p_generate.add_argument("--save", action="store_true", help="Also store the capture")

    p_diff = sub.add_parser("diff", help="Diff two captures")
    p_diff.add_argument("previous", nargs="?", help="Generation, latest, previous, or .jsonl path")
    p_diff.add_argument("current", nargs="?", help="Generation, latest, previous, or .jsonl path")
    host_options(p_diff)
    p_diff.add_argument("--json", action="store_true", dest="as_json", help="Print the report as JSON")
    p_diff.add_argument("--fail-on-removal", action="store_true", default=None,
                        help="Exit 2 if any behavior was removed")

    sub.add_parser("snapshots", help="List stored captures")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config).override(
            host=getattr(args, "host", None),
            entities=getattr(args, "entities", None),
            exclude_entities=getattr(args, "exclude", None),
            max_workers=getattr(args, "workers", None),
            template=getattr(args, "template", None),
            snapshots_dir=args.snapshots_dir,
            fail_on_removal=getattr(args, "fail_on_removal", None),
        )
    except (OSError, ValueError) as e:
        console.print(f"[red]Bad configuration: {e}[/red]")
        return EXIT_FAILED

    configure_backend("json", base_path=settings.snapshots_dir)

    if args.command == "capture":
        return cmd_capture(settings)
    elif args.command == "generate":
        return cmd_generate(settings, args.output, args.save)
    elif args.command == "diff":
        live = bool(args.host)
        if live and args.current:
            parser.error("diff takes a single capture when --host is given")
        return cmd_diff(settings, args.previous, args.current, args.as_json, live)
    else:
        return cmd_snapshots(settings)


def cli():
    """Main CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
