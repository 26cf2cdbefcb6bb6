"""Command line interface for filo."""

import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .domain.result import EngineError, partition
from .engine import FiloEngine
from .exceptions import FiloError
from .infrastructure.repositories.ruleset_repository import RulesetRepository
from .models.config import Config, default_config_path, load_config
from .models.results import ExecutionResult, ExecutionStatus, UndoPair
from .models.ruleset import Rule
from .rich_progress_renderer import RichProgressRenderer

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(level: str, log_file: Optional[Path] = None) -> None:
    handlers: List[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    ]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]",
                        handlers=handlers, force=True)


def _fail(message: str) -> None:
    console.print(f"\n[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def _repository(ctx: click.Context, rules_file: Optional[Path]) -> RulesetRepository:
    config: Config = ctx.obj["config"]
    return RulesetRepository(rules_file or config.rules_file)


rules_file_option = click.option(
    '--rules-file',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Ruleset file (defaults to the configured one)'
)


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config',
    'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option('-v', '--verbose', count=True, help='Verbose output (-vv for debug)')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: int):
    """Move and copy files into place using filter rules."""
    try:
        path = config_path or default_config_path()
        if config_path or path.exists():
            cfg = load_config(path)
        else:
            cfg = Config.default()
    except FiloError as e:
        _fail(str(e))

    level = cfg.log_level
    if verbose == 1:
        level = "INFO"
    elif verbose > 1:
        level = "DEBUG"
    _setup_logging(level, cfg.log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


def _select_rules(repository: RulesetRepository, rule_ids: Sequence[str], run_all: bool) -> List[Rule]:
    ruleset_file = repository.load()
    if run_all:
        return ruleset_file.enabled
    return [repository.get(rule_id) for rule_id in rule_ids]


def _run_cancellable(engine: FiloEngine, rules: List[Rule],
                     renderer: RichProgressRenderer) -> List[ExecutionResult]:
    """Execute rules on a worker thread so Ctrl-C stops between files."""
    cancel_event = threading.Event()
    results: List[ExecutionResult] = []
    raised: List[BaseException] = []

    def work():
        try:
            results.extend(engine.execute_all(rules, renderer.render, cancel_event))
        except BaseException as e:
            raised.append(e)

    worker = threading.Thread(target=work, name="filo-run")
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelling after the current file...[/yellow]")
        cancel_event.set()
        worker.join()
    if raised:
        renderer.clear()
        raise raised[0]
    return results


def _write_report(results: Sequence[ExecutionResult], report_path: Path) -> None:
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report = {
        "created_at": datetime.now().astimezone().isoformat(),
        "results": [result.to_dict() for result in results],
    }
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
    console.print(f"\n[cyan]Report written to {report_path}[/cyan]")


def _load_report(report_path: Path) -> List[ExecutionResult]:
    try:
        with open(report_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return [ExecutionResult.from_dict(item) for item in data["results"]]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise FiloError(f"Cannot read report {report_path}: {e}") from e


@cli.command()
@click.argument('rule_ids', nargs=-1)
@click.option('--all', 'run_all', is_flag=True, help='Run every enabled ruleset')
@rules_file_option
@click.option(
    '--report',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Write the results as JSON (needed for undo)'
)
@click.pass_context
def run(ctx: click.Context, rule_ids, run_all: bool, rules_file: Optional[Path],
        report: Optional[Path]):
    """Execute the rulesets named by RULE_IDS, or all of them with --all."""
    if not rule_ids and not run_all:
        _fail("Give one or more ruleset ids, or --all")

    config: Config = ctx.obj["config"]
    try:
        rules = _select_rules(_repository(ctx, rules_file), rule_ids, run_all)
    except FiloError as e:
        _fail(str(e))

    if not rules:
        console.print("[yellow]No enabled rulesets to run[/yellow]")
        return

    logger.info(f"Running {len(rules)} rulesets")
    renderer = RichProgressRenderer(console)
    results = _run_cancellable(FiloEngine(), rules, renderer)
    renderer.finish(results)

    if report is None and config.report_dir:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        report = config.report_dir / f"filo-report-{stamp}.json"
    if report is not None:
        _write_report(results, report)

    if any(result.status == ExecutionStatus.FAILED for result in results):
        sys.exit(1)


@cli.command()
@click.argument('source', required=False, type=click.Path(path_type=Path))
@click.argument('destination', required=False, type=click.Path(path_type=Path))
@click.option(
    '--report',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Undo every moved file recorded in a report'
)
def undo(source: Optional[Path], destination: Optional[Path], report: Optional[Path]):
    """Move files back where they came from.

    Either pass --report, or the original SOURCE path and the DESTINATION the
    file was moved to.
    """
    engine = FiloEngine()
    if report is not None:
        try:
            results = _load_report(report)
        except FiloError as e:
            _fail(str(e))
        pairs = [pair for result in results for pair in engine.undo_pairs_for(result)]
    elif source is not None and destination is not None:
        pairs = [UndoPair(source, destination)]
    else:
        _fail("Give --report, or both SOURCE and DESTINATION")

    if not pairs:
        console.print("[yellow]Nothing to undo[/yellow]")
        return

    outcomes = engine.undo_all(pairs)

    table = Table(title="Undo")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    for pair, outcome in zip(pairs, outcomes):
        if outcome.is_success():
            table.add_row(escape(str(pair.source_path)), "[green]restored[/green]")
        else:
            table.add_row(escape(str(pair.source_path)), f"[red]{escape(outcome.error().message)}[/red]")
    console.print(table)

    _, failures = partition(outcomes)
    if failures:
        console.print(f"\n[red]{len(failures)} of {len(pairs)} files could not be restored[/red]")
        sys.exit(1)


@cli.command('list-files')
@click.argument('directory', type=click.Path(path_type=Path))
def list_files(directory: Path):
    """List the files directly inside DIRECTORY."""
    try:
        names = FiloEngine().list_source_files(directory)
    except EngineError as e:
        _fail(e.message)

    if not names:
        console.print("[yellow]No files found[/yellow]")
        return
    for name in names:
        console.print(name, markup=False, highlight=False)


@cli.command('test-pattern')
@click.argument('pattern')
@click.argument('filenames', nargs=-1)
@click.option(
    '--source',
    type=click.Path(path_type=Path),
    help='Test against the files in this directory'
)
@click.option('--destination', default='', help='Destination template to resolve')
def test_pattern(pattern: str, filenames, source: Optional[Path], destination: str):
    """Try a regex PATTERN (and destination template) on FILENAMES."""
    engine = FiloEngine()
    try:
        names = list(filenames)
        if source is not None:
            names.extend(engine.list_source_files(source))
        results = engine.test_pattern(pattern, names, destination)
    except EngineError as e:
        _fail(e.message)

    table = Table(title=f"Pattern: {escape(pattern)}")
    table.add_column("Filename", style="cyan")
    table.add_column("Match")
    table.add_column("Captures")
    if destination:
        table.add_column("Destination")

    for result in results:
        captures = ", ".join(f"{k}={v}" for k, v in result.captures.items())
        row = [
            escape(result.filename),
            "[green]yes[/green]" if result.matched else "[dim]no[/dim]",
            escape(captures),
        ]
        if destination:
            if result.resolved_destination is not None:
                row.append(escape(str(result.resolved_destination)))
            elif result.unresolved_reason:
                row.append(f"[yellow]{escape(result.unresolved_reason)}[/yellow]")
            else:
                row.append("")
        table.add_row(*row)
    console.print(table)

    matched = sum(1 for r in results if r.matched)
    console.print(f"\n{matched} of {len(results)} filenames matched")


@cli.command()
@rules_file_option
@click.pass_context
def rules(ctx: click.Context, rules_file: Optional[Path]):
    """List the rulesets in the ruleset file."""
    repository = _repository(ctx, rules_file)
    try:
        ruleset_file = repository.load()
    except FiloError as e:
        _fail(str(e))

    if not ruleset_file.rulesets:
        console.print(f"[yellow]No rulesets in {repository.path}[/yellow]")
        return

    table = Table(title=str(repository.path))
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Enabled")
    table.add_column("Action")
    table.add_column("Source")
    table.add_column("Destination")
    for rule in ruleset_file.rulesets:
        table.add_row(
            rule.id,
            escape(rule.name),
            "✓" if rule.enabled else "✗",
            rule.action.value,
            escape(rule.source_dir),
            escape(rule.destination_dir),
        )
    console.print(table)


@cli.command()
@rules_file_option
@click.pass_context
def validate(ctx: click.Context, rules_file: Optional[Path]):
    """Check every ruleset in the ruleset file."""
    repository = _repository(ctx, rules_file)
    try:
        ruleset_file = repository.load()
    except FiloError as e:
        _fail(str(e))

    table = Table(title="Validation")
    table.add_column("Name", style="cyan")
    table.add_column("Status")

    invalid = 0
    for rule in ruleset_file.rulesets:
        try:
            rule.validate()
            table.add_row(rule.name or rule.id, "[green]✓ valid[/green]")
        except EngineError as e:
            invalid += 1
            table.add_row(rule.name or rule.id, f"[red]✗ {escape(e.message)}[/red]")
    console.print(table)

    if invalid:
        console.print(f"\n[red]{invalid} invalid rulesets[/red]")
        sys.exit(1)
    console.print(f"\n[green]✓ {len(ruleset_file.rulesets)} rulesets are valid[/green]")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
