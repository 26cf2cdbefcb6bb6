"""Rich progress renderer for the CLI."""

from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn
from rich.table import Table

from .models.results import ExecutionResult, ExecutionStatus, ProgressEvent

STATUS_STYLES = {
    ExecutionStatus.COMPLETED: "green",
    ExecutionStatus.PARTIAL_FAILURE: "yellow",
    ExecutionStatus.FAILED: "red",
}


class RichProgressRenderer:
    """Renders engine progress events using Rich library."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.progress = None
        self.live = None
        self.rule_tasks: Dict[str, TaskID] = {}

    def render(self, event: ProgressEvent):
        """Advance the task for the event's rule, starting the display on first use."""
        if not self.progress:
            self.progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                TextColumn("{task.completed} files"),
                TextColumn("•"),
                TimeElapsedColumn(),
                TextColumn("[dim]{task.fields[current]}"),
                console=self.console,
                transient=True
            )
            self.live = Live(self.progress, console=self.console, refresh_per_second=10)
            self.live.start()

        task = self.rule_tasks.get(event.rule_name)
        if task is None:
            task = self.progress.add_task(escape(event.rule_name), total=None, current="")
            self.rule_tasks[event.rule_name] = task

        self.progress.update(task, advance=1, current=escape(event.filename))

    def clear(self):
        """Clear the progress display."""
        if self.live:
            self.live.stop()
            self.live = None
        self.progress = None
        self.rule_tasks = {}

    def results_table(self, results: Sequence[ExecutionResult]) -> Table:
        table = Table(title="Results")
        table.add_column("Rule", style="cyan")
        table.add_column("Action")
        table.add_column("Status")
        table.add_column("Succeeded", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Errors", justify="right")

        for result in results:
            style = STATUS_STYLES[result.status]
            status = result.status.value
            if result.cancelled:
                status += " (cancelled)"
            table.add_row(
                escape(result.rule_name),
                result.action.value,
                f"[{style}]{status}[/{style}]",
                str(len(result.succeeded)),
                str(len(result.skipped)),
                str(len(result.errors)),
            )
        return table

    def finish(self, results: Sequence[ExecutionResult], max_details: int = 10):
        """Display the results table, problem details and a summary panel."""
        self.clear()
        self.console.print(self.results_table(results))

        for result in results:
            name = escape(result.rule_name)
            if result.failure_reason:
                self.console.print(f"\n[red]{name}: {escape(result.failure_reason)}[/red]")
            self._print_records(f"Errors in {name}", "red",
                                [f"{r.filename}: {r.reason}" for r in result.errors], max_details)
            self._print_records(f"Skipped in {name}", "yellow",
                                [f"{r.filename}: {r.reason}" for r in result.skipped], max_details)

        succeeded = sum(len(r.succeeded) for r in results)
        skipped = sum(len(r.skipped) for r in results)
        errors = sum(len(r.errors) for r in results)
        failed_rules = sum(1 for r in results if r.status == ExecutionStatus.FAILED)

        summary_lines = [
            f"[bold]Rules Executed:[/bold] {len(results)}",
            f"[bold]Files Transferred:[/bold] {succeeded:,}",
            f"[bold]Files Skipped:[/bold] {skipped:,}",
        ]
        if errors:
            summary_lines.append(f"[bold red]Errors:[/bold red] {errors}")
        if failed_rules:
            summary_lines.append(f"[bold red]Failed Rules:[/bold red] {failed_rules}")

        clean = not errors and not failed_rules
        panel = Panel(
            "\n".join(summary_lines),
            title="[bold green]Done[/bold green]" if clean else "[bold yellow]Done with problems[/bold yellow]",
            border_style="green" if clean else "yellow",
            padding=(1, 2)
        )
        self.console.print(panel)

    def _print_records(self, title: str, style: str, lines: List[str], limit: int):
        if not lines:
            return
        self.console.print(f"\n[{style}]{title}:[/{style}]")
        for line in lines[:limit]:
            self.console.print(f"  • {escape(line)}")
        if len(lines) > limit:
            self.console.print(f"  ... and {len(lines) - limit} more")
