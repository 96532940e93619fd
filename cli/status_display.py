"""Report display functionality for CLI"""

from rich.table import Table

from transfer.pipeline import ImportReport, PipelineState

STATE_STYLES = {
    PipelineState.COMPLETE: "green",
    PipelineState.PARTIAL_FAILURE: "yellow",
    PipelineState.FAILED: "red",
}


def build_report_table(report: ImportReport) -> Table:
    """
    Build a table with one row per parent and item

    Args:
        report: Report of one import run

    Returns:
        Rich table ready to print
    """
    table = Table(title=f"{report.resource_kind} import {report.job_id}")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Destination / Error")

    for outcome in report.outcomes:
        if outcome.ok:
            table.add_row(outcome.key, outcome.display_name, "[green]OK[/green]", str(outcome.destination))
        else:
            table.add_row(
                outcome.key,
                outcome.display_name,
                "[red]FAILED[/red]",
                f"{outcome.error.error_type}: {outcome.error.message}",
            )
    return table


def show_report(report: ImportReport, console) -> None:
    """Print the report table and a one-line summary"""
    console.print(build_report_table(report))
    style = STATE_STYLES.get(report.state, "white")
    console.print(
        f"[{style}]{report.state.value}[/{style}]: "
        f"{len(report.succeeded)} ok, {len(report.failures)} failed"
    )
