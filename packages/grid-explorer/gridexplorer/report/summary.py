"""Session summary output for Grid Explorer."""

from rich import box
from rich.console import Console
from rich.table import Table

from gridexplorer.report.dtypes import SessionResult


def build_summary_table(result: SessionResult) -> Table:
    """Build a two-column Rich table describing ``result``."""
    table = Table(title="Session summary", box=box.SIMPLE, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Seed", str(result.seed))
    table.add_row("Ticks", str(result.ticks))
    table.add_row("Moves", str(result.moves))
    table.add_row("Simulated time", f"{result.simulated_seconds:.1f}s")
    table.add_row("Score", str(result.score))
    table.add_row("Rewards collected", str(result.rewards_collected))
    for tier, count in result.collected_by_tier.items():
        table.add_row(f"  {tier}", str(count))
    table.add_row("Obstacle hits", str(result.obstacle_hits))
    table.add_row("Exploration rate", f"{result.epsilon:.2f}")
    table.add_row("Stalled cycles", str(result.stalled_cycles))
    table.add_row("Cells visited", str(result.cells_visited))
    table.add_row("Max visits per cell", str(result.max_visit_count))
    return table


def summary(result: SessionResult, console: Console | None = None) -> None:
    """
    Print a summary of a simulation session.

    Parameters
    ----------
    result : SessionResult
        The finished session.
    console : Console | None
        Console to print to, stdout when None.
    """
    console = console or Console()
    console.print(build_summary_table(result))
