#!/usr/bin/env python3
"""
Personal time log: record work sessions and summarize time spent.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .entry import Entry, compare_entries, format_duration, format_entry
from .errors import (
    EmptyLogError,
    EntryAlreadyStoppedError,
    LogFormatError,
    TimelogError,
)
from .store import EntryStore, get_log_path, load_entries, save_entries
from .summary import Granularity, aggregate_entries, render_summary

__all__ = [
    "Entry",
    "EntryStore",
    "EmptyLogError",
    "EntryAlreadyStoppedError",
    "Granularity",
    "LogFormatError",
    "TimelogError",
    "aggregate_entries",
    "build_app",
    "compare_entries",
    "format_duration",
    "format_entry",
    "get_log_path",
    "load_entries",
    "main",
    "render_summary",
    "save_entries",
]

_LOGGING_CONFIGURED = False


def configure_logging(level: int = logging.WARNING) -> None:
    """
    Configure logging once for the CLI.

    Parameters
    ----------
    level : int, optional
        Root logging level (default: WARNING).
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _LOGGING_CONFIGURED = True


def selected_granularities(
    yearly: bool,
    monthly: bool,
    weekly: bool,
    daily: bool,
) -> List[Granularity]:
    """
    Map summary flags to granularities.

    Examples
    --------
    >>> selected_granularities(False, True, False, True)
    [<Granularity.MONTHLY: 'monthly'>, <Granularity.DAILY: 'daily'>]
    """
    flags = [
        (yearly, Granularity.YEARLY),
        (monthly, Granularity.MONTHLY),
        (weekly, Granularity.WEEKLY),
        (daily, Granularity.DAILY),
    ]
    return [granularity for enabled, granularity in flags if enabled]


def build_app():
    """
    Build the Typer app lazily to keep fast-path imports light.

    Returns
    -------
    typer.Typer
        Configured Typer application for the timelog CLI.
    """
    import typer

    from . import workflow

    app = typer.Typer(
        help="Record work sessions and summarize time spent.",
        no_args_is_help=True,
    )

    def run_command(name: str, handler: Callable[..., int], *args) -> None:
        try:
            exit_code = handler(*args)
        except (TimelogError, OSError, UnicodeDecodeError) as exc:
            print(f"timelog: {name} failed: {exc}", file=sys.stderr)
            raise typer.Exit(code=1)
        raise typer.Exit(code=exit_code)

    @app.callback()
    def main_callback(
        ctx: typer.Context,
        log_file: Optional[Path] = typer.Option(
            None,
            "--log-file",
            "-l",
            help="Log file path (default: $TIMELOG_PATH or ./log.json).",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Show debug logging on stderr.",
        ),
    ):
        configure_logging(logging.DEBUG if verbose else logging.WARNING)
        ctx.obj = get_log_path(log_file)

    @app.command("print")
    def print_cmd(ctx: typer.Context):
        """
        Print all log entries.
        """
        run_command("print", workflow.run_print, ctx.obj)

    @app.command("start")
    def start_cmd(ctx: typer.Context):
        """
        Create a new log entry with a goal read from stdin.
        """
        run_command("start", workflow.run_start, ctx.obj)

    @app.command("stop")
    def stop_cmd(ctx: typer.Context):
        """
        Complete the latest log entry with a result read from stdin.
        """
        run_command("stop", workflow.run_stop, ctx.obj)

    @app.command("note")
    def note_cmd(ctx: typer.Context):
        """
        Add a note read from stdin to the latest log entry.
        """
        run_command("note", workflow.run_note, ctx.obj)

    @app.command("summary")
    def summary_cmd(
        ctx: typer.Context,
        yearly: bool = typer.Option(False, "--yearly", "-y", help="Totals per year."),
        monthly: bool = typer.Option(False, "--monthly", "-m", help="Totals per month."),
        weekly: bool = typer.Option(False, "--weekly", "-w", help="Totals per ISO week."),
        daily: bool = typer.Option(False, "--daily", "-d", help="Totals per day."),
    ):
        """
        Summarize completed entries by calendar period.
        """
        granularities = selected_granularities(yearly, monthly, weekly, daily)
        if not granularities:
            raise typer.BadParameter(
                "Pass at least one of --yearly, --monthly, --weekly, --daily."
            )
        run_command("summary", workflow.run_summary, ctx.obj, granularities)

    return app


def main():
    """
    Entry point for the timelog command.
    """
    app = build_app()
    app()


if __name__ == "__main__":
    main()
