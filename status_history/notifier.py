"""
Console Notifier: structured console output for the batch jobs.

Formats backfill progress and summaries and the live status line, with
ANSI colors for readability.
"""

from __future__ import annotations

import sys
from typing import List

from status_history.models import BackfillReport, Heatmap, StatusSummary

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"


def _indicator_color(indicator: str) -> str:
    """Pick a color based on the live status indicator."""
    if indicator == "critical":
        return _RED
    elif indicator == "major":
        return _MAGENTA
    elif indicator == "minor":
        return _YELLOW
    else:
        return _GREEN


def print_banner(source_name: str) -> None:
    """Print the startup banner."""
    title = f"{source_name} Status History"
    print(
        f"\n{_BOLD}{_CYAN}+{'-' * 66}+\n"
        f"|  {title:<64}|\n"
        f"+{'-' * 66}+{_RESET}\n"
    )


def print_backfill_start(pages: List[int], cutoff_year: int) -> None:
    print(
        f"  {_BOLD}{_BLUE}> Scraping history pages{_RESET}"
        f"  {_DIM}(pages {', '.join(str(p) for p in pages)}; from {cutoff_year}){_RESET}"
    )


def print_month(name: str, year: int, count: int) -> None:
    print(f"    {_WHITE}{name} {year}{_RESET}: {count} incidents")


def print_found(count: int) -> None:
    print(f"\n  {_BOLD}{_YELLOW}Found {count} incidents to backfill.{_RESET}\n")


def print_progress(done: int, total: int) -> None:
    """Overwrite the current line with fetch progress."""
    print(f"  {_DIM}{done}/{total}{_RESET}", end="\r")
    sys.stdout.flush()


def print_backfill_summary(report: BackfillReport) -> None:
    print()
    print(f"  {_BOLD}{_GREEN}Done.{_RESET} Inserted {report.inserted} of {report.found} incidents.")
    if report.failed:
        print(f"  {_RED}{report.failed} incidents could not be fetched.{_RESET}")
    print(f"  {_DIM}Total in DB: {report.total_stored}{_RESET}\n")


def print_status(summary: StatusSummary, heatmap: Heatmap) -> None:
    """Print the live status line and a one-line heatmap digest."""
    color = _indicator_color(summary.indicator)
    active_days = sum(1 for day in heatmap.days if day.count)
    print(f"  {_BOLD}{color}{summary.label}{_RESET} {_DIM}{summary.duration}{_RESET}")
    print(
        f"  {_DIM}{len(heatmap.incidents)} incidents stored, "
        f"{active_days} days with incidents in the last year, "
        f"peak severity {heatmap.max_severity}{_RESET}\n"
    )


def print_shutdown() -> None:
    """Print shutdown message."""
    print(f"\n{_BOLD}{_CYAN}Stopped.{_RESET}\n")
