"""
Output - Console output formatting.

Provides pretty-printed output with colors and formatting.
"""

import sys
from datetime import datetime
from typing import Optional

from ..application.sync import DrainResult
from ..core.domain.entities import QueuedOperation, SyncLogEntry, SyncStatus


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """Unicode symbols for output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    CLOCK = "⏱"

    BOX_H = "─"


def format_time(value: Optional[datetime]) -> str:
    """Local wall-clock rendering, '-' when absent."""
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class Console:
    """Console output helper with colors and formatting."""

    def __init__(self, color: bool = True, verbose: bool = False):
        self.color = color and sys.stdout.isatty()
        self.verbose = verbose

    def _c(self, text: str, *codes: str) -> str:
        """Apply color codes to text."""
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "") -> None:
        """Print text."""
        print(text)

    def header(self, text: str) -> None:
        """Print a header."""
        width = max(len(text) + 4, 50)
        border = Colors.CYAN + Symbols.BOX_H * width + Colors.RESET if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        """Print a section header."""
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        """Print success message."""
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """Print error message."""
        self.print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED))

    def warning(self, text: str) -> None:
        """Print warning message."""
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        """Print info message."""
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        """Print detail text (dimmed)."""
        self.print(self._c(f"    {text}", Colors.DIM))

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """Print a simple table."""
        # Calculate column widths
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        # Print header
        header_line = "  " + "  ".join(
            self._c(h.ljust(widths[i]), Colors.BOLD)
            for i, h in enumerate(headers)
        )
        self.print(header_line)
        self.print("  " + "  ".join("-" * w for w in widths))

        # Print rows
        for row in rows:
            row_line = "  " + "  ".join(
                str(cell).ljust(widths[i]) if i < len(widths) else str(cell)
                for i, cell in enumerate(row)
            )
            self.print(row_line)

    # -------------------------------------------------------------------------
    # Domain Output
    # -------------------------------------------------------------------------

    def sync_status(self, status: SyncStatus) -> None:
        """Print the sync status summary."""
        self.section("Sync Status")
        self.print()

        stats = [
            ["Registered", str(status.total_registered)],
            ["Synced", str(status.synced)],
            ["Pending", str(status.pending)],
            ["Verified", str(status.verified)],
            ["Pending Verification", str(status.pending_verification)],
            ["Last Sync", format_time(status.last_sync)],
            ["Next Sync", format_time(status.next_sync)],
        ]
        self.table(["Metric", "Value"], stats)

        self.print()
        if status.pending:
            self.warning(f"{status.pending} operation(s) waiting to sync")
        else:
            self.success("Everything is synced")

    def queued_operations(self, operations: list[QueuedOperation]) -> None:
        """Print the queue contents in drain order."""
        self.section(f"Queued Operations ({len(operations)})")
        self.print()

        if not operations:
            self.info("Queue is empty")
            return

        rows = [
            [op.id[:12], op.kind, f"{op.method} {op.endpoint}", str(op.retry_count),
             format_time(op.enqueued_at)]
            for op in operations
        ]
        self.table(["ID", "Kind", "Request", "Retries", "Queued"], rows)

    def sync_history(self, entries: list[SyncLogEntry]) -> None:
        """Print the drain history, newest first."""
        self.section(f"Sync History ({len(entries)})")
        self.print()

        if not entries:
            self.info("No syncs recorded yet")
            return

        rows = [
            [format_time(e.timestamp), e.trigger, e.status,
             str(e.synced), str(e.failed), str(e.deferred)]
            for e in reversed(entries)
        ]
        self.table(["Time", "Trigger", "Status", "Synced", "Dropped", "Deferred"], rows)

    def drain_result(self, result: DrainResult) -> None:
        """Print a drain result summary."""
        self.section("Sync Summary")
        self.print()

        if result.skipped:
            self.warning("Offline - sync skipped")
            return

        stats = [
            ["Synced", str(result.synced)],
            ["Dropped", str(result.failed)],
            ["Deferred", str(result.deferred)],
        ]
        self.table(["Metric", "Count"], stats)

        # Dropped operations
        if result.dropped:
            self.print()
            self.error(f"{len(result.dropped)} operation(s) dropped:")
            for dropped in result.dropped[:5]:
                self.detail(f"{dropped.operation.describe()}: {dropped.reason}")
            if len(result.dropped) > 5:
                self.detail(f"... and {len(result.dropped) - 5} more")

        if result.deferred:
            self.print()
            self.warning(f"{result.deferred} operation(s) will be retried on the next sync")

        # Final status
        self.print()
        if result.success:
            self.success("Sync completed successfully!")
        elif result.failed:
            self.error("Sync completed with dropped operations")
        else:
            self.warning("Sync completed, some operations are still pending")

    def confirm(self, message: str) -> bool:
        """Ask for confirmation."""
        prompt = self._c(f"\n{Symbols.WARN} {message} (y/N): ", Colors.YELLOW)
        try:
            response = input(prompt).strip().lower()
            return response in ("y", "yes")
        except (EOFError, KeyboardInterrupt):
            self.print()
            return False
