"""Console output formatting utilities for rnci."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from rnci.extractor import ExtractedCommand
    from rnci.harness import CommandResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        entry: str,
        index: int,
        fixture: str,
        package_manager: str,
        command_count: int,
    ) -> None:
        """Print matrix entry run information."""
        print("\nRUN STARTED")
        print(f"Entry: {entry} (#{index})")
        print(f"Fixture: {fixture}")
        print(f"Package manager: {package_manager}")
        print(f"Commands: {command_count}")
        print()

    def print_commands(self, commands: Sequence["ExtractedCommand"]) -> None:
        """List extracted commands with their categories."""
        for cmd in commands:
            marker = " [expr]" if cmd.has_platform_expressions else ""
            first_line = cmd.command.strip().splitlines()[0] if cmd.command.strip() else ""
            print(f"  [{cmd.category}] {cmd.step_name}: {first_line}{marker}")

    def print_command_start(self, name: str, command: str, verbose: bool = False) -> None:
        print(f"STEP: {name}")
        if verbose:
            for line in command.strip().splitlines():
                print(f"  $ {line}")

    def print_command_skipped(self, name: str, reason: str) -> None:
        print(f"STEP: {name}")
        print(f"STATUS: skipped ({reason})")

    def print_command_output(self, stdout: str, stderr: str) -> None:
        if stdout.strip():
            print(stdout.rstrip())
        if stderr.strip():
            print(stderr.rstrip(), file=sys.stderr)

    def print_results(self, results: Sequence["CommandResult"]) -> None:
        """Print final results table with the head of stderr for failures."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for r in results:
            timing = f" ({r.duration_ms}ms)" if not r.skipped else ""
            print(f"  {r.status:<4}  [{r.category}] {r.step_name}{timing}")
            if r.skipped and r.skip_reason:
                print(f"        {r.skip_reason}")
            elif r.status == "FAIL":
                print(f"        exit code: {r.exit_code}")
                for line in r.stderr.strip().splitlines()[:5]:
                    print(f"        {line}")
        passed = sum(1 for r in results if r.status == "PASS")
        failed = sum(1 for r in results if r.status == "FAIL")
        skipped = sum(1 for r in results if r.status == "SKIP")
        print("-" * 40)
        print(f"  {passed} passed, {failed} failed, {skipped} skipped")

    def print_problems(self, source: str, problems: Sequence[str]) -> None:
        """Print validation problems for a workflow file."""
        print(f"\nINVALID: {source}", file=sys.stderr)
        for p in problems:
            print(f"  - {p}", file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
