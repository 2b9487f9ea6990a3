# harness.py
from __future__ import annotations

import os
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .extractor import ExtractedCommand
from .settings import DEFAULT_COMMAND_TIMEOUT
from .ui.console import get_console


TIMEOUT_EXIT_CODE = 124
SKIP_BUILD_REASON = "build commands skipped (--skip-build)"
SKIP_EXPRESSION_REASON = "contains GitHub Actions expressions"

# the hosted runner exposes these files to every step
OUTPUT_FILES = ("GITHUB_OUTPUT", "GITHUB_ENV", "GITHUB_STEP_SUMMARY")


@dataclass
class CommandResult:
    step_name: str
    command: str
    category: str
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    skipped: bool = False
    skip_reason: Optional[str] = None

    @property
    def passed(self) -> bool:
        return not self.skipped and self.exit_code == 0

    @property
    def status(self) -> str:
        if self.skipped:
            return "SKIP"
        return "PASS" if self.exit_code == 0 else "FAIL"


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _skip_reason(command: ExtractedCommand, skip_build: bool) -> Optional[str]:
    if skip_build and command.category == "build":
        return SKIP_BUILD_REASON
    if command.has_platform_expressions:
        return SKIP_EXPRESSION_REASON
    return None


def _command_env(output_dir: Path) -> Dict[str, str]:
    env = os.environ.copy()
    env["CI"] = "true"
    for name in OUTPUT_FILES:
        path = output_dir / name.lower()
        path.touch()
        env[name] = str(path)
    return env


def _run_command(
    command: ExtractedCommand,
    cwd: Path,
    env: Dict[str, str],
    timeout: float,
) -> CommandResult:
    text = command.command.strip()
    # multi-line scripts run through bash
    args = ["bash", "-c", text] if "\n" in text else text

    started = time.monotonic()
    try:
        proc = subprocess.run(
            args,
            shell=isinstance(args, str),
            cwd=str(cwd),
            env=env,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
        exit_code, stdout, stderr = proc.returncode, proc.stdout, proc.stderr
    except subprocess.TimeoutExpired as e:
        exit_code = TIMEOUT_EXIT_CODE
        stdout = _as_text(e.stdout)
        stderr = _as_text(e.stderr) + f"\ncommand timed out after {timeout:g}s"

    return CommandResult(
        step_name=command.step_name,
        command=command.command,
        category=command.category,
        exit_code=exit_code,
        stdout=stdout[-4000:],
        stderr=stderr[-4000:],
        duration_ms=int((time.monotonic() - started) * 1000),
    )


def _as_text(data: object) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_commands(
    commands: Sequence[ExtractedCommand],
    fixture_dir: str | Path,
    *,
    continue_on_error: bool = False,
    timeout: float = DEFAULT_COMMAND_TIMEOUT,
    skip_build: bool = True,
    verbose: bool = False,
) -> List[CommandResult]:
    """
    Run extracted commands one by one inside `fixture_dir`.

    Args:
        commands: Commands in execution order
        fixture_dir: Application directory the commands run in
        continue_on_error: Keep going after a failed command
        timeout: Per-command timeout in seconds
        skip_build: Skip commands categorized as `build`
        verbose: Print each command and its output while running

    Returns:
        One result per command; commands after a halting failure are absent.
    """
    cwd = Path(fixture_dir).resolve()
    if not cwd.is_dir():
        raise FileNotFoundError(f"Fixture directory not found: {cwd}")

    console = get_console()
    results: List[CommandResult] = []

    with tempfile.TemporaryDirectory(prefix="rnci-") as tmp:
        env = _command_env(Path(tmp))

        for command in commands:
            reason = _skip_reason(command, skip_build)
            if reason is not None:
                results.append(
                    CommandResult(
                        step_name=command.step_name,
                        command=command.command,
                        category=command.category,
                        exit_code=None,
                        skipped=True,
                        skip_reason=reason,
                    )
                )
                console.print_command_skipped(command.step_name, reason)
                continue

            console.print_command_start(command.step_name, command.command, verbose=verbose)
            result = _run_command(command, cwd, env, timeout)
            results.append(result)
            if verbose:
                console.print_command_output(result.stdout, result.stderr)

            if not result.passed and not continue_on_error:
                break

    return results


def all_passed(results: Sequence[CommandResult]) -> bool:
    """True iff every non-skipped command exited 0."""
    return all(r.passed for r in results if not r.skipped)


def summarize(results: Sequence[CommandResult]) -> Dict[str, int]:
    return {
        "passed": sum(1 for r in results if r.status == "PASS"),
        "failed": sum(1 for r in results if r.status == "FAIL"),
        "skipped": sum(1 for r in results if r.status == "SKIP"),
    }
