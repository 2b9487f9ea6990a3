# extractor.py
"""
Derive the shell commands a compiled pipeline would execute.

Only `run` steps are extracted; action steps need the hosted runner.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .compiler import TEST_JOB, compile_config
from .config import FormValues


CATEGORIES = (
    "install",
    "typecheck",
    "lint",
    "format",
    "jest",
    "rntl",
    "hooks",
    "cache-dir",
    "eas-install",
    "build",
    "other",
)

# ${{ ... }} only resolves on the hosted runner
_EXPRESSION = re.compile(r"\$\{\{.*?\}\}", re.DOTALL)
_INSTALL_ONLY = re.compile(r"^(yarn install|npm install|pnpm install)$")

BUILD_JOB_PREFIX = "build-and-"


@dataclass(frozen=True)
class ExtractedCommand:
    step_name: str
    command: str
    category: str
    has_platform_expressions: bool


def has_platform_expressions(command: str) -> bool:
    return bool(_EXPRESSION.search(command))


def categorize_command(step_name: str, command: str) -> str:
    """
    Classify a step by its label and command text.

    Checks run from most to least specific; the first match wins.
    """
    name = step_name.lower()
    cmd = command.strip()
    lower = cmd.lower()

    if "install dependencies" in name or _INSTALL_ONLY.match(cmd):
        return "install"
    if "typescript" in name or "tsc" in lower or "typecheck" in lower or "type-check" in lower:
        return "typecheck"
    if "eslint" in name or "eslint" in lower or "run lint" in lower:
        return "lint"
    if "prettier" in name or "prettier" in lower or "format:check" in lower:
        return "format"
    if "renderhook" in name or "test:hooks" in lower:
        return "hooks"
    if "react native testing library" in name or "test:rntl" in lower:
        return "rntl"
    if "jest" in name or (
        "test" in name
        and "rntl" not in name
        and "hook" not in name
        and "react native testing" not in name
    ):
        if "test:rntl" in lower:
            return "rntl"
        if "test:hooks" in lower:
            return "hooks"
        return "jest"
    if "cache directory" in name or "cache dir" in lower or "npm config get cache" in lower or "pnpm store path" in lower:
        return "cache-dir"
    if (
        "eas-cli" in lower
        or "yarn global add eas" in lower
        or "npm install -g eas" in lower
        or "pnpm add -g eas" in lower
    ):
        return "eas-install"
    if "eas build" in lower or "eas submit" in lower:
        return "build"
    return "other"


def _run_steps(job: Optional[Dict[str, Any]]) -> List[ExtractedCommand]:
    if not job:
        return []
    out: List[ExtractedCommand] = []
    for step in job.get("steps", []):
        run = step.get("run")
        if not run:
            continue
        name = step.get("name") or ""
        out.append(
            ExtractedCommand(
                step_name=name or "unnamed",
                command=run,
                category=categorize_command(name, run),
                has_platform_expressions=has_platform_expressions(run),
            )
        )
    return out


def _jobs(config: FormValues) -> Dict[str, Any]:
    return compile_config(config).to_dict()["jobs"]


def extract_test_commands(config: FormValues) -> List[ExtractedCommand]:
    """Commands of the test job, in step order (empty without a test job)."""
    return _run_steps(_jobs(config).get(TEST_JOB))


def extract_build_commands(config: FormValues, *, include_build_commands: bool = False) -> List[ExtractedCommand]:
    """
    Commands of the build job.

    `build` and `other` steps start real builds or need hosted context; they
    are dropped unless include_build_commands is set.
    """
    jobs = _jobs(config)
    build_job = next((j for job_id, j in jobs.items() if job_id.startswith(BUILD_JOB_PREFIX)), None)
    commands = _run_steps(build_job)
    if include_build_commands:
        return commands
    return [c for c in commands if c.category not in ("build", "other")]


def extract_all_commands(
    config: FormValues,
    *,
    include_platform_expressions: bool = False,
    include_build_commands: bool = False,
) -> List[ExtractedCommand]:
    commands = extract_test_commands(config) + extract_build_commands(
        config, include_build_commands=include_build_commands
    )
    if include_platform_expressions:
        return commands
    return [c for c in commands if not c.has_platform_expressions]
