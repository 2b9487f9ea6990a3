"""Structural checks for GitHub Actions pipeline documents."""

from __future__ import annotations

from typing import Any, Dict, List

import yaml

from .dag import build_dag, topo_levels
from .errors import ValidationError
from .render import load_yaml


def _needs_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _validate_step(job_id: str, index: int, step: Any) -> List[str]:
    where = f"jobs.{job_id}.steps[{index}]"
    if not isinstance(step, dict):
        return [f"{where}: step must be a mapping"]
    has_run = "run" in step
    has_uses = "uses" in step
    if has_run and has_uses:
        return [f"{where}: step has both 'run' and 'uses'"]
    if not has_run and not has_uses:
        return [f"{where}: step has neither 'run' nor 'uses'"]
    key = "run" if has_run else "uses"
    if _blank(step[key]):
        return [f"{where}: '{key}' must be a non-empty string"]
    return []


def validate_workflow(data: Any) -> List[str]:
    """
    Check a parsed pipeline document.

    Returns a list of human readable problems; empty means valid.
    """
    if not isinstance(data, dict):
        return ["document must be a mapping"]

    problems: List[str] = []

    if _blank(data.get("name")):
        problems.append("'name' must be a non-empty string")

    # PyYAML reads an unquoted `on:` key as boolean True
    on = data.get("on", data.get(True))
    if not isinstance(on, dict) or not on:
        problems.append("'on' must be a non-empty trigger mapping")

    env = data.get("env")
    if env is not None and not isinstance(env, dict):
        problems.append("'env' must be a mapping")

    jobs = data.get("jobs")
    if not isinstance(jobs, dict) or not jobs:
        problems.append("'jobs' must be a non-empty mapping")
        return problems

    needs_by_job: Dict[str, List[Any]] = {}
    for job_id, job in jobs.items():
        if not isinstance(job, dict):
            problems.append(f"jobs.{job_id}: job must be a mapping")
            continue
        if _blank(job.get("runs-on")):
            problems.append(f"jobs.{job_id}: 'runs-on' must be a non-empty string")
        steps = job.get("steps")
        if not isinstance(steps, list) or not steps:
            problems.append(f"jobs.{job_id}: 'steps' must be a non-empty list")
        else:
            for i, step in enumerate(steps):
                problems.extend(_validate_step(job_id, i, step))

        needs = _needs_list(job.get("needs"))
        for dep in needs:
            if not isinstance(dep, str) or dep not in jobs:
                problems.append(f"jobs.{job_id}: needs unknown job '{dep}'")
        needs_by_job[job_id] = [d for d in needs if isinstance(d, str) and d in jobs]

    if needs_by_job and len(needs_by_job) == len(jobs):
        try:
            topo_levels(*build_dag(needs_by_job))
        except ValueError as e:
            problems.append(str(e))

    return problems


def validate_yaml(text: str) -> List[str]:
    """Parse YAML text and validate it; parse errors are reported as problems."""
    try:
        data = load_yaml(text)
    except yaml.YAMLError as e:
        return [f"invalid YAML: {e}"]
    return validate_workflow(data)


def check_workflow(data: Any) -> None:
    """Raise ValidationError listing every problem in `data`."""
    problems = validate_workflow(data)
    if problems:
        raise ValidationError(problems=problems, details={"count": len(problems)})
