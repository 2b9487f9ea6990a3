# model.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Step:
    """
    A single step inside a pipeline job.

    Exactly one of `run` (shell command) or `uses` (action reference) is set.
    """
    name: Optional[str] = None
    run: Optional[str] = None
    uses: Optional[str] = None
    id: Optional[str] = None
    if_: Optional[str] = None
    with_: Optional[Dict[str, Any]] = None
    env: Optional[Dict[str, str]] = None

    def __post_init__(self) -> None:
        has_run = bool(self.run and self.run.strip())
        has_uses = bool(self.uses and self.uses.strip())
        if has_run == has_uses:
            raise ValueError(f"step {self.name!r} must set exactly one of run/uses")

    @property
    def is_shell(self) -> bool:
        return self.run is not None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.name is not None:
            out["name"] = self.name
        if self.id is not None:
            out["id"] = self.id
        if self.if_ is not None:
            out["if"] = self.if_
        if self.uses is not None:
            out["uses"] = self.uses
        if self.with_:
            out["with"] = copy.deepcopy(self.with_)
        if self.run is not None:
            out["run"] = self.run
        if self.env:
            out["env"] = dict(self.env)
        return out


@dataclass(frozen=True)
class Job:
    """A pipeline job: runner label, guard, dependencies and ordered steps."""
    id: str
    steps: Tuple[Step, ...]
    runs_on: str = "ubuntu-latest"

    # ids of jobs that must finish before this one
    needs: Tuple[str, ...] = ()
    if_: Optional[str] = None
    strategy: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.needs:
            out["needs"] = self.needs[0] if len(self.needs) == 1 else list(self.needs)
        if self.if_ is not None:
            out["if"] = self.if_
        if self.strategy:
            out["strategy"] = copy.deepcopy(self.strategy)
        out["runs-on"] = self.runs_on
        out["steps"] = [s.to_dict() for s in self.steps]
        return out


@dataclass(frozen=True)
class PipelineDocument:
    """Root of a compiled pipeline: name, triggers, environment and jobs."""
    name: str
    on: Dict[str, Any]
    env: Dict[str, str] = field(default_factory=dict)
    jobs: Dict[str, Job] = field(default_factory=dict)

    def job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "on": copy.deepcopy(self.on),
            "env": dict(self.env),
            "jobs": {job_id: j.to_dict() for job_id, j in self.jobs.items()},
        }
