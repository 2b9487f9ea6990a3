# src/rnci/dsl.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .model import Job, Step


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    id: str | None = None,
    if_: str | None = None,
    env: Optional[Dict[str, str]] = None,
) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, id=id, if_=if_, env=env)


def action(
    name: str,
    uses: str,
    *,
    with_: Optional[Dict[str, Any]] = None,
    id: str | None = None,
    if_: str | None = None,
    env: Optional[Dict[str, str]] = None,
) -> Step:
    """Create an action step (`uses:` reference plus its inputs)."""
    return Step(name=name, uses=uses, with_=with_, id=id, if_=if_, env=env)


def script(*lines: str) -> str:
    """Join shell lines into one multi-line command."""
    return "\n".join(lines)


# ---------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------

def all_of(*conditions: Optional[str]) -> Optional[str]:
    """
    AND together step guards, wrapping disjunctions in parentheses.
    None entries are ignored; returns None when nothing is left.
    """
    parts = [c for c in conditions if c]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return " && ".join(f"({p})" if "||" in p else p for p in parts)


def any_of(*conditions: str) -> str:
    return " || ".join(conditions)


# ---------------------------------------------------------------------
# Functional Job helper
# ---------------------------------------------------------------------

def job(
    id: str,
    *steps: Step,
    steps_list: Optional[Sequence[Step]] = None,
    needs: Optional[List[str]] = None,
    runs_on: str = "ubuntu-latest",
    if_: str | None = None,
    strategy: Optional[Dict[str, Any]] = None,
) -> Job:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(list(steps_list))
    steps_final.extend(list(steps))

    if not steps_final:
        raise ValueError(f"job({id!r}) must have at least one step")

    return Job(
        id=id,
        steps=tuple(steps_final),
        runs_on=runs_on,
        needs=tuple(needs or ()),
        if_=if_,
        strategy=strategy,
    )
