# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Mapping, Set, Tuple


def build_dag(needs_by_job: Mapping[str, Iterable[str]]) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build a DAG from a job id -> needs mapping.

    Edges run from each needed job to the job that needs it. Raises
    ValueError when a job needs an id that is not in the mapping.
    """
    name_set = set(needs_by_job)
    adj: Dict[str, Set[str]] = {n: set() for n in name_set}
    indeg: Dict[str, int] = {n: 0 for n in name_set}

    for job_id, needs in needs_by_job.items():
        for dep in needs:
            if dep not in name_set:
                raise ValueError(
                    f"Job '{job_id}' needs missing job '{dep}'. "
                    f"Known jobs: {sorted(name_set)}"
                )
            if job_id not in adj[dep]:
                adj[dep].add(job_id)
                indeg[job_id] += 1

    return adj, indeg


def topo_levels(adj: Dict[str, Set[str]], indeg: Dict[str, int]) -> List[List[str]]:
    """
    Convert DAG into topological "levels" (stages).
    Jobs inside one level do not depend on each other.
    """
    indeg = dict(indeg)  # copy (we mutate it)
    q = deque(sorted([n for n, d in indeg.items() if d == 0]))

    levels: List[List[str]] = []
    processed = 0

    while q:
        level_size = len(q)
        level: List[str] = []

        for _ in range(level_size):
            node = q.popleft()
            level.append(node)
            processed += 1

            for child in sorted(adj.get(node, set())):
                indeg[child] -= 1
                if indeg[child] == 0:
                    q.append(child)

        levels.append(level)

    if processed != len(indeg):
        remaining = sorted([n for n, d in indeg.items() if d > 0])
        raise ValueError(f"DAG has a cycle. Stuck nodes: {remaining}")

    return levels
