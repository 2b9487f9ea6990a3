# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RnciError(Exception):
    """
    Structured error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    kind: str
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class ConfigError(RnciError):
    kind: str = "invalid_config"
    message: str = "invalid configuration"


@dataclass
class ValidationError(RnciError):
    kind: str = "invalid_workflow"
    message: str = "workflow failed validation"
    problems: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  - {p}" for p in self.problems)
        return "\n".join(lines)


@dataclass
class MatrixIndexError(RnciError, IndexError):
    kind: str = "index_out_of_range"
    message: str = "config index out of range"
