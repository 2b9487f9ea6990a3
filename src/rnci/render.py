"""YAML rendering and parsing for pipeline documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from .model import PipelineDocument


class _WorkflowDumper(yaml.SafeDumper):
    # shared constant lists must not turn into &anchors / *aliases
    def ignore_aliases(self, data: Any) -> bool:
        return True


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_WorkflowDumper.add_representer(str, _str_representer)


def render_document(document: PipelineDocument) -> str:
    """Render a document as YAML, keeping insertion order and unicode."""
    return dump_yaml(document.to_dict())


def dump_yaml(data: Dict[str, Any]) -> str:
    return yaml.dump(
        data,
        Dumper=_WorkflowDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=4096,
    )


def load_yaml(text: str) -> Any:
    return yaml.safe_load(text)


def load_yaml_file(file_path: str | Path) -> Any:
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_workflow(document: PipelineDocument, path: str | Path) -> Path:
    """Write a rendered document, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_document(document), encoding="utf-8")
    return out
