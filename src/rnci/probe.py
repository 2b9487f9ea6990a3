"""Inspect a local app and derive the configuration its scripts support."""

from __future__ import annotations

import json
from pathlib import Path
from typing import FrozenSet, List, Sequence

from .config import AdvancedOptions, FormValues
from .extractor import ExtractedCommand


# extractor category -> package.json script it runs
SCRIPT_FOR_CATEGORY = {
    "lint": "lint",
    "format": "format:check",
    "jest": "test",
    "rntl": "test:rntl",
    "hooks": "test:hooks",
}

LOCK_FILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("package-lock.json", "npm"),
    ("yarn.lock", "yarn"),
)


def detect_scripts(package_json: str | Path) -> FrozenSet[str]:
    """Script names declared in package.json (empty when the file is missing)."""
    path = Path(package_json)
    if not path.exists():
        return frozenset()
    data = json.loads(path.read_text(encoding="utf-8"))
    return frozenset((data.get("scripts") or {}).keys())


def detect_package_manager(app_dir: str | Path) -> str:
    root = Path(app_dir)
    for lock_file, pm in LOCK_FILES:
        if (root / lock_file).exists():
            return pm
    return "yarn"


def has_tsconfig(app_dir: str | Path) -> bool:
    return (Path(app_dir) / "tsconfig.json").exists()


def config_for_scripts(scripts: FrozenSet[str], package_manager: str, *, typescript: bool = False) -> FormValues:
    tests: List[str] = []
    if typescript:
        tests.append("typescript")
    if "lint" in scripts:
        tests.append("eslint")
    if "format:check" in scripts:
        tests.append("prettier")

    return FormValues(
        package_manager=package_manager,
        storage_type="github-release",
        build_types=("dev",),
        tests=tuple(tests),
        triggers=("push-main",),
        advanced_options=AdvancedOptions(
            jest_tests="test" in scripts,
            rntl_tests="test:rntl" in scripts,
            render_hook_tests="test:hooks" in scripts,
            caching=True,
        ),
    )


def config_for_app(app_dir: str | Path) -> FormValues:
    root = Path(app_dir)
    return config_for_scripts(
        detect_scripts(root / "package.json"),
        detect_package_manager(root),
        typescript=has_tsconfig(root),
    )


def filter_available(
    commands: Sequence[ExtractedCommand],
    scripts: FrozenSet[str],
    app_dir: str | Path,
) -> List[ExtractedCommand]:
    """Drop commands whose script (or tsconfig.json) the app does not have."""
    out: List[ExtractedCommand] = []
    for cmd in commands:
        if cmd.category == "typecheck":
            if has_tsconfig(app_dir):
                out.append(cmd)
            continue
        required = SCRIPT_FOR_CATEGORY.get(cmd.category)
        if required is None or required in scripts:
            out.append(cmd)
    return out
