# matrix.py
"""
Test matrices over the configuration space.

Three modes:
  - curated: hand-picked entries for fast pull-request checks
  - exhaustive: full cross product, one entry per distinct command signature
  - fixed-profile: package managers x EAS build profiles
"""
from __future__ import annotations

import itertools
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from pydantic import Field, model_validator

from .config import PACKAGE_MANAGERS, TEST_KINDS, AdvancedOptions, ConfigModel, FormValues
from .errors import ConfigError, MatrixIndexError
from .signature import command_signature


T = TypeVar("T")

MODES: Tuple[str, ...] = ("curated", "exhaustive", "fixed-profile")

FIXTURES: Dict[str, str] = {
    "yarn": "yarn-app",
    "npm": "npm-app",
    "pnpm": "pnpm-app",
}


class MatrixEntry(ConfigModel):
    name: str
    config: FormValues = Field(default_factory=FormValues)
    fixture: str

    @model_validator(mode="before")
    @classmethod
    def _fixture_from_package_manager(cls, data: Any) -> Any:
        # entries written by hand may leave the fixture out
        if isinstance(data, dict) and not data.get("fixture"):
            config = FormValues.from_dict(data.get("config") or {})
            data = {**data, "config": config, "fixture": fixture_for(config.package_manager)}
        return data


def fixture_for(package_manager: str) -> str:
    return FIXTURES[package_manager]


def base_config(*, options: Optional[Dict[str, bool]] = None, **overrides: Any) -> FormValues:
    """
    Starting point for every matrix entry: github-release, dev build, push
    trigger, yarn, caching on and nothing else.
    """
    config = FormValues(
        storage_type="github-release",
        build_types=("dev",),
        tests=(),
        triggers=("push-main",),
        package_manager="yarn",
        advanced_options=AdvancedOptions(caching=True),
    )
    if overrides:
        config = config.updated(**overrides)
    if options:
        config = config.with_options(**options)
    return config


def make_entry(name: str, config: FormValues) -> MatrixEntry:
    return MatrixEntry(name=name, config=config, fixture=fixture_for(config.package_manager))


# ---------------------------------------------------------------------
# Generic enumeration helpers
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Axis:
    """A named dimension of the configuration space."""
    name: str
    values: Tuple[Any, ...]


def cross_product(
    axes: Sequence[Axis],
    where: Optional[Callable[[Dict[str, Any]], bool]] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Yield one dict per point of the cross product.

    The first axis is the outermost loop; `where` filters points out.
    """
    names = [a.name for a in axes]
    for values in itertools.product(*(a.values for a in axes)):
        point = dict(zip(names, values))
        if where is None or where(point):
            yield point


def dedup_first_seen(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Keep the first item for every key, preserving order."""
    seen = set()
    out: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def subsets_of(kinds: Sequence[str] = TEST_KINDS) -> Tuple[Tuple[str, ...], ...]:
    """Every subset of `kinds`, in binary counting order starting from ()."""
    return tuple(
        tuple(k for i, k in enumerate(kinds) if mask & (1 << i))
        for mask in range(1 << len(kinds))
    )


# ---------------------------------------------------------------------
# Curated
# ---------------------------------------------------------------------

ALL_TESTS = {"jest_tests": True, "rntl_tests": True, "render_hook_tests": True}

# (name suffix, overrides, advanced options); crossed with every package manager
_CURATED_SCENARIOS: Tuple[Tuple[str, Dict[str, Any], Dict[str, bool]], ...] = (
    ("no-tests", {}, {}),
    ("typescript-only", {"tests": ("typescript",)}, {}),
    ("all-static", {"tests": TEST_KINDS}, {}),
    ("jest-only", {}, {"jest_tests": True}),
    ("all-tests", {"tests": TEST_KINDS}, ALL_TESTS),
)

# single-manager variants
_CURATED_EXTRAS: Tuple[Tuple[str, str, Dict[str, Any], Dict[str, bool]], ...] = (
    ("npm", "no-caching", {"tests": ("typescript", "eslint")}, {"jest_tests": True, "caching": False}),
    ("yarn", "no-caching", {"tests": ("typescript", "eslint")}, {"jest_tests": True, "caching": False}),
    ("npm", "eslint-only", {"tests": ("eslint",)}, {}),
    ("npm", "rntl-hooks", {}, {"rntl_tests": True, "render_hook_tests": True}),
    ("yarn", "prettier-only", {"tests": ("prettier",)}, {}),
)

CURATED_PACKAGE_MANAGERS: Tuple[str, ...] = ("npm", "yarn", "pnpm")


def generate_curated_matrix() -> List[MatrixEntry]:
    entries: List[MatrixEntry] = []
    for suffix, overrides, options in _CURATED_SCENARIOS:
        for pm in CURATED_PACKAGE_MANAGERS:
            config = base_config(package_manager=pm, options=options, **overrides)
            entries.append(make_entry(f"{pm}-{suffix}", config))
    for pm, suffix, overrides, options in _CURATED_EXTRAS:
        config = base_config(package_manager=pm, options=options, **overrides)
        entries.append(make_entry(f"{pm}-{suffix}", config))
    return entries


# ---------------------------------------------------------------------
# Exhaustive
# ---------------------------------------------------------------------

_FLAG_LABELS = (("jest_tests", "jest"), ("rntl_tests", "rntl"), ("render_hook_tests", "hooks"))


def exhaustive_axes(package_managers: Sequence[str] = PACKAGE_MANAGERS) -> List[Axis]:
    """Axes of the exhaustive matrix, outermost first."""
    return [
        Axis("package_manager", tuple(package_managers)),
        Axis("tests", subsets_of(TEST_KINDS)),
        Axis("jest_tests", (False, True)),
        Axis("rntl_tests", (False, True)),
        Axis("render_hook_tests", (False, True)),
        Axis("caching", (True, False)),
    ]


def _has_test_work(point: Dict[str, Any]) -> bool:
    return bool(point["tests"]) or any(point[flag] for flag, _ in _FLAG_LABELS)


def _caching_matters(point: Dict[str, Any]) -> bool:
    # without test-phase commands caching changes nothing: keep caching-on only
    return point["caching"] or _has_test_work(point)


def exhaustive_name(point: Dict[str, Any]) -> str:
    parts = list(point["tests"]) + [label for flag, label in _FLAG_LABELS if point[flag]]
    desc = "-".join(parts) if parts else "no-tests"
    suffix = "" if point["caching"] else "-nocache"
    return f"{point['package_manager']}-{desc}{suffix}"


def generate_exhaustive_matrix(package_managers: Sequence[str] = PACKAGE_MANAGERS) -> List[MatrixEntry]:
    """
    Cross product of package managers, test subsets, test flags and caching,
    keeping the first entry for every distinct command signature.
    """
    candidates: List[Tuple[str, MatrixEntry]] = []
    for point in cross_product(exhaustive_axes(package_managers), where=_caching_matters):
        config = base_config(
            package_manager=point["package_manager"],
            tests=point["tests"],
            options={
                "jest_tests": point["jest_tests"],
                "rntl_tests": point["rntl_tests"],
                "render_hook_tests": point["render_hook_tests"],
                "caching": point["caching"],
            },
        )
        candidates.append((command_signature(config), make_entry(exhaustive_name(point), config)))

    kept = dedup_first_seen(candidates, key=lambda pair: pair[0])
    return [entry for _sig, entry in kept]


# ---------------------------------------------------------------------
# Fixed profile
# ---------------------------------------------------------------------

# (preset, build type)
PROFILE_PRESETS: Tuple[Tuple[str, str], ...] = (
    ("development", "dev"),
    ("production-apk", "prod-apk"),
    ("production-aab", "prod-aab"),
)


def generate_fixed_profile_matrix(package_managers: Sequence[str] = PACKAGE_MANAGERS) -> List[MatrixEntry]:
    entries: List[MatrixEntry] = []
    for pm in package_managers:
        for preset, build_type in PROFILE_PRESETS:
            config = base_config(package_manager=pm, build_types=(build_type,))
            entries.append(make_entry(f"{pm}-eas-{preset}", config))
    return entries


# ---------------------------------------------------------------------
# Dispatch + persistence
# ---------------------------------------------------------------------

_GENERATORS: Dict[str, Callable[[], List[MatrixEntry]]] = {
    "curated": generate_curated_matrix,
    "exhaustive": generate_exhaustive_matrix,
    "fixed-profile": generate_fixed_profile_matrix,
}


def generate_matrix(mode: str) -> List[MatrixEntry]:
    try:
        generator = _GENERATORS[mode]
    except KeyError:
        raise ConfigError(message=f"unknown matrix mode: {mode!r}", details={"allowed": ", ".join(MODES)}) from None
    return generator()


def matrix_filename(mode: str) -> str:
    return f"{mode}-matrix.json"


def save_matrix(entries: Sequence[MatrixEntry], path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps([e.to_dict() for e in entries], indent=2) + "\n", encoding="utf-8")
    return out


def load_matrix(path: str | Path) -> List[MatrixEntry]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Matrix file not found: {p}")
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ConfigError(message="matrix file must hold a JSON list", details={"path": str(p)})
    return [MatrixEntry.from_dict(item) for item in data]


def load_entry(path: str | Path, index: int) -> MatrixEntry:
    entries = load_matrix(path)
    if not entries:
        raise MatrixIndexError(
            message=f"Config index {index} out of range: the matrix is empty",
            details={"path": str(path)},
        )
    if not 0 <= index < len(entries):
        raise MatrixIndexError(
            message=f"Config index {index} out of range (0-{len(entries) - 1})",
            details={"path": str(path)},
        )
    return entries[index]
