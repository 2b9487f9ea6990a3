"""Tests for matrix generation and persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rnci.errors import ConfigError, MatrixIndexError
from rnci.matrix import (
    Axis,
    base_config,
    cross_product,
    dedup_first_seen,
    generate_curated_matrix,
    generate_exhaustive_matrix,
    generate_fixed_profile_matrix,
    generate_matrix,
    load_entry,
    load_matrix,
    matrix_filename,
    save_matrix,
    subsets_of,
)
from rnci.signature import command_signature


@pytest.fixture(scope="module")
def exhaustive():
    return generate_exhaustive_matrix()


def test_cross_product_is_outer_to_inner() -> None:
    points = list(cross_product([Axis("a", (1, 2)), Axis("b", ("x", "y"))]))

    assert points == [{"a": 1, "b": "x"}, {"a": 1, "b": "y"}, {"a": 2, "b": "x"}, {"a": 2, "b": "y"}]


def test_cross_product_filter() -> None:
    points = list(cross_product([Axis("a", (1, 2, 3))], where=lambda p: p["a"] != 2))

    assert points == [{"a": 1}, {"a": 3}]


def test_dedup_keeps_first_seen() -> None:
    assert dedup_first_seen(["b1", "a1", "b2", "c1", "a2"], key=lambda s: s[0]) == ["b1", "a1", "c1"]


def test_subsets_in_binary_order() -> None:
    assert subsets_of(("t", "e", "p")) == (
        (),
        ("t",),
        ("e",),
        ("t", "e"),
        ("p",),
        ("t", "p"),
        ("e", "p"),
        ("t", "e", "p"),
    )


def test_base_config_defaults() -> None:
    config = base_config()

    assert config.storage_type == "github-release"
    assert config.build_types == ("dev",)
    assert config.triggers == ("push-main",)
    assert config.package_manager == "yarn"
    assert config.advanced_options.caching is True
    assert config.advanced_options.jest_tests is False


# ---------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------

def test_curated_matrix() -> None:
    entries = generate_curated_matrix()
    names = [e.name for e in entries]

    assert len(entries) == 20
    assert len(set(names)) == len(names)
    assert {"npm-no-tests", "yarn-all-tests", "pnpm-jest-only", "npm-rntl-hooks", "yarn-prettier-only"} <= set(names)
    for e in entries:
        assert e.fixture == f"{e.config.package_manager}-app"

    no_caching = next(e for e in entries if e.name == "yarn-no-caching")
    assert no_caching.config.advanced_options.caching is False
    all_tests = next(e for e in entries if e.name == "npm-all-tests")
    assert all_tests.config.advanced_options.render_hook_tests is True


def test_exhaustive_matrix_is_bounded_and_unique(exhaustive) -> None:
    names = [e.name for e in exhaustive]
    signatures = [command_signature(e.config) for e in exhaustive]

    assert 100 < len(exhaustive) < 500
    assert len(set(names)) == len(names)
    assert len(set(signatures)) == len(signatures)
    assert {e.config.package_manager for e in exhaustive} == {"yarn", "npm", "pnpm"}


def test_exhaustive_matrix_covers_every_test_kind_and_flag(exhaustive) -> None:
    for kind in ("typescript", "eslint", "prettier"):
        assert any(kind in e.config.tests for e in exhaustive)
    for flag in ("jest_tests", "rntl_tests", "render_hook_tests"):
        assert any(getattr(e.config.advanced_options, flag) for e in exhaustive)
    assert any(not e.config.advanced_options.caching for e in exhaustive)


def test_exhaustive_no_tests_entries_collapse(exhaustive) -> None:
    names = [e.name for e in exhaustive]

    assert names[0] == "yarn-no-tests"
    assert "yarn-no-tests-nocache" not in names
    # the empty test phase has one signature across package managers
    assert "npm-no-tests" not in names
    assert "npm-typescript" in names
    assert "pnpm-typescript-eslint-prettier-jest-rntl-hooks-nocache" in names


def test_exhaustive_with_two_package_managers() -> None:
    entries = generate_exhaustive_matrix(("yarn", "npm"))

    assert 100 < len(entries) < 500
    assert len(entries) == 2 * 127 - 1
    assert {e.config.package_manager for e in entries} == {"yarn", "npm"}


def test_fixed_profile_matrix() -> None:
    entries = generate_fixed_profile_matrix()

    assert len(entries) == 9
    assert all(len(e.config.build_types) == 1 for e in entries)
    assert [e.name for e in entries[:3]] == ["yarn-eas-development", "yarn-eas-production-apk", "yarn-eas-production-aab"]
    assert entries[2].config.build_types == ("prod-aab",)


def test_generate_matrix_dispatch() -> None:
    assert len(generate_matrix("fixed-profile")) == 9
    with pytest.raises(ConfigError):
        generate_matrix("weekly")


# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------

def test_save_and_load_matrix(tmp_path: Path) -> None:
    entries = generate_curated_matrix()
    path = save_matrix(entries, tmp_path / "out" / matrix_filename("curated"))

    assert path.name == "curated-matrix.json"
    raw = json.loads(path.read_text())
    assert raw[0]["config"]["packageManager"] == entries[0].config.package_manager
    assert "advancedOptions" in raw[0]["config"]
    assert load_matrix(path) == entries


def test_load_entry_bounds(tmp_path: Path) -> None:
    path = save_matrix(generate_fixed_profile_matrix(), tmp_path / "m.json")

    assert load_entry(path, 8).name == "pnpm-eas-production-aab"
    with pytest.raises(MatrixIndexError, match=r"out of range \(0-8\)"):
        load_entry(path, 9)
    with pytest.raises(IndexError):
        load_entry(path, -1)
    with pytest.raises(FileNotFoundError):
        load_entry(tmp_path / "missing.json", 0)


def test_load_entry_from_empty_matrix(tmp_path: Path) -> None:
    path = save_matrix([], tmp_path / "empty.json")

    with pytest.raises(MatrixIndexError, match="the matrix is empty") as info:
        load_entry(path, 0)
    assert "0--1" not in info.value.message


def test_hand_written_entry_defaults_its_fixture(tmp_path: Path) -> None:
    path = tmp_path / "m.json"
    path.write_text(json.dumps([{"name": "pnpm-lint", "config": {"packageManager": "pnpm", "tests": ["eslint"]}}]))

    entry = load_entry(path, 0)

    assert entry.fixture == "pnpm-app"
    assert entry.config.tests == ("eslint",)


@pytest.mark.parametrize(
    "item",
    [
        {"config": {}},
        {"name": "x", "config": {"buildTypes": 5}},
        "npm-no-tests",
    ],
)
def test_malformed_matrix_entries_raise_config_error(tmp_path: Path, item) -> None:
    path = tmp_path / "m.json"
    path.write_text(json.dumps([item]))

    with pytest.raises(ConfigError):
        load_matrix(path)
