"""Shared pytest configuration and configuration builders."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from rnci.config import AdvancedOptions, FormValues


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line("markers", "integration: filesystem/subprocess integration tests")


def build_config(**overrides: Any) -> FormValues:
    """
    A small github-release config: yarn, dev build, push trigger, caching on.
    Advanced options may be passed as keyword arguments directly.
    """
    option_names = set(AdvancedOptions.model_fields)
    options = {k: overrides.pop(k) for k in list(overrides) if k in option_names}
    base = dict(
        package_manager="yarn",
        storage_type="github-release",
        build_types=("dev",),
        tests=(),
        triggers=("push-main",),
    )
    base.update(overrides)
    return FormValues(advanced_options=AdvancedOptions(**options), **base)


@pytest.fixture
def make_config() -> Callable[..., FormValues]:
    return build_config
