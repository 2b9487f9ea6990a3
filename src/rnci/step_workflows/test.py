from __future__ import annotations

from typing import List, Tuple

from rnci.config import FormValues
from rnci.dsl import sh
from rnci.model import Step
from rnci.package_managers import PackageManagerCommands, commands_for

from .setup import install_step, setup_steps


# (test kind, step name, command attribute); emission order is table order
STATIC_CHECKS: Tuple[Tuple[str, str, str], ...] = (
    ("typescript", "🧪 Run TypeScript check", "typecheck"),
    ("eslint", "🧹 Run ESLint", "lint"),
    ("prettier", "🎨 Run Prettier check", "format_check"),
)

# (advanced option, step name, command attribute)
TEST_SUITES: Tuple[Tuple[str, str, str], ...] = (
    ("jest_tests", "Run Jest Tests", "test"),
    ("rntl_tests", "Run React Native Testing Library Tests", "test_rntl"),
    ("render_hook_tests", "Run renderHook Tests", "test_hooks"),
)


def has_test_job(config: FormValues) -> bool:
    return bool(config.tests) or config.advanced_options.any_test_flag


def check_steps(config: FormValues, pm: PackageManagerCommands) -> List[Step]:
    """Static checks and test suites selected by the configuration."""
    selected = set(config.tests)
    out: List[Step] = []
    for kind, name, attr in STATIC_CHECKS:
        if kind in selected:
            out.append(sh(name, getattr(pm, attr)))
    for option, name, attr in TEST_SUITES:
        if getattr(config.advanced_options, option):
            out.append(sh(name, getattr(pm, attr)))
    return out


def compile_test(config: FormValues) -> List[Step]:
    """
    Steps of the test job: setup, install, then every selected check.
    Returns an empty list when the configuration selects no test-phase work.
    """
    if not has_test_job(config):
        return []
    pm = commands_for(config.package_manager)
    out = setup_steps(pm, node_version=config.node_version, caching=config.advanced_options.caching)
    out.append(install_step(pm))
    out.extend(check_steps(config, pm))
    return out
