from __future__ import annotations

from typing import List

from rnci.dsl import action, sh
from rnci.model import Step
from rnci.package_managers import PackageManagerCommands


CHECKOUT_ACTION = "actions/checkout@v4"
SETUP_NODE_ACTION = "actions/setup-node@v4"
CACHE_ACTION = "actions/cache@v3"


def setup_steps(pm: PackageManagerCommands, *, node_version: str, caching: bool) -> List[Step]:
    """
    Checkout, toolchain and dependency cache steps shared by test and build jobs.
    The cache lookup/restore pair is emitted only when caching is on.
    """
    out: List[Step] = [action("🏗 Checkout repository", CHECKOUT_ACTION)]

    if pm.setup_action:
        out.append(action(f"🏗 Setup {pm.name}", pm.setup_action, with_={"version": "9"}))

    out.append(
        action(
            "🏗 Setup Node.js",
            SETUP_NODE_ACTION,
            with_={"node-version": node_version, "cache": pm.name},
        )
    )

    if caching:
        out.append(sh(f"📦 Get {pm.name} cache directory path", pm.cache_dir_script, id=pm.cache_dir_step_id))
        out.append(
            action(
                f"📦 Setup {pm.name} cache",
                CACHE_ACTION,
                with_={
                    "path": f"${{{{ steps.{pm.cache_dir_step_id}.outputs.dir }}}}",
                    "key": f"${{{{ runner.os }}}}-{pm.name}-${{{{ hashFiles('**/{pm.lock_file}') }}}}",
                    "restore-keys": f"${{{{ runner.os }}}}-{pm.name}-",
                },
            )
        )

    return out


def install_step(pm: PackageManagerCommands, *extra: str) -> Step:
    """Dependency install, optionally followed by extra shell lines."""
    return sh("📦 Install dependencies", "\n".join((pm.install,) + extra))
