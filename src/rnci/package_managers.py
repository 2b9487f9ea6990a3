"""Per-package-manager command table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .errors import ConfigError


@dataclass(frozen=True)
class PackageManagerCommands:
    name: str
    install: str
    cache_dir: str
    lock_file: str
    global_cli_install: str
    typecheck: str
    lint: str
    format_check: str
    test: str
    test_rntl: str
    test_hooks: str
    # extra action that must run before actions/setup-node, if any
    setup_action: Optional[str] = None

    @property
    def cache_dir_step_id(self) -> str:
        return f"{self.name}-cache-dir-path"

    @property
    def cache_dir_script(self) -> str:
        return f'echo "dir=$({self.cache_dir})" >> $GITHUB_OUTPUT'


COMMANDS: Dict[str, PackageManagerCommands] = {
    "yarn": PackageManagerCommands(
        name="yarn",
        install="yarn install",
        cache_dir="yarn cache dir",
        lock_file="yarn.lock",
        global_cli_install="yarn global add eas-cli@latest",
        typecheck="yarn tsc",
        lint="yarn lint",
        format_check="yarn format:check",
        test="yarn test",
        test_rntl="yarn test:rntl",
        test_hooks="yarn test:hooks",
    ),
    "npm": PackageManagerCommands(
        name="npm",
        install="npm install",
        cache_dir="npm config get cache",
        lock_file="package-lock.json",
        global_cli_install="npm install -g eas-cli@latest",
        typecheck="npx tsc",
        lint="npm run lint",
        format_check="npm run format:check",
        test="npm test",
        test_rntl="npm run test:rntl",
        test_hooks="npm run test:hooks",
    ),
    "pnpm": PackageManagerCommands(
        name="pnpm",
        install="pnpm install",
        cache_dir="pnpm store path",
        lock_file="pnpm-lock.yaml",
        global_cli_install="pnpm add -g eas-cli@latest",
        typecheck="pnpm tsc",
        lint="pnpm lint",
        format_check="pnpm format:check",
        test="pnpm test",
        test_rntl="pnpm test:rntl",
        test_hooks="pnpm test:hooks",
        setup_action="pnpm/action-setup@v4",
    ),
}


def commands_for(package_manager: str) -> PackageManagerCommands:
    try:
        return COMMANDS[package_manager]
    except KeyError:
        raise ConfigError(
            message=f"unsupported package manager: {package_manager!r}",
            details={"allowed": ", ".join(COMMANDS)},
        ) from None
