from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from rnci.config import FormValues
from rnci.dsl import action, all_of, any_of, script, sh
from rnci.model import Step
from rnci.package_managers import commands_for

from .setup import CACHE_ACTION, install_step, setup_steps


MEMORY_FLAGS = 'export NODE_OPTIONS="--openssl-legacy-provider --max_old_space_size=4096"'
PUSH_EVENT = "github.event_name == 'push'"
MANUAL_EVENT = "github.event_name == 'workflow_dispatch'"


@dataclass(frozen=True)
class BuildRule:
    """One `eas build` invocation and the artifact it leaves behind."""
    name: str
    platform: str
    profile: str
    output: str
    node_env: str
    # build-type inputs that enable this step
    build_types: Tuple[str, ...]

    def command(self) -> str:
        return script(
            MEMORY_FLAGS,
            f"eas build --platform {self.platform} --profile {self.profile} "
            f"--local --non-interactive --output={self.output}",
        )


ANDROID_BUILDS: Tuple[BuildRule, ...] = (
    BuildRule("📱 Build Development APK", "android", "development", "./app-dev.apk", "development", ("dev",)),
    BuildRule("📱 Build Production APK", "android", "production-apk", "./app-prod.apk", "production", ("prod-apk",)),
    BuildRule("📱 Build Production AAB", "android", "production", "./app-prod.aab", "production", ("prod-aab",)),
)

IOS_BUILDS: Tuple[BuildRule, ...] = (
    BuildRule("🍏 Build iOS Development", "ios", "development", "./app-ios-dev.app", "development", ("dev",)),
    BuildRule("🍏 Build iOS Production", "ios", "production", "./app-ios-prod.ipa", "production", ("prod-apk", "prod-aab")),
)

FIX_MAIN_ENTRY = script(
    "jq '.main = \"node_modules/expo/AppEntry.js\"' package.json > package.json.tmp",
    "mv package.json.tmp package.json",
)

METRO_SVG_CONFIG = script(
    "cat > metro.config.js << 'EOF'",
    "// eslint-disable-next-line @typescript-eslint/no-var-requires",
    "const { getDefaultConfig } = require('expo/metro-config');",
    "",
    "const config = getDefaultConfig(__dirname);",
    "",
    "config.transformer.babelTransformerPath = require.resolve('react-native-svg-transformer');",
    "config.resolver.assetExts = config.resolver.assetExts.filter((ext) => ext !== 'svg');",
    "config.resolver.sourceExts = [...config.resolver.sourceExts, 'svg'];",
    "",
    "module.exports = config;",
    "EOF",
)

PLATFORMS: Tuple[str, ...] = ("android", "ios")
IOS_RUNS_ON = "${{ matrix.platform == 'ios' && 'macos-latest' || 'ubuntu-latest' }}"


def platform_strategy() -> Dict[str, Any]:
    """Fresh `strategy` block fanning the build job out per platform."""
    return {"matrix": {"platform": list(PLATFORMS)}}


# ---------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------

def build_type_guard(build_types: Tuple[str, ...]) -> str:
    """Run on push, or when the manual input picks `all` or one of build_types."""
    picks = ["github.event.inputs.buildType == 'all'"]
    picks.extend(f"github.event.inputs.buildType == '{bt}'" for bt in build_types)
    return any_of(*picks, PUSH_EVENT)


def platform_guard(config: FormValues, platform: str) -> Optional[str]:
    """Restrict a step to one leg of the platform matrix (None without iOS)."""
    if not config.advanced_options.ios_support:
        return None
    return all_of(
        f"matrix.platform == '{platform}'",
        any_of("github.event_name != 'workflow_dispatch'", f"github.event.inputs.platform == '{platform}'"),
    )


# ---------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------

def selected_builds(config: FormValues) -> List[BuildRule]:
    """Build rules enabled by the configuration, in table order."""
    chosen = set(config.build_types)
    rules = [r for r in ANDROID_BUILDS if chosen.intersection(r.build_types)]
    if config.advanced_options.ios_support:
        rules.extend(r for r in IOS_BUILDS if chosen.intersection(r.build_types))
    return rules


def artifacts(config: FormValues) -> List[str]:
    return [r.output for r in selected_builds(config)]


def build_step(config: FormValues, rule: BuildRule) -> Step:
    return sh(
        rule.name,
        rule.command(),
        if_=all_of(platform_guard(config, rule.platform), build_type_guard(rule.build_types)),
        env={"NODE_ENV": rule.node_env},
    )


def eas_steps() -> List[Step]:
    """EAS local build cache, CLI check and project fix-ups."""
    return [
        action(
            "📱 Setup EAS build cache",
            CACHE_ACTION,
            with_={
                "path": "~/.eas-build-local",
                "key": "${{ runner.os }}-eas-build-local-${{ hashFiles('**/package.json') }}",
                "restore-keys": "${{ runner.os }}-eas-build-local-",
            },
        ),
        sh("🔄 Verify EAS CLI installation", script('echo "EAS CLI version:"', "eas --version")),
        sh("📋 Fix package.json main entry", FIX_MAIN_ENTRY),
        sh("📋 Update metro.config.js for SVG support", METRO_SVG_CONFIG),
    ]


def publish_steps(config: FormValues) -> List[Step]:
    """Expo update and store submission, manual dispatch only."""
    opts = config.advanced_options
    out: List[Step] = []
    if opts.publish_to_expo:
        out.append(
            sh(
                "🚀 Publish to Expo",
                "eas update --auto --non-interactive",
                if_=all_of(platform_guard(config, "android"), MANUAL_EVENT),
            )
        )
    if opts.publish_to_stores:
        out.append(
            sh(
                "🏪 Submit to Play Store",
                "eas submit -p android --latest --non-interactive",
                if_=all_of(platform_guard(config, "android"), MANUAL_EVENT),
            )
        )
        if opts.ios_support:
            out.append(
                sh(
                    "🏪 Submit to App Store",
                    "eas submit -p ios --latest --non-interactive",
                    if_=all_of(platform_guard(config, "ios"), MANUAL_EVENT),
                )
            )
    return out


def compile_build(config: FormValues) -> List[Step]:
    """
    Setup and build steps of the build job.

    Publication (storage, release, notifications) is appended by the compiler.
    """
    pm = commands_for(config.package_manager)
    out = setup_steps(pm, node_version=config.node_version, caching=config.advanced_options.caching)
    out.append(install_step(pm, pm.global_cli_install))
    out.extend(eas_steps())
    out.extend(build_step(config, rule) for rule in selected_builds(config))
    return out
