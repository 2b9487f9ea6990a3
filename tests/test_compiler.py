"""Tests for configuration-to-pipeline compilation."""

from __future__ import annotations

import itertools

import pytest
import yaml

from rnci.compiler import compile_config, generate_workflow_yaml
from rnci.config import BUILD_TYPES, STORAGE_TYPES, TEST_KINDS, TRIGGERS, FormValues
from rnci.validate import validate_workflow


def _doc(config: FormValues) -> dict:
    return yaml.safe_load(generate_workflow_yaml(config))


def _step_names(job: dict) -> list:
    return [s.get("name") for s in job["steps"]]


def _build_job(doc: dict) -> dict:
    ids = [j for j in doc["jobs"] if j.startswith("build-and-")]
    assert len(ids) == 1
    return doc["jobs"][ids[0]]


# ---------------------------------------------------------------------
# Document header and job graph
# ---------------------------------------------------------------------

def test_header_and_base_env(make_config) -> None:
    doc = _doc(make_config())

    assert doc["name"] == "React Native CI/CD"
    assert doc["env"]["EXPO_TOKEN"] == "${{ secrets.EXPO_TOKEN }}"
    assert doc["env"]["NODE_OPTIONS"] == "--openssl-legacy-provider"


def test_check_skip_job_always_present(make_config) -> None:
    job = _doc(make_config())["jobs"]["check-skip"]

    assert job["runs-on"] == "ubuntu-latest"
    assert "[skip ci]" in job["if"]
    assert job["steps"] == [{"name": "Skip CI check", "run": 'echo "Proceeding with workflow"'}]


def test_no_tests_means_no_test_job_and_build_needs_check_skip(make_config) -> None:
    doc = _doc(make_config(package_manager="npm", tests=(), triggers=("push-main",)))

    assert "test" not in doc["jobs"]
    assert _build_job(doc)["needs"] == "check-skip"


def test_test_flag_alone_creates_test_job(make_config) -> None:
    doc = _doc(make_config(jest_tests=True))

    assert "test" in doc["jobs"]
    assert doc["jobs"]["test"]["needs"] == "check-skip"
    assert _build_job(doc)["needs"] == "test"


@pytest.mark.parametrize(
    "storage,job_id",
    [
        ("github-release", "build-and-release"),
        ("zoho-drive", "build-and-deploy"),
        ("google-drive", "build-and-deploy"),
        ("custom", "build-and-deploy"),
    ],
)
def test_exactly_one_build_job_by_storage(make_config, storage, job_id) -> None:
    jobs = _doc(make_config(storage_type=storage))["jobs"]

    assert job_id in jobs
    other = "build-and-deploy" if job_id == "build-and-release" else "build-and-release"
    assert other not in jobs


def test_build_job_runs_only_on_main_push_or_dispatch(make_config) -> None:
    guard = _build_job(_doc(make_config()))["if"]

    assert "refs/heads/main" in guard
    assert "refs/heads/master" in guard
    assert "workflow_dispatch" in guard


# ---------------------------------------------------------------------
# Test job
# ---------------------------------------------------------------------

def test_all_checks_in_rule_table_order(make_config) -> None:
    config = make_config(
        tests=("prettier", "typescript", "eslint"),
        jest_tests=True,
        rntl_tests=True,
        render_hook_tests=True,
    )
    runs = [s["run"] for s in _doc(config)["jobs"]["test"]["steps"] if "run" in s]

    assert runs == [
        'echo "dir=$(yarn cache dir)" >> $GITHUB_OUTPUT',
        "yarn install",
        "yarn tsc",
        "yarn lint",
        "yarn format:check",
        "yarn test",
        "yarn test:rntl",
        "yarn test:hooks",
    ]


@pytest.mark.parametrize(
    "pm,expected",
    [
        ("npm", ["npm install", "npx tsc", "npm run lint", "npm run format:check", "npm test", "npm run test:rntl", "npm run test:hooks"]),
        ("pnpm", ["pnpm install", "pnpm tsc", "pnpm lint", "pnpm format:check", "pnpm test", "pnpm test:rntl", "pnpm test:hooks"]),
    ],
)
def test_package_manager_command_table(make_config, pm, expected) -> None:
    config = make_config(
        package_manager=pm,
        tests=TEST_KINDS,
        jest_tests=True,
        rntl_tests=True,
        render_hook_tests=True,
        caching=False,
    )
    runs = [s["run"] for s in _doc(config)["jobs"]["test"]["steps"] if "run" in s]

    assert runs == expected


def test_caching_adds_lookup_and_restore_keyed_by_lock_file(make_config) -> None:
    steps = _doc(make_config(package_manager="npm", tests=("eslint",)))["jobs"]["test"]["steps"]
    by_name = {s["name"]: s for s in steps}

    lookup = by_name["📦 Get npm cache directory path"]
    assert lookup["id"] == "npm-cache-dir-path"
    assert "npm config get cache" in lookup["run"]

    restore = by_name["📦 Setup npm cache"]
    assert restore["uses"] == "actions/cache@v3"
    assert "package-lock.json" in restore["with"]["key"]
    assert restore["with"]["path"] == "${{ steps.npm-cache-dir-path.outputs.dir }}"


def test_caching_off_removes_cache_steps_everywhere(make_config) -> None:
    text = generate_workflow_yaml(make_config(tests=("eslint",), caching=False))

    assert "cache-dir-path" not in text
    assert "yarn cache dir" not in text


def test_pnpm_gets_setup_action_before_node(make_config) -> None:
    steps = _doc(make_config(package_manager="pnpm", tests=("eslint",)))["jobs"]["test"]["steps"]
    uses = [s.get("uses") for s in steps]

    assert uses.index("pnpm/action-setup@v4") < uses.index("actions/setup-node@v4")


def test_setup_node_uses_configured_version_and_cache(make_config) -> None:
    steps = _doc(make_config(tests=("eslint",), node_version="22"))["jobs"]["test"]["steps"]
    node = next(s for s in steps if s.get("uses") == "actions/setup-node@v4")

    assert node["with"] == {"node-version": "22", "cache": "yarn"}


def test_npm_document_never_mentions_yarn(make_config) -> None:
    config = make_config(
        package_manager="npm",
        tests=TEST_KINDS,
        jest_tests=True,
        rntl_tests=True,
        render_hook_tests=True,
        build_types=BUILD_TYPES,
        triggers=TRIGGERS,
        ios_support=True,
        publish_to_expo=True,
        publish_to_stores=True,
        notifications=True,
    )

    assert "yarn" not in generate_workflow_yaml(config)


def test_yarn_document_never_mentions_npm(make_config) -> None:
    config = make_config(tests=TEST_KINDS, jest_tests=True, build_types=BUILD_TYPES, storage_type="custom")
    text = generate_workflow_yaml(config)

    assert "npm" not in text
    assert "package-lock.json" not in text


def test_explicit_yarn_equals_default(make_config) -> None:
    explicit = FormValues.from_dict({"packageManager": "yarn", "tests": ["eslint"], "buildTypes": ["dev"]})
    implicit = FormValues.from_dict({"tests": ["eslint"], "buildTypes": ["dev"]})

    assert generate_workflow_yaml(explicit) == generate_workflow_yaml(implicit)


# ---------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------

def test_push_and_pull_request_triggers(make_config) -> None:
    on = _doc(make_config(triggers=("pull-request", "push-main")))["on"]

    assert list(on) == ["push", "pull_request"]
    assert on["push"]["branches"] == ["main", "master"]
    assert on["push"]["paths-ignore"] == ["**.md", "LICENSE", "docs/**"]
    assert on["pull_request"]["branches"] == ["main", "master"]


def test_manual_trigger_lists_selected_build_types(make_config) -> None:
    on = _doc(make_config(triggers=("manual",), build_types=("prod-aab", "dev")))["on"]
    build_type = on["workflow_dispatch"]["inputs"]["buildType"]

    assert build_type["type"] == "choice"
    assert build_type["options"] == ["all", "dev", "prod-aab"]
    assert "platform" not in on["workflow_dispatch"]["inputs"]


def test_manual_trigger_adds_platform_choice_with_ios(make_config) -> None:
    on = _doc(make_config(triggers=("manual",), ios_support=True))["on"]

    assert on["workflow_dispatch"]["inputs"]["platform"]["options"] == ["android", "ios"]


def test_empty_triggers_fall_back_to_manual_dispatch(make_config) -> None:
    on = _doc(make_config(triggers=()))["on"]

    assert list(on) == ["workflow_dispatch"]


# ---------------------------------------------------------------------
# Build job
# ---------------------------------------------------------------------

def test_build_steps_per_build_type(make_config) -> None:
    build = _build_job(_doc(make_config(build_types=("prod-aab", "dev", "prod-apk"))))
    builds = [s for s in build["steps"] if "eas build" in s.get("run", "")]

    assert [s["name"] for s in builds] == [
        "📱 Build Development APK",
        "📱 Build Production APK",
        "📱 Build Production AAB",
    ]
    assert "--profile development" in builds[0]["run"]
    assert "--output=./app-dev.apk" in builds[0]["run"]
    assert "--profile production-apk" in builds[1]["run"]
    assert "--output=./app-prod.aab" in builds[2]["run"]
    assert all("--max_old_space_size=4096" in s["run"] for s in builds)
    assert builds[0]["env"] == {"NODE_ENV": "development"}
    assert builds[2]["env"] == {"NODE_ENV": "production"}
    assert "github.event.inputs.buildType == 'dev'" in builds[0]["if"]


def test_build_job_fixed_steps(make_config) -> None:
    build = _build_job(_doc(make_config()))
    names = _step_names(build)

    for expected in (
        "🏗 Checkout repository",
        "📦 Install dependencies",
        "📱 Setup EAS build cache",
        "🔄 Verify EAS CLI installation",
        "📋 Fix package.json main entry",
        "📋 Update metro.config.js for SVG support",
    ):
        assert expected in names

    install = next(s for s in build["steps"] if s.get("name") == "📦 Install dependencies")
    assert install["run"] == "yarn install\nyarn global add eas-cli@latest"


def test_no_ios_means_no_strategy(make_config) -> None:
    text = generate_workflow_yaml(make_config(build_types=BUILD_TYPES))

    assert "strategy" not in text
    assert "matrix" not in text
    assert _build_job(yaml.safe_load(text))["runs-on"] == "ubuntu-latest"


def test_ios_adds_platform_matrix_and_ios_builds(make_config) -> None:
    doc = _doc(make_config(ios_support=True, build_types=("dev", "prod-apk")))
    build = _build_job(doc)

    assert build["strategy"] == {"matrix": {"platform": ["android", "ios"]}}
    assert "macos-latest" in build["runs-on"]
    names = _step_names(build)
    assert "🍏 Build iOS Development" in names
    assert "🍏 Build iOS Production" in names
    ios_dev = next(s for s in build["steps"] if s.get("name") == "🍏 Build iOS Development")
    assert "--platform ios" in ios_dev["run"]
    assert "matrix.platform == 'ios'" in ios_dev["if"]
    for secret in ("EXPO_APPLE_ID", "EXPO_APPLE_PASSWORD", "EXPO_TEAM_ID"):
        assert secret in doc["env"]


def test_ios_production_requires_production_build_type(make_config) -> None:
    names = _step_names(_build_job(_doc(make_config(ios_support=True, build_types=("dev",)))))

    assert "🍏 Build iOS Development" in names
    assert "🍏 Build iOS Production" not in names


def test_empty_build_types_still_compile(make_config) -> None:
    doc = _doc(make_config(build_types=()))
    build = _build_job(doc)

    assert not any("eas build" in s.get("run", "") for s in build["steps"])
    assert "📦 Upload build artifacts" not in _step_names(build)
    assert validate_workflow(doc) == []


# ---------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------

STORAGE_SECRETS = {
    "zoho-drive": {"RCLONE_CONFIG_ZOHODRIVE_TYPE", "RCLONE_CONFIG_ZOHODRIVE_TOKEN", "RCLONE_CONFIG_ZOHODRIVE_DRIVE_ID"},
    "google-drive": {"RCLONE_CONFIG_GDRIVE_TYPE", "RCLONE_CONFIG_GDRIVE_TOKEN", "RCLONE_CONFIG_GDRIVE_ROOT_FOLDER_ID"},
    "custom": {"CLOUD_STORAGE_TYPE", "CLOUD_STORAGE_TOKEN", "CLOUD_STORAGE_ROOT_ID"},
    "github-release": {"GITHUB_TOKEN"},
}


@pytest.mark.parametrize("storage", STORAGE_TYPES)
def test_storage_secrets_have_no_cross_contamination(make_config, storage) -> None:
    env = set(_doc(make_config(storage_type=storage))["env"])

    assert STORAGE_SECRETS[storage] <= env
    for other, names in STORAGE_SECRETS.items():
        if other != storage:
            assert not (names & env)


def test_github_release_publishes_a_release(make_config) -> None:
    build = _build_job(_doc(make_config(build_types=("dev", "prod-aab"))))
    by_name = {s.get("name"): s for s in build["steps"]}

    assert "🏗 Setup rclone" not in by_name
    assert by_name["🏷️ Generate build information"]["id"] == "build-info"
    release = by_name["📝 Create GitHub Release"]
    assert release["uses"] == "softprops/action-gh-release@v1"
    assert release["with"]["files"] == "./app-dev.apk\n./app-prod.aab"
    upload = by_name["📦 Upload build artifacts"]
    assert upload["uses"] == "actions/upload-artifact@v4"
    assert upload["with"]["retention-days"] == 7


@pytest.mark.parametrize("storage,remote", [("zoho-drive", "zohodrive"), ("google-drive", "gdrive"), ("custom", "cloud")])
def test_drive_storage_syncs_with_rclone(make_config, storage, remote) -> None:
    build = _build_job(_doc(make_config(storage_type=storage, build_types=("dev", "prod-apk"))))
    names = _step_names(build)

    assert "🏗 Setup rclone" in names
    assert "📝 Create GitHub Release" not in names
    uploads = [s for s in build["steps"] if s.get("run", "").startswith("rclone copy")]
    assert len(uploads) == 2
    assert all(f"{remote}:builds/" in s["run"] for s in uploads)


# ---------------------------------------------------------------------
# Advanced options
# ---------------------------------------------------------------------

def test_publish_steps_are_gated_on_manual_dispatch(make_config) -> None:
    doc = _doc(make_config(publish_to_expo=True, publish_to_stores=True))
    by_name = {s.get("name"): s for s in _build_job(doc)["steps"]}

    assert by_name["🚀 Publish to Expo"]["run"].startswith("eas update --auto")
    assert "workflow_dispatch" in by_name["🚀 Publish to Expo"]["if"]
    assert "eas submit -p android" in by_name["🏪 Submit to Play Store"]["run"]
    assert "🏪 Submit to App Store" not in by_name
    assert "GOOGLE_PLAY_SERVICE_ACCOUNT" in doc["env"]


def test_app_store_submission_needs_ios(make_config) -> None:
    names = _step_names(_build_job(_doc(make_config(publish_to_stores=True, ios_support=True))))

    assert "🏪 Submit to App Store" in names


@pytest.mark.parametrize(
    "channel,expected",
    [
        (None, {"SLACK_WEBHOOK", "DISCORD_WEBHOOK"}),
        ("both", {"SLACK_WEBHOOK", "DISCORD_WEBHOOK"}),
        ("slack", {"SLACK_WEBHOOK"}),
        ("discord", {"DISCORD_WEBHOOK"}),
    ],
)
def test_notification_channels(make_config, channel, expected) -> None:
    doc = _doc(make_config(notifications=True, notification_type=channel))
    uses = {s.get("uses") for s in _build_job(doc)["steps"]}

    assert {"SLACK_WEBHOOK", "DISCORD_WEBHOOK"} & set(doc["env"]) == expected
    assert ("rtCamp/action-slack-notify@v2" in uses) == ("SLACK_WEBHOOK" in expected)
    assert ("Ilshidur/action-discord@0.3.2" in uses) == ("DISCORD_WEBHOOK" in expected)


def test_notifications_off_adds_nothing(make_config) -> None:
    text = generate_workflow_yaml(make_config(notification_type="slack"))

    assert "WEBHOOK" not in text


# ---------------------------------------------------------------------
# Determinism and validity
# ---------------------------------------------------------------------

def test_compilation_is_deterministic_and_order_independent(make_config) -> None:
    a = make_config(tests=("eslint", "typescript"), build_types=("prod-aab", "dev"), triggers=("manual", "push-main"))
    b = make_config(tests=("typescript", "eslint"), build_types=("dev", "prod-aab"), triggers=("push-main", "manual"))

    assert generate_workflow_yaml(a) == generate_workflow_yaml(a)
    assert generate_workflow_yaml(a) == generate_workflow_yaml(b)


def test_compilation_does_not_mutate_config(make_config) -> None:
    config = make_config(tests=("eslint",), ios_support=True)
    before = config.to_dict()
    compile_config(config)

    assert config.to_dict() == before


def test_editing_a_compiled_document_does_not_leak_into_later_compilations(make_config) -> None:
    config = make_config(ios_support=True, triggers=("push-main", "manual"))
    before = generate_workflow_yaml(config)

    doc = compile_config(config).to_dict()
    doc["jobs"]["build-and-release"]["strategy"]["matrix"]["platform"].append("web")
    doc["on"]["workflow_dispatch"]["inputs"].clear()

    assert generate_workflow_yaml(config) == before


def test_every_compiled_document_is_structurally_valid(make_config) -> None:
    subsets = [(), ("typescript",), TEST_KINDS]
    for storage, builds, tests, triggers in itertools.product(
        STORAGE_TYPES,
        [(), ("dev",), BUILD_TYPES],
        subsets,
        [(), ("push-main",), TRIGGERS],
    ):
        config = make_config(storage_type=storage, build_types=builds, tests=tests, triggers=triggers, ios_support=bool(tests))
        assert validate_workflow(_doc(config)) == [], config
