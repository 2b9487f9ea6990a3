# compiler.py
"""
Compile a pipeline configuration into a GitHub Actions document.

Every rule here is a pure function of the configuration. Ordering of jobs,
steps, triggers and environment entries comes from the rule tables below and
in `rnci.step_workflows`, never from the configuration's own collections, so
compiling the same configuration twice renders byte-identical YAML.
"""
from __future__ import annotations

from typing import Any, Dict, List

from .config import BUILD_TYPES, FormValues
from .dsl import job, sh
from .model import Job, PipelineDocument
from .render import render_document
from .step_workflows.build import IOS_RUNS_ON, compile_build, platform_strategy, publish_steps
from .step_workflows.notify import notification_secrets, notification_steps
from .step_workflows.storage import publication_steps, secret, storage_secrets
from .step_workflows.test import compile_test


WORKFLOW_NAME = "React Native CI/CD"
MAIN_BRANCHES = ("main", "master")
IGNORED_PATHS = ("**.md", "LICENSE", "docs/**")

CHECK_SKIP_JOB = "check-skip"
TEST_JOB = "test"
RELEASE_JOB = "build-and-release"
DEPLOY_JOB = "build-and-deploy"

SKIP_CI_GUARD = "!contains(github.event.head_commit.message, '[skip ci]')"
BUILD_JOB_GUARD = (
    "(github.event_name == 'push' && "
    "(github.ref == 'refs/heads/main' || github.ref == 'refs/heads/master')) "
    "|| github.event_name == 'workflow_dispatch'"
)

APPLE_SECRETS = ("EXPO_APPLE_ID", "EXPO_APPLE_PASSWORD", "EXPO_TEAM_ID")
STORE_SECRETS = ("GOOGLE_PLAY_SERVICE_ACCOUNT",)


# ---------------------------------------------------------------------
# Document sections
# ---------------------------------------------------------------------

def build_job_id(config: FormValues) -> str:
    return RELEASE_JOB if config.storage_type == "github-release" else DEPLOY_JOB


def compile_triggers(config: FormValues) -> Dict[str, Any]:
    """
    Trigger map in canonical order: push, pull_request, workflow_dispatch.
    An empty trigger selection falls back to manual dispatch only.
    """
    selected = set(config.triggers)
    on: Dict[str, Any] = {}

    if "push-main" in selected:
        on["push"] = {"branches": list(MAIN_BRANCHES), "paths-ignore": list(IGNORED_PATHS)}
    if "pull-request" in selected:
        on["pull_request"] = {"branches": list(MAIN_BRANCHES)}
    if "manual" in selected or not on:
        chosen = set(config.build_types)
        inputs: Dict[str, Any] = {
            "buildType": {
                "description": "Build type to run",
                "required": True,
                "default": "all",
                "type": "choice",
                "options": ["all"] + [bt for bt in BUILD_TYPES if bt in chosen],
            }
        }
        if config.advanced_options.ios_support:
            inputs["platform"] = {
                "description": "Platform to build",
                "required": True,
                "default": "android",
                "type": "choice",
                "options": ["android", "ios"],
            }
        on["workflow_dispatch"] = {"inputs": inputs}
    return on


def compile_env(config: FormValues) -> Dict[str, str]:
    """Secrets referenced by the selected features, plus the base Node options."""
    names: List[str] = ["EXPO_TOKEN"]
    if config.advanced_options.ios_support:
        names.extend(APPLE_SECRETS)
    names.extend(storage_secrets(config.storage_type))
    if config.advanced_options.publish_to_stores:
        names.extend(STORE_SECRETS)
    names.extend(notification_secrets(config))

    env = {name: secret(name) for name in names}
    env["NODE_OPTIONS"] = "--openssl-legacy-provider"
    return env


def compile_jobs(config: FormValues) -> Dict[str, Job]:
    jobs: Dict[str, Job] = {
        CHECK_SKIP_JOB: job(
            CHECK_SKIP_JOB,
            sh("Skip CI check", 'echo "Proceeding with workflow"'),
            if_=SKIP_CI_GUARD,
        )
    }

    test_steps = compile_test(config)
    if test_steps:
        jobs[TEST_JOB] = job(TEST_JOB, steps_list=test_steps, needs=[CHECK_SKIP_JOB])

    build_steps = compile_build(config)
    build_steps.extend(publication_steps(config))
    build_steps.extend(publish_steps(config))
    build_steps.extend(notification_steps(config))

    ios = config.advanced_options.ios_support
    build_id = build_job_id(config)
    jobs[build_id] = job(
        build_id,
        steps_list=build_steps,
        needs=[TEST_JOB if TEST_JOB in jobs else CHECK_SKIP_JOB],
        runs_on=IOS_RUNS_ON if ios else "ubuntu-latest",
        if_=BUILD_JOB_GUARD,
        strategy=platform_strategy() if ios else None,
    )
    return jobs


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def compile_config(config: FormValues) -> PipelineDocument:
    """Compile a configuration into a pipeline document. Never mutates `config`."""
    return PipelineDocument(
        name=WORKFLOW_NAME,
        on=compile_triggers(config),
        env=compile_env(config),
        jobs=compile_jobs(config),
    )


def generate_workflow_yaml(config: FormValues) -> str:
    """Compile and render a configuration to YAML text."""
    return render_document(compile_config(config))
