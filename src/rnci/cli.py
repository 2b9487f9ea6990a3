# cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from rnci.compiler import compile_config
from rnci.config import FormValues
from rnci.errors import ConfigError, MatrixIndexError
from rnci.extractor import extract_all_commands, extract_test_commands
from rnci.harness import all_passed, run_commands
from rnci.matrix import MODES, generate_matrix, load_entry, matrix_filename, save_matrix
from rnci.probe import config_for_app, detect_scripts, filter_available
from rnci.render import load_yaml_file, render_document, write_workflow
from rnci.settings import DEFAULT_COMMAND_TIMEOUT, DEFAULT_MATRIX_DIR
from rnci.signature import signature_of
from rnci.ui.console import Console, get_console, set_console
from rnci.validate import validate_workflow


def load_config_file(path: str) -> FormValues:
    """
    Read a configuration JSON file.

    Raises:
        SystemExit: If the file is missing, not JSON, or out of domain
    """
    console = get_console()
    config_path = Path(path)
    if not config_path.exists():
        console.print_error(
            "Config file not found",
            f"Could not find configuration file: {path}",
            suggestion="Pass a JSON file with packageManager, tests, buildTypes, ...:\n  rnci generate config.json",
        )
        sys.exit(1)
    try:
        return FormValues.from_dict(json.loads(config_path.read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        console.print_error("Invalid config file", f"{path} is not valid JSON", details=[str(e)])
        sys.exit(1)
    except ConfigError as e:
        console.print_error("Invalid configuration", e.message, details=[f"{k}: {v}" for k, v in e.details.items()])
        sys.exit(1)


def _fail(exc: Exception) -> None:
    get_console().print_exception(exc)
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """rnci: GitHub Actions pipelines for Expo / React Native apps."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("config_file")
@click.option("--output", "-o", default=None, help="Write the workflow here instead of stdout")
@click.pass_context
def generate(ctx, config_file, output):
    """Compile a configuration JSON file into a workflow YAML."""
    console = get_console()
    config = load_config_file(config_file)
    try:
        document = compile_config(config)
        if output:
            path = write_workflow(document, output)
            console.print_info(f"Wrote {path}")
        else:
            click.echo(render_document(document), nl=False)
    except Exception as e:
        _fail(e)


@cli.command()
@click.argument("workflow_file")
@click.pass_context
def validate(ctx, workflow_file):
    """Check the structure of a workflow YAML file."""
    import yaml

    console = get_console()
    if not Path(workflow_file).exists():
        console.print_error("Workflow file not found", f"Could not find workflow file: {workflow_file}")
        sys.exit(1)
    try:
        problems = validate_workflow(load_yaml_file(workflow_file))
    except yaml.YAMLError as e:
        problems = [f"invalid YAML: {e}"]

    if problems:
        console.print_problems(workflow_file, problems)
        sys.exit(1)
    console.print_info(f"OK: {workflow_file}")


@cli.command()
@click.argument("config_file")
@click.option("--include-build-job", is_flag=True, default=False, help="Also list build-job commands")
@click.option("--all", "show_all", is_flag=True, default=False, help="Keep build and expression commands")
def extract(config_file, include_build_job, show_all):
    """List the commands a configuration would run, and its signature."""
    console = get_console()
    config = load_config_file(config_file)
    test_commands = extract_test_commands(config)
    if include_build_job:
        commands = extract_all_commands(
            config,
            include_platform_expressions=show_all,
            include_build_commands=show_all,
        )
    else:
        commands = test_commands
    console.print_header("Commands")
    console.print_commands(commands)
    console.print_header("Signature")
    console.print_info(signature_of(test_commands) or "(empty)")


@cli.command()
@click.option("--mode", type=click.Choice(MODES), default="curated", show_default=True, help="Matrix mode")
@click.option(
    "--output-dir",
    default=DEFAULT_MATRIX_DIR,
    envvar="RNCI_MATRIX_DIR",
    show_default=True,
    help="Directory for <mode>-matrix.json",
)
@click.pass_context
def matrix(ctx, mode, output_dir):
    """Generate a test matrix and write it as JSON."""
    console = get_console()
    try:
        entries = generate_matrix(mode)
        path = save_matrix(entries, Path(output_dir) / matrix_filename(mode))
    except Exception as e:
        _fail(e)
    console.print_info(f"Generated {len(entries)} {mode} entries -> {path}")


@cli.command("run-single")
@click.option("--matrix-file", required=True, help="Matrix JSON written by `rnci matrix`")
@click.option("--config-index", required=True, type=int, help="Entry index inside the matrix")
@click.option("--fixture-dir", required=True, help="Fixture application directory")
@click.option("--skip-build/--no-skip-build", default=True, show_default=True, help="Skip EAS build/submit commands")
@click.option("--continue-on-error", is_flag=True, default=False, help="Keep running after a failed command")
@click.option("--verbose", is_flag=True, default=False, help="Show commands and their output")
@click.option("--include-build-job", is_flag=True, default=False, help="Also run build-job setup commands")
@click.option(
    "--timeout",
    default=DEFAULT_COMMAND_TIMEOUT,
    envvar="RNCI_COMMAND_TIMEOUT",
    type=float,
    show_default=True,
    help="Per-command timeout in seconds",
)
@click.pass_context
def run_single(ctx, matrix_file, config_index, fixture_dir, skip_build, continue_on_error, verbose, include_build_job, timeout):
    """Run one matrix entry's commands against a fixture app."""
    console = get_console()

    if not Path(matrix_file).exists():
        console.print_error(
            "Matrix file not found",
            f"Could not find matrix file: {matrix_file}",
            suggestion="Generate one first:\n  rnci matrix --mode curated",
        )
        sys.exit(1)
    if not Path(fixture_dir).is_dir():
        console.print_error("Fixture directory not found", f"Could not find fixture directory: {fixture_dir}")
        sys.exit(1)

    try:
        entry = load_entry(matrix_file, config_index)
    except MatrixIndexError as e:
        console.print_error("Invalid config index", e.message, details=[f"matrix: {matrix_file}"])
        sys.exit(1)
    except (ConfigError, json.JSONDecodeError) as e:
        console.print_error("Invalid matrix file", f"Could not read {matrix_file}", details=[str(e)])
        sys.exit(1)

    if include_build_job:
        commands = extract_all_commands(entry.config, include_build_commands=not skip_build)
    else:
        commands = extract_test_commands(entry.config)

    console.print_run_started(
        entry=entry.name,
        index=config_index,
        fixture=entry.fixture,
        package_manager=entry.config.package_manager,
        command_count=len(commands),
    )
    console.print_debug(f"config: {json.dumps(entry.config.to_dict())}")

    try:
        results = run_commands(
            commands,
            fixture_dir,
            continue_on_error=continue_on_error,
            timeout=timeout,
            skip_build=skip_build,
            verbose=verbose,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(e)

    console.print_results(results)
    sys.exit(0 if all_passed(results) else 1)


@cli.command("run-app")
@click.argument("app_dir")
@click.option("--continue-on-error", is_flag=True, default=False, help="Keep running after a failed command")
@click.option("--verbose", is_flag=True, default=False, help="Show commands and their output")
@click.option(
    "--timeout",
    default=DEFAULT_COMMAND_TIMEOUT,
    envvar="RNCI_COMMAND_TIMEOUT",
    type=float,
    show_default=True,
    help="Per-command timeout in seconds",
)
@click.pass_context
def run_app(ctx, app_dir, continue_on_error, verbose, timeout):
    """Probe a local app and run the test commands its scripts support."""
    console = get_console()
    root = Path(app_dir)
    if not (root / "package.json").exists():
        console.print_error("Not an app directory", f"No package.json in {app_dir}")
        sys.exit(1)

    config = config_for_app(root)
    scripts = detect_scripts(root / "package.json")
    commands = filter_available(extract_test_commands(config), scripts, root)
    console.print_header(f"{root.resolve().name} ({config.package_manager})")
    console.print_commands(commands)

    try:
        results = run_commands(commands, root, continue_on_error=continue_on_error, timeout=timeout, verbose=verbose)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        _fail(e)

    console.print_results(results)
    sys.exit(0 if all_passed(results) else 1)


if __name__ == "__main__":
    cli()
