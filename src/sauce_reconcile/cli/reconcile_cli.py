"""Command line entry point for reconciling one CI run with Sauce Labs.

Usage::

    sauce-reconcile --job-name my-job --build-number 42 \\
        --log console.log --junit reports/TEST-login.xml

The command reads the run's console log and JUnit reports, updates the
matching Sauce jobs and saves the reconciled job list to a JSON state
file. Re-running it against the same state file only publishes what
changed.
"""

from dataclasses import replace
from pathlib import Path

import click

from ..app import create_engine, setup_logging
from ..config import get_reconciler_options, get_value, load_config
from ..services.junit_results import JUnitResultSource
from ..services.log_source import FileLogSource
from ..services.reconciliation_engine import VISIBILITY_CHOICES
from ..services.run_context import FileRunContext


@click.command("sauce-reconcile")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default="config.yaml",
    show_default=True,
    help="YAML configuration file (optional).",
)
@click.option("--job-name", required=True, help="CI job name.")
@click.option("--build-number", required=True, help="CI build number.")
@click.option(
    "--log", "log_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Console log of the run.",
)
@click.option(
    "--junit", "junit_paths",
    multiple=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="JUnit XML report; may be repeated.",
)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where reconciled jobs are saved between passes.",
)
@click.option(
    "--visibility",
    type=click.Choice(VISIBILITY_CHOICES),
    default=None,
    help="Visibility to apply to every job (overrides config).",
)
@click.option(
    "--disable-usage-stats",
    is_flag=True,
    default=False,
    help="Do not attach failure details to failed jobs.",
)
def reconcile_command(
    config_path: Path,
    job_name: str,
    build_number: str,
    log_path: Path | None,
    junit_paths: tuple[Path, ...],
    state_file: Path | None,
    visibility: str | None,
    disable_usage_stats: bool,
) -> None:
    """Publish pass/fail, name and build for the Sauce jobs of a CI run."""
    config = load_config(config_path)
    setup_logging(config, config_path.parent.absolute())

    try:
        options = get_reconciler_options(config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    if visibility is not None:
        options = replace(options, visibility=visibility)
    if disable_usage_stats:
        options = replace(options, disable_usage_stats=True)

    if state_file is None:
        state_file = Path(get_value(config, "run", "state_file", default="sauce-jobs.json"))

    run = FileRunContext(state_file, job_name, build_number, listener=click.echo)
    engine = create_engine(config)
    result = engine.reconcile(
        run,
        run.load_jobs(),
        FileLogSource(log_path) if log_path else None,
        JUnitResultSource(list(junit_paths)).get_suites() if junit_paths else None,
        options,
    )

    for job in result.jobs.values():
        status = job.status.value if job.status else "unknown"
        click.echo(f"  {job.job_id}  {status:<8} {job.name or ''}")
