"""Command line interface entry point."""

from __future__ import annotations

import sys

import click
import pytest

from scenario_dependencies.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from scenario_dependencies.pytest_integration import PLUGIN_NAME


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="pytest-scenario-dependencies")
def cli() -> None:
    """Run test scenarios that depend on other scenarios exactly once."""


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML configuration with the defaults and guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to the YAML scenario dependencies configuration",
)
@click.option(
    "--report",
    "report_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional workbook receiving the recorded dependency outcomes",
)
@click.argument("pytest_args", nargs=-1, type=click.UNPROCESSED)
def run_scenarios(
    config_path: str | None, report_path: str | None, pytest_args: tuple[str, ...]
) -> int:
    """Run pytest with scenario dependencies enabled; extra arguments go to pytest."""
    args = ["-p", PLUGIN_NAME]
    if config_path:
        try:
            load_configuration(config_path)
        except ConfigurationError as exc:
            raise CliError(str(exc)) from exc
        args += ["--scenario-deps-config", config_path]
    if report_path:
        args += ["--scenario-deps-report", report_path]
    return int(pytest.main([*args, *pytest_args]))


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        result = cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
