"""Command line interface for TeraSky Insights."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import ALLOWED_PACKAGES, Config, ConfigManager
from .errors import ExecutionFailed, InsightsError
from .services.engine import detect_engine
from .services.executor import CommandExecutor
from .services.lifecycle import LifecycleController

console = Console()
logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[str]) -> Config:
    if config_path:
        return ConfigManager(Path(config_path)).load()
    return ConfigManager.create_with_backtrack().load()


def _build_controller(ctx: click.Context) -> LifecycleController:
    """Resolve the engine once and wire the orchestration components."""
    config: Config = ctx.obj["config"]
    debug: bool = ctx.obj["debug"]

    engine = detect_engine(config.engine.candidates)
    executor = CommandExecutor(
        engine, debug=debug, timeout=config.engine.command_timeout, console=console
    )
    return LifecycleController(config, executor, console=console)


def _report_error(ctx: click.Context, error: InsightsError) -> None:
    """Print a fatal error with whatever diagnostics it carries and exit."""
    console.print(f"❌ {error}", style="red", markup=False, soft_wrap=True)

    if isinstance(error, ExecutionFailed):
        if error.output:
            console.print("Command output:", style="red")
            console.print(error.output, style="dim", markup=False)
        if error.container_logs:
            console.print("container logs:", style="red")
            console.print(error.container_logs, style="dim", markup=False)
        else:
            console.print(
                "Please make sure your container daemon is running", style="yellow"
            )

    if ctx.obj.get("debug"):
        import traceback

        console.print(traceback.format_exc(), style="dim red", markup=False)
    sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.pass_context
def cli(ctx, debug: bool, config: Optional[str]):
    """Tool for TeraSky insights Assessments.

    \b
    EXAMPLES:
      terasky-insights run --profile default --package aws-top-10
      terasky-insights package aws-finops
      terasky-insights stop
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    logging.basicConfig(
        level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s"
    )
    if debug:
        logging.getLogger("terasky_insights").setLevel(logging.DEBUG)

    if ctx.invoked_subcommand == "version":
        return

    try:
        ctx.obj["config"] = _load_config(config)
    except InsightsError as e:
        _report_error(ctx, e)


@cli.command()
@click.option("--profile", required=True, help="AWS local profile name")
@click.option(
    "--package",
    "package_name",
    required=True,
    help=f"Assessment Package to use ({', '.join(ALLOWED_PACKAGES)})",
)
@click.option("--role", default=None, help="IAM role to use")
@click.pass_context
def run(ctx, profile: str, package_name: str, role: Optional[str]):
    """Run a container with AWS profile, IAM role and Assessment Package."""
    try:
        controller = _build_controller(ctx)
        controller.run(profile, package_name, role)
    except InsightsError as e:
        _report_error(ctx, e)


@cli.command()
@click.pass_context
def stop(ctx):
    """Stop and delete terasky-insights."""
    try:
        controller = _build_controller(ctx)
        controller.stop()
    except InsightsError as e:
        _report_error(ctx, e)


@cli.command("package")
@click.argument("package_name")
@click.pass_context
def package_command(ctx, package_name: str):
    """Load a package into the running container.

    Allowed values are: aws-finops, aws-top-10, aws-well-architected
    """
    try:
        controller = _build_controller(ctx)
        controller.validate_package(package_name)
        controller.load_package(package_name)
    except InsightsError as e:
        _report_error(ctx, e)


@cli.command()
def version():
    """version info"""
    click.echo(f"Version: {__version__}")


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except Exception as e:
        console.print(f"❌ Unexpected error: {str(e)}", style="red", markup=False)
        sys.exit(1)


if __name__ == "__main__":
    main()
