"""Single-container CLI commands (xlxc-create, xlxc-destroy)."""
from typing import Optional

import typer
from rich.console import Console

from xlxc.cli_support import (
    exit_code_for,
    get_controller,
    handle_cli_error,
    print_report,
    setup_file_logging,
)
from xlxc.core.errors import XlxcError


def register_create_command(app: typer.Typer, console: Console) -> None:
    """Attach the container create/reset command to ``app``."""

    @app.command("create")
    def create_command(
        name: str = typer.Argument(..., help="Container naming scheme (containers are NAME0, NAME1, ...)."),
        start_index: int = typer.Argument(..., help="Index of the first container."),
        end_index: int = typer.Argument(..., help="Index of the last container."),
        reset: bool = typer.Option(False, "--reset", "-r", help="Reset containers by adding bridges."),
        script: bool = typer.Option(False, "--script", "-s", help="Create a script for each container."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help="xlxc config file."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file."),
    ) -> None:
        """Create XIA containers NAME{START_INDEX..END_INDEX}, each on its own bridge."""
        setup_file_logging(log_file=log_file, verbose=verbose)
        controller = get_controller(console, config)

        try:
            if reset:
                report = controller.reset_containers(name, start_index, end_index)
            else:
                report = controller.create_containers(name, start_index, end_index, script=script)
        except XlxcError as e:
            handle_cli_error(e, console, verbose=verbose, exit_code=exit_code_for(controller))

        print_report(console, report, "Reset" if reset else "Created")


def register_destroy_command(app: typer.Typer, console: Console) -> None:
    """Attach the container destroy command to ``app``."""

    @app.command("destroy")
    def destroy_command(
        name: str = typer.Argument(..., help="Container naming scheme."),
        start_index: int = typer.Argument(..., help="Index of the first container."),
        end_index: int = typer.Argument(..., help="Index of the last container."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help="xlxc config file."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file."),
    ) -> None:
        """Destroy XIA containers NAME{START_INDEX..END_INDEX} and their bridges."""
        setup_file_logging(log_file=log_file, verbose=verbose)
        controller = get_controller(console, config)

        try:
            report = controller.delete_containers(name, start_index, end_index)
        except XlxcError as e:
            handle_cli_error(e, console, verbose=verbose, exit_code=exit_code_for(controller))

        print_report(console, report, "Destroyed")
