"""Shared utilities for xlxc CLI modules."""
from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from xlxc.core.config import XlxcConfig
from xlxc.core.lifecycle import LifecycleController, LifecycleState
from xlxc.models import BatchReport
from xlxc.services.host import get_host

# Rejected before touching the host vs. failed part way through a batch
EXIT_REJECTED = 2
EXIT_FAILED = 1


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands."""
    from xlxc.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def get_controller(console: Console, config_path: Optional[str] = None) -> LifecycleController:
    """Load configuration and build a controller for the current host."""
    try:
        config = XlxcConfig.load(config_path)
    except (OSError, ValidationError) as e:
        handle_cli_error(e, console, exit_code=EXIT_REJECTED)
    return LifecycleController(get_host(config), config)


def exit_code_for(controller: LifecycleController) -> int:
    return EXIT_REJECTED if controller.state == LifecycleState.REJECTED else EXIT_FAILED


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = EXIT_FAILED
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_report(console: Console, report: BatchReport, action: str) -> None:
    """Summarize a batch and exit non-zero if any index failed."""
    for name in report.succeeded:
        print_success(console, f"{action} {name}")
    for name, reason in report.skipped.items():
        print_warning(console, f"Skipped {name}: {reason}")
    for name, reason in report.failed.items():
        print_error(console, f"{name}: {reason}")

    if report.has_failures():
        raise typer.Exit(EXIT_FAILED)


def network_table(topology) -> Table:
    """Table of bridges and their address blocks for a built network."""
    table = Table(title=f"{topology.kind.value} network")
    table.add_column("Bridge", style="cyan")
    table.add_column("Block")
    table.add_column("Gateway")
    for bridge in topology.bridges:
        table.add_row(bridge.name, str(bridge.block), str(bridge.gateway))
    return table


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")
