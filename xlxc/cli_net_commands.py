"""Container network CLI command (xlxc-net)."""
from typing import Optional

import typer
from rich.console import Console

from xlxc.cli_support import (
    exit_code_for,
    get_controller,
    handle_cli_error,
    network_table,
    print_report,
    setup_file_logging,
)
from xlxc.core.errors import XlxcError


def register_net_command(app: typer.Typer, console: Console) -> None:
    """Attach the network create/delete command to ``app``."""

    @app.command("net")
    def net_command(
        name: Optional[str] = typer.Option(None, "--name", "-n", help="Network naming scheme."),
        size: int = typer.Option(0, "--size", "-s", help="Size of network."),
        topology: Optional[str] = typer.Option(None, "--topology", "-t", help="Topology of network: star or connected."),
        iface: Optional[str] = typer.Option(None, "--iface", "-i", help="Host gateway interface."),
        delete: bool = typer.Option(False, "--delete", "-d", help="Delete this container network."),
        config: Optional[str] = typer.Option(None, "--config", "-c", help="xlxc config file."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file."),
    ) -> None:
        """Create (or delete) a star or connected network of XIA containers."""
        setup_file_logging(log_file=log_file, verbose=verbose)
        controller = get_controller(console, config)

        try:
            if delete:
                report = controller.delete_network(name or "", size, topology or "")
            else:
                built = controller.create_network(name or "", size, topology or "", iface)
                report = built.report
                console.print(network_table(built))
        except XlxcError as e:
            handle_cli_error(e, console, verbose=verbose, exit_code=exit_code_for(controller))

        print_report(console, report, "Deleted" if delete else "Created")
