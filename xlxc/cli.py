#!/usr/bin/env python3
"""xlxc CLI - Linux XIA containers and the networks between them.

Three tools, one command each:
  xlxc-create NAME START_INDEX END_INDEX [--reset] [--script]
  xlxc-net --name NAME --size SIZE --topology {star|connected} --iface IFACE [--delete]
  xlxc-destroy NAME START_INDEX END_INDEX
"""

import typer
from rich.console import Console

from xlxc.cli_container_commands import register_create_command, register_destroy_command
from xlxc.cli_net_commands import register_net_command

console = Console()

create_app = typer.Typer(
    name="xlxc-create",
    help="Create or reset Linux XIA containers.",
    add_completion=False,
)
net_app = typer.Typer(
    name="xlxc-net",
    help="Create or delete a Linux XIA container network.",
    add_completion=False,
)
destroy_app = typer.Typer(
    name="xlxc-destroy",
    help="Destroy Linux XIA containers.",
    add_completion=False,
)

register_create_command(create_app, console)
register_net_command(net_app, console)
register_destroy_command(destroy_app, console)


def create_main():
    create_app()


def net_main():
    net_app()


def destroy_main():
    destroy_app()


if __name__ == "__main__":
    create_main()
