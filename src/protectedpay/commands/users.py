"""
Users - username registration and lookup.
"""

from __future__ import annotations

import click

from ..contract.identifiers import ZERO_ADDRESS, checksum_address
from ._session import CliState, connected, pass_state, run, yes_option


@click.command()
@click.argument("username")
@yes_option
@pass_state
def register(state: CliState, username: str, assume_yes: bool) -> None:
    """Register USERNAME for the current wallet."""

    async def _register() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.register_username(ctx.signer, username)
            click.secho(f"Registered '{username}' for {ctx.address}", fg="green")

    run(_register())


@click.command()
@click.argument("name_or_address")
@pass_state
def username(state: CliState, name_or_address: str) -> None:
    """Look up the address of a username, or the username of an address."""

    async def _lookup() -> None:
        async with connected(state) as (client, ctx):
            if name_or_address.startswith("0x"):
                address = checksum_address(name_or_address)
                name = await client.get_user_by_address(ctx.signer, address)
                click.echo(f"{address}: {name or '(no username)'}")
            else:
                address = await client.get_user_by_username(ctx.signer, name_or_address)
                if address == ZERO_ADDRESS:
                    click.echo(f"{name_or_address}: (not registered)")
                else:
                    click.echo(f"{name_or_address}: {address}")

    run(_lookup())
