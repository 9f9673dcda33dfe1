"""
Pot - personal savings pots.

A pot collects contributions towards a target; breaking it returns the
saved balance to the owner.
"""

from __future__ import annotations

import click

from ._display import echo_savings_pot
from ._session import CliState, connected, pass_state, run, yes_option


@click.group()
def pot() -> None:
    """Manage savings pots."""


@pot.command("create")
@click.argument("name")
@click.argument("target")
@click.option("--remarks", "-m", default="", help="Note attached to the pot")
@yes_option
@pass_state
def pot_create(
    state: CliState, name: str, target: str, remarks: str, assume_yes: bool
) -> None:
    """Create a savings pot NAME with a TARGET in ETH."""

    async def _create() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.create_savings_pot(ctx.signer, name, target, remarks)
            click.secho(f"Savings pot '{name}' created (target {target} ETH)", fg="green")

    run(_create())


@pot.command("contribute")
@click.argument("pot_id")
@click.argument("amount")
@yes_option
@pass_state
def pot_contribute(state: CliState, pot_id: str, amount: str, assume_yes: bool) -> None:
    """Add AMOUNT ETH to a savings pot."""

    async def _contribute() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.contribute_to_savings_pot(ctx.signer, pot_id, amount)
            click.secho(f"Added {amount} ETH to {pot_id}", fg="green")

    run(_contribute())


@pot.command("break")
@click.argument("pot_id")
@yes_option
@pass_state
def pot_break(state: CliState, pot_id: str, assume_yes: bool) -> None:
    """Break a savings pot and withdraw its balance."""

    async def _break() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.break_pot(ctx.signer, pot_id)
            click.secho(f"Savings pot {pot_id} broken", fg="green")

    run(_break())


@pot.command("show")
@click.argument("pot_id")
@pass_state
def pot_show(state: CliState, pot_id: str) -> None:
    """Show a savings pot."""

    async def _show() -> None:
        async with connected(state) as (client, ctx):
            echo_savings_pot(await client.get_savings_pot_details(ctx.signer, pot_id))

    run(_show())
