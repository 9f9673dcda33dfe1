"""
Group - split a payment between several participants.

The creator funds the payment up front; each participant then contributes
until the total is collected and released to the recipient.
"""

from __future__ import annotations

from typing import Optional

import click

from ..contract.identifiers import checksum_address
from ._display import echo_group_payment
from ._session import CliState, connected, pass_state, run, yes_option


@click.group()
def group() -> None:
    """Create and contribute to group payments."""


@group.command("create")
@click.argument("recipient")
@click.argument("participants", type=int)
@click.argument("total")
@click.option("--remarks", "-m", default="", help="Note attached to the payment")
@yes_option
@pass_state
def group_create(
    state: CliState,
    recipient: str,
    participants: int,
    total: str,
    remarks: str,
    assume_yes: bool,
) -> None:
    """Create a group payment of TOTAL ETH to RECIPIENT split PARTICIPANTS ways."""

    async def _create() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.create_group_payment(
                ctx.signer, recipient, participants, total, remarks
            )
            click.secho(
                f"Group payment of {total} ETH to {recipient} created "
                f"for {participants} participants",
                fg="green",
            )

    run(_create())


@group.command("contribute")
@click.argument("payment_id")
@click.argument("amount")
@yes_option
@pass_state
def group_contribute(
    state: CliState, payment_id: str, amount: str, assume_yes: bool
) -> None:
    """Contribute AMOUNT ETH to a group payment."""

    async def _contribute() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.contribute_to_group_payment(ctx.signer, payment_id, amount)
            click.secho(f"Contributed {amount} ETH to {payment_id}", fg="green")

    run(_contribute())


@group.command("show")
@click.argument("payment_id")
@click.option("--address", "-a", help="Also show this account's contribution")
@pass_state
def group_show(state: CliState, payment_id: str, address: Optional[str]) -> None:
    """Show a group payment."""

    async def _show() -> None:
        async with connected(state) as (client, ctx):
            payment = await client.get_group_payment_details(ctx.signer, payment_id)
            echo_group_payment(payment)

            account = checksum_address(address) if address else ctx.address
            if await client.has_contributed_to_group_payment(
                ctx.signer, payment_id, account
            ):
                contribution = await client.get_group_payment_contribution(
                    ctx.signer, payment_id, account
                )
                click.echo(f"    {account} contributed {contribution} ETH")
            else:
                click.echo(f"    {account} has not contributed")

    run(_show())
