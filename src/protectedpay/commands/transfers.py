"""
Transfers - send, claim and refund escrowed payments.

Sent funds stay in the contract until the recipient claims them or the
sender refunds them.
"""

from __future__ import annotations

from typing import Optional

import click

from ..contract.identifiers import (
    ClaimByAddress,
    ClaimById,
    checksum_address,
    parse_claim_identifier,
)
from ._display import echo_transfer
from ._session import CliState, connected, pass_state, run, yes_option


@click.command()
@click.argument("recipient")
@click.argument("amount")
@click.option("--remarks", "-m", default="", help="Note attached to the transfer")
@yes_option
@pass_state
def send(
    state: CliState, recipient: str, amount: str, remarks: str, assume_yes: bool
) -> None:
    """
    Send AMOUNT ETH to RECIPIENT (an address or a username).

    The recipient has to claim the transfer; until then you can refund it.
    """

    async def _send() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.send(ctx.signer, recipient, amount, remarks)
            click.secho(f"Sent {amount} ETH to {recipient}", fg="green")

    run(_send())


@click.command()
@click.argument("identifier")
@yes_option
@pass_state
def claim(state: CliState, identifier: str, assume_yes: bool) -> None:
    """
    Claim a transfer sent to you.

    IDENTIFIER is a transfer id (0x + 64 hex), the sender's address or the
    sender's username.
    """
    target = parse_claim_identifier(identifier)
    if isinstance(target, ClaimById):
        label = f"transfer {target.transfer_id}"
    elif isinstance(target, ClaimByAddress):
        label = f"transfer from {target.sender_address}"
    else:
        label = f"transfer from '{target.sender_username}'"

    async def _claim() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.claim_transfer(ctx.signer, identifier)
            click.secho(f"Claimed {label}", fg="green")

    run(_claim())


@click.command()
@click.argument("transfer_id")
@yes_option
@pass_state
def refund(state: CliState, transfer_id: str, assume_yes: bool) -> None:
    """Refund an unclaimed transfer you sent."""

    async def _refund() -> None:
        async with connected(state, assume_yes) as (client, ctx):
            await client.refund_transfer(ctx.signer, transfer_id)
            click.secho(f"Refunded transfer {transfer_id}", fg="green")

    run(_refund())


@click.command()
@click.option("--address", "-a", help="Account to inspect (default: your wallet)")
@click.option(
    "--refundable", is_flag=True, help="Only transfers the account sent and can refund"
)
@pass_state
def pending(state: CliState, address: Optional[str], refundable: bool) -> None:
    """List pending transfers of an account."""

    async def _pending() -> None:
        async with connected(state) as (client, ctx):
            account = checksum_address(address) if address else ctx.address
            if refundable:
                transfers = await client.get_refundable_transfers(ctx.signer, account)
            else:
                transfers = await client.get_pending_transfer_details(ctx.signer, account)

            if not transfers:
                click.echo("No pending transfers.")
                return
            click.echo(f"Pending transfers for {account}: {len(transfers)}")
            for transfer in transfers:
                echo_transfer(transfer)

    run(_pending())
