"""
Profile - a user's registered name and every record linked to it.
"""

from __future__ import annotations

from typing import Optional

import click

from ..contract.identifiers import checksum_address
from ._display import echo_group_payment, echo_savings_pot, echo_transfer
from ._session import CliState, connected, pass_state, run


@click.command()
@click.argument("address", required=False)
@click.option("--history", is_flag=True, help="Show the full transfer history instead")
@pass_state
def profile(state: CliState, address: Optional[str], history: bool) -> None:
    """Show the profile of ADDRESS (default: your wallet)."""

    async def _profile() -> None:
        async with connected(state) as (client, ctx):
            account = checksum_address(address) if address else ctx.address

            if history:
                transfers = await client.get_user_transfers(ctx.signer, account)
                click.echo(f"Transfer history for {account}: {len(transfers)}")
                for transfer in transfers:
                    echo_transfer(transfer)
                return

            details = await client.get_profile_details(ctx.signer, account)
            name = details.profile.username or "(no username)"
            click.echo(f"Profile: {name}")
            click.echo(f"  Address: {account}")
            if account == ctx.address:
                click.echo(f"  Balance: {ctx.balance} ETH")

            sections = (
                ("Transfers", details.transfers, echo_transfer),
                ("Group payments", details.group_payments, echo_group_payment),
                (
                    "Participated group payments",
                    details.participated_group_payments,
                    echo_group_payment,
                ),
                ("Savings pots", details.savings_pots, echo_savings_pot),
            )
            for title, records, echo in sections:
                click.echo("")
                click.secho(f"{title} ({len(records)})", fg="cyan")
                for record in records:
                    echo(record)

    run(_profile())
