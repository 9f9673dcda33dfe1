"""
Watch - stream ProtectedPay contract events to the terminal.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import click

from ..contract.models import ContractEvent
from ._display import format_event
from ._session import CliState, connected, pass_state, run


@click.command()
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: until interrupted)",
)
@click.option("--interval", type=float, default=None, help="Polling interval in seconds")
@pass_state
def watch(state: CliState, duration: Optional[float], interval: Optional[float]) -> None:
    """Print contract events as they happen."""

    def _print(event: ContractEvent) -> None:
        click.echo(format_event(event))

    async def _watch() -> None:
        async with connected(state) as (client, ctx):
            unsubscribe = await client.subscribe_to_events(
                ctx.signer, _print, poll_interval=interval
            )
            click.echo("Watching ProtectedPay events (Ctrl+C to stop)...")
            try:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            finally:
                unsubscribe()

    try:
        run(_watch())
    except KeyboardInterrupt:
        click.echo("Stopped.")
