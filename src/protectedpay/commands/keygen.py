"""
Keygen - Create the local wallet key.

The key is written to the settings .env file as PRIVATE_KEY. An existing
key is never replaced unless --force is given.
"""

from __future__ import annotations

import sys

import click

from ..wallet.eth import generate_eoa, get_address, load_private_key, save_private_key
from ._session import CliState, explorer_link, pass_state


@click.command()
@click.option("--force", is_flag=True, help="Replace an existing key")
@pass_state
def keygen(state: CliState, force: bool) -> None:
    """Generate a wallet key for signing ProtectedPay transactions."""
    try:
        existing = get_address(load_private_key(state.env_file))
    except ValueError:
        existing = None

    if existing and not force:
        click.echo(f"Wallet already exists: {existing}")
        click.echo("Use --force to replace it.")
        sys.exit(1)

    private_key, address = generate_eoa()
    env_path = save_private_key(private_key, state.env_file)
    click.secho("Wallet created.", fg="green")
    click.echo(f"  Address: {address}")
    click.echo(f"  Key file: {env_path}")
    click.echo(f"  Explorer: {explorer_link(state.settings(), 'address', address)}")
    click.echo("Fund this address with Sepolia ETH before sending transactions.")
