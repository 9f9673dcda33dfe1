"""
ProtectedPay CLI

Command-line interface for the ProtectedPay escrow contract.

Funds sent through ProtectedPay are held by the contract until the
recipient claims them; unclaimed transfers can be refunded by the sender.

Commands:
  keygen    - Create the local wallet key
  whoami    - Show current wallet address
  info      - Show network and wallet information
  register  - Register a username
  username  - Look up a username or an address
  send      - Send ETH to an address or username
  claim     - Claim a transfer by id, sender address or sender username
  refund    - Refund an unclaimed transfer
  pending   - List pending transfers
  profile   - Show a profile and its records
  group     - Group payments (create, contribute, show)
  pot       - Savings pots (create, contribute, break, show)
  watch     - Stream contract events
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from .config import PROTECTEDPAY_ENV
from .errors import describe_error
from .logging_setup import configure_logging
from .units import format_amount
from .wallet.eth import get_address, load_private_key
from .commands._session import CliState, pass_state


# ============ Constants ============

VERSION = "0.1.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("        P R O T E C T E D P A Y", fg="bright_white", bold=True)
        + click.style(f"    v{VERSION}", dim=True)
    )
    click.secho("        ─── Escrowed payments on Sepolia ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="protectedpay")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PROTECTEDPAY_ENV_FILE",
    default=None,
    help=f"Settings file (default: {PROTECTEDPAY_ENV})",
)
@click.option(
    "--rpc-url",
    envvar="PROTECTEDPAY_RPC_URL",
    default=None,
    help="JSON-RPC endpoint override",
)
@click.option(
    "--log-level",
    default="WARNING",
    envvar="PROTECTEDPAY_LOG_LEVEL",
    help="Logging level (DEBUG, INFO, WARNING, ERROR)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    env_file: Optional[Path],
    rpc_url: Optional[str],
    log_level: str,
) -> None:
    """ProtectedPay: escrowed payments, group payments and savings pots."""
    configure_logging(log_level)
    state = ctx.ensure_object(CliState)
    state.env_file = env_file
    if rpc_url:
        state.rpc_url = rpc_url

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.keygen import keygen
from .commands.users import register, username
from .commands.transfers import claim, pending, refund, send
from .commands.group import group
from .commands.pot import pot
from .commands.profile import profile
from .commands.watch import watch

cli.add_command(keygen)
cli.add_command(register)
cli.add_command(username)
cli.add_command(send)
cli.add_command(claim)
cli.add_command(refund)
cli.add_command(pending)
cli.add_command(profile)
cli.add_command(group)
cli.add_command(pot)
cli.add_command(watch)


# ============ Identity ============


@cli.command()
@pass_state
def whoami(state: CliState) -> None:
    """Show current wallet identity."""
    try:
        address = get_address(load_private_key(state.env_file))
    except ValueError:
        click.echo("No wallet found.")
        click.echo("Run 'protectedpay keygen' to create one.")
        sys.exit(1)
    click.echo(f"Address: {address}")


# ============ Info ============


@cli.command()
@pass_state
def info(state: CliState) -> None:
    """Show network and wallet information."""
    _print_banner()
    config = state.settings()

    click.secho("  Network ────────────────────────────────", fg="cyan")
    click.echo()
    click.echo(click.style("  Chain:       ", dim=True) + f"{config.chain_name} ({config.chain_id})")
    click.echo(click.style("  RPC:         ", dim=True) + config.rpc_url)
    click.echo(click.style("  Contract:    ", dim=True) + config.contract_address)
    click.echo(click.style("  Explorer:    ", dim=True) + config.explorer_url)
    click.echo()

    click.secho("  Wallet ─────────────────────────────────", fg="cyan")
    click.echo()
    try:
        address = get_address(load_private_key(state.env_file))
    except ValueError:
        click.echo(
            click.style("  Address:     ", dim=True)
            + click.style("not initialized", fg="yellow")
            + click.style("  (run: protectedpay keygen)", dim=True)
        )
        click.echo()
        return

    click.echo(
        click.style("  Address:     ", dim=True) + click.style(address, fg="bright_white")
    )
    try:
        balance = asyncio.run(_read_balance(state, address))
        click.echo(click.style("  Balance:     ", dim=True) + f"{balance} ETH")
    except Exception as exc:
        click.echo(
            click.style("  Balance:     ", dim=True)
            + click.style(f"unavailable ({describe_error(exc)})", fg="yellow")
        )
    click.echo()


async def _read_balance(state: CliState, address: str) -> str:
    from .chain.rpc import RpcClient

    config = state.settings()
    async with RpcClient(
        config.rpc_url,
        timeout=config.rpc_timeout,
        read_retries=config.read_retries,
        transport=state.transport,
    ) as rpc:
        return format_amount(await rpc.get_balance(address))


# ============ Entry Points ============


def main() -> None:
    """ProtectedPay CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
