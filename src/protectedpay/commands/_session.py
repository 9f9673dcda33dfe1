"""
Shared plumbing for commands: loading settings and the local key, opening
a wallet session, prompting for transaction approval and turning
ProtectedPay errors into exit codes.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Coroutine, Optional, TypeVar

import click
import httpx

from ..config import NetworkConfig, load_settings
from ..contract.client import ProtectedPayClient
from ..errors import ProtectedPayError
from ..units import format_amount
from ..wallet.eth import load_private_key
from ..wallet.provider import LocalWalletProvider
from ..wallet.session import SessionContext, WalletSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CliState:
    """Per-invocation settings carried on the click context."""

    env_file: Optional[Path] = None
    rpc_url: Optional[str] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    def settings(self) -> NetworkConfig:
        config = load_settings(self.env_file)
        if self.rpc_url:
            config = replace(config, rpc_url=self.rpc_url)
        return config


pass_state = click.make_pass_decorator(CliState, ensure=True)

yes_option = click.option(
    "--yes", "-y", "assume_yes", is_flag=True, help="Approve transactions without prompting"
)


def confirm_prompt(assume_yes: bool) -> Callable[[str, dict], bool]:
    """Wallet approval hook: asks on the terminal unless --yes was given."""

    def confirm(method: str, payload: dict) -> bool:
        if assume_yes:
            return True
        if method == "wallet_addEthereumChain":
            question = f"Add network {payload.get('chainName', payload.get('chainId'))}?"
        else:
            value = format_amount(int(str(payload.get("value", "0x0")), 16))
            question = f"Send transaction to {payload.get('to')} (value {value} ETH)?"
        return click.confirm(question, default=False)

    return confirm


@asynccontextmanager
async def connected(
    state: CliState, assume_yes: bool = False
) -> AsyncIterator[tuple[ProtectedPayClient, SessionContext]]:
    """Open a provider, connect a session and hand out (client, context)."""
    config = state.settings()
    try:
        private_key = load_private_key(state.env_file)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    provider = LocalWalletProvider.from_config(
        config,
        private_key=private_key,
        confirm=confirm_prompt(assume_yes),
        transport=state.transport,
    )
    session = WalletSession(provider, config)
    try:
        context = await session.connect()
        if not context.chain_ok:
            click.secho(
                f"WARNING: wallet is not on chain {config.chain_id}", fg="yellow"
            )
        yield ProtectedPayClient.from_config(config), context
    finally:
        session.close()
        await provider.aclose()


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, exiting with the error's code on failure."""
    try:
        return asyncio.run(coro)
    except ProtectedPayError as exc:
        logger.debug("Command failed", exc_info=True)
        click.secho(f"ERROR: {exc.message}", fg="red", err=True)
        sys.exit(exc.exit_code)


def explorer_link(config: NetworkConfig, kind: str, value: Any) -> str:
    return f"{config.explorer_url.rstrip('/')}/{kind}/{value}"
