"""
Wallet session lifecycle.

A ``WalletSession`` owns at most one connected identity at a time and hands
it out as an immutable ``SessionContext``. Components that need to sign
receive the context (or its signer) explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..config import NetworkConfig
from ..errors import (
    UNRECOGNIZED_CHAIN_CODE,
    NotConnectedError,
    ProviderRpcError,
    normalize_error,
)
from ..units import format_amount
from .provider import ACCOUNTS_CHANGED, CHAIN_CHANGED, WalletProvider
from .signer import Signer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    address: str
    signer: Signer
    balance: str
    chain_id: int
    chain_ok: bool


class WalletSession:
    """Connects to a wallet provider and tracks the active identity."""

    def __init__(
        self,
        provider: WalletProvider,
        config: NetworkConfig,
        on_reload: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.provider = provider
        self.config = config
        self._on_reload = on_reload
        self._context: Optional[SessionContext] = None
        self._connecting = False
        provider.on(ACCOUNTS_CHANGED, self._handle_accounts_changed)
        provider.on(CHAIN_CHANGED, self._handle_chain_changed)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._context is not None

    @property
    def context(self) -> SessionContext:
        if self._context is None:
            raise NotConnectedError()
        return self._context

    @property
    def address(self) -> Optional[str]:
        return self._context.address if self._context else None

    @property
    def signer(self) -> Optional[Signer]:
        return self._context.signer if self._context else None

    @property
    def balance(self) -> Optional[str]:
        return self._context.balance if self._context else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> SessionContext:
        """
        Request account access and make sure the required chain is active.

        Chain switch failures are logged and recorded in
        ``SessionContext.chain_ok``; they do not abort the connection.

        Raises:
            ProtectedPayError: If account access itself fails
        """
        self._connecting = True
        try:
            try:
                accounts = await self.provider.request("eth_requestAccounts")
            except Exception as exc:
                logger.error("Failed to connect wallet: %s", exc)
                raise normalize_error(exc) from exc
            if not accounts:
                raise NotConnectedError("Wallet returned no accounts")

            address = accounts[0]
            signer = Signer(self.provider, address)
            try:
                chain_ok = await self._ensure_chain()
                chain_id = await signer.get_chain_id()
                balance = format_amount(await signer.get_balance())
            except Exception as exc:
                logger.error("Failed to read wallet state: %s", exc)
                raise normalize_error(exc) from exc

            self._context = SessionContext(
                address=address,
                signer=signer,
                balance=balance,
                chain_id=chain_id,
                chain_ok=chain_ok,
            )
            logger.info("Connected %s on chain %s", address, chain_id)
            return self._context
        finally:
            self._connecting = False

    async def _ensure_chain(self) -> bool:
        required = self.config.chain_id_hex
        current = await self.provider.request("eth_chainId")
        if int(current, 16) == self.config.chain_id:
            return True

        switch = [{"chainId": required}]
        try:
            await self.provider.request("wallet_switchEthereumChain", switch)
        except ProviderRpcError as exc:
            if exc.code != UNRECOGNIZED_CHAIN_CODE:
                logger.error("Failed to switch network: %s", exc)
                return False
            try:
                await self.provider.request(
                    "wallet_addEthereumChain", [self.config.add_chain_params()]
                )
                await self.provider.request("wallet_switchEthereumChain", switch)
            except ProviderRpcError as add_exc:
                logger.error("Failed to add network: %s", add_exc)
                return False

        current = await self.provider.request("eth_chainId")
        if int(current, 16) != self.config.chain_id:
            logger.warning(
                "Wallet is on chain %s, expected %s", int(current, 16), self.config.chain_id
            )
            return False
        return True

    def disconnect(self) -> None:
        if self._context is not None:
            logger.info("Disconnected %s", self._context.address)
        self._context = None

    def close(self) -> None:
        """Stop listening to wallet notifications and drop the session."""
        self.provider.remove_listener(ACCOUNTS_CHANGED, self._handle_accounts_changed)
        self.provider.remove_listener(CHAIN_CHANGED, self._handle_chain_changed)
        self.disconnect()

    # ------------------------------------------------------------------
    # Wallet notifications
    # ------------------------------------------------------------------

    def _handle_accounts_changed(self, accounts: Any = None) -> None:
        self.disconnect()

    def _handle_chain_changed(self, chain_id: Any = None) -> None:
        if self._connecting:
            return
        logger.info("Chain changed to %s, reloading session", chain_id)
        self.disconnect()
        if self._on_reload is not None:
            self._on_reload()
