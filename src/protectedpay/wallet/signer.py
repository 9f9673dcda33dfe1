"""Signer: an address bound to the wallet provider that can authorize it."""

from __future__ import annotations

from typing import Any, Optional

from ..chain.tx import wait_for_receipt
from .provider import WalletProvider


class Signer:
    """
    Capability object for one authenticated identity.

    Every call goes through the wallet provider, so reads and writes always
    hit the chain the wallet currently has active.
    """

    def __init__(self, provider: WalletProvider, address: str) -> None:
        self.provider = provider
        self.address = address

    def __repr__(self) -> str:
        return f"Signer({self.address})"

    async def get_chain_id(self) -> int:
        return int(await self.provider.request("eth_chainId"), 16)

    async def block_number(self) -> int:
        return int(await self.provider.request("eth_blockNumber"), 16)

    async def get_balance(self, address: Optional[str] = None) -> int:
        """Native balance in wei (of the signer unless another address is given)."""
        result = await self.provider.request(
            "eth_getBalance", [address or self.address, "latest"]
        )
        return int(result, 16)

    async def call(self, tx: dict[str, Any], block: Any = "latest") -> str:
        """Execute a read-only call; returns the raw 0x hex result."""
        return await self.provider.request(
            "eth_call", [{"from": self.address, **tx}, block]
        )

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        """Ask the wallet to sign and broadcast; returns the tx hash."""
        return await self.provider.request(
            "eth_sendTransaction", [{"from": self.address, **tx}]
        )

    async def get_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.provider.request("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_transaction(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> dict:
        return await wait_for_receipt(
            self,
            tx_hash,
            confirmations=confirmations,
            timeout=timeout,
            poll_interval=poll_interval,
        )

    async def get_logs(self, log_filter: dict[str, Any]) -> list[dict]:
        return await self.provider.request("eth_getLogs", [log_filter]) or []
