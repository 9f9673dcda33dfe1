"""
JSON-RPC client for EVM nodes.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for
encoding. Read-only methods are retried on transport failures; anything
that broadcasts a transaction is sent exactly once.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Optional

import httpx
from eth_abi import decode, encode
from eth_utils import to_bytes

from ..errors import ProviderRpcError
from .abi import find_function, function_selector, input_types, output_types

logger = logging.getLogger(__name__)

# Methods that are never retried: a retry could broadcast twice.
NON_IDEMPOTENT_METHODS = frozenset({"eth_sendRawTransaction", "eth_sendTransaction"})


class RpcClient:
    """Async JSON-RPC client bound to one endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        read_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.read_retries = read_retries
        self.retry_delay = retry_delay
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            ProviderRpcError: If the node answers with an error object
            httpx.HTTPError: If the endpoint cannot be reached
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        attempts = 1 if method in NON_IDEMPOTENT_METHODS else 1 + self.read_retries

        for attempt in range(attempts):
            try:
                response = await self._client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                data = response.json()
                break
            except httpx.TransportError as exc:
                if attempt == attempts - 1:
                    raise
                logger.warning(
                    "RPC %s to %s failed (%s), retrying", method, self.rpc_url, exc
                )
                await asyncio.sleep(self.retry_delay)

        if "error" in data:
            error = data["error"] or {}
            raise ProviderRpcError(
                int(error.get("code", -32603)),
                error.get("message", "RPC error"),
                error.get("data"),
            )

        return data.get("result")

    # Convenience wrappers

    async def chain_id(self) -> int:
        return int(await self.call("eth_chainId"), 16)

    async def block_number(self) -> int:
        return int(await self.call("eth_blockNumber"), 16)

    async def get_balance(self, address: str) -> int:
        """Balance of an address in wei."""
        return int(await self.call("eth_getBalance", [address, "latest"]), 16)

    async def get_nonce(self, address: str) -> int:
        result = await self.call("eth_getTransactionCount", [address, "pending"])
        return int(result, 16)

    async def gas_price(self) -> int:
        return int(await self.call("eth_gasPrice"), 16)

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return int(await self.call("eth_estimateGas", [tx]), 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction; returns its hash."""
        return await self.call("eth_sendRawTransaction", [raw_tx])

    async def get_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.call("eth_getTransactionReceipt", [tx_hash])


def encode_function_call(abi: list, function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        abi: Contract ABI
        function_name: Function name to call
        args: Function arguments

    Returns:
        0x-prefixed hex encoded calldata
    """
    func = find_function(abi, function_name)
    types = input_types(func)
    if len(args) != len(types):
        raise ValueError(
            f"{function_name} expects {len(types)} arguments, got {len(args)}"
        )

    encoded_args = encode(types, args) if args else b""
    return "0x" + function_selector(func).hex() + encoded_args.hex()


def decode_function_result(abi: list, function_name: str, data: str) -> tuple:
    """
    ABI-decode a function call result.

    Args:
        abi: Contract ABI
        function_name: Function name
        data: 0x-prefixed hex encoded return data

    Returns:
        Decoded outputs as a tuple (empty for functions without outputs)
    """
    func = find_function(abi, function_name)
    types = output_types(func)
    if not types:
        return ()
    return tuple(decode(types, to_bytes(hexstr=data)))
