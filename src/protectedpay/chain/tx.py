"""
Transaction Builder - Build, sign, and send Ethereum transactions.

Uses eth-account for signing and the httpx-based JSON-RPC client for
sending. All gas is paid by the signing EOA.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from .rpc import RpcClient

logger = logging.getLogger(__name__)

# Head-room applied on top of eth_estimateGas
GAS_LIMIT_MARGIN = 1.2
DEFAULT_GAS_LIMIT = 500_000


def _as_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


async def build_transaction(
    rpc: RpcClient,
    account: LocalAccount,
    request: dict[str, Any],
    chain_id: int,
) -> dict[str, Any]:
    """
    Fill in a transaction request (``eth_sendTransaction`` shape).

    Args:
        rpc: Client for the active chain
        account: Signing account
        request: Request with at least ``to``; ``data``, ``value``, ``gas``,
            ``gasPrice`` and ``nonce`` are optional hex strings or ints
        chain_id: Chain the transaction is bound to

    Returns:
        Unsigned transaction dict accepted by eth-account
    """
    value = _as_int(request.get("value", 0))
    data = request.get("data", "0x")

    tx: dict[str, Any] = {
        "to": to_checksum_address(request["to"]),
        "data": data,
        "value": value,
        "chainId": chain_id,
    }

    if "nonce" in request:
        tx["nonce"] = _as_int(request["nonce"])
    else:
        tx["nonce"] = await rpc.get_nonce(account.address)

    if "gasPrice" in request:
        tx["gasPrice"] = _as_int(request["gasPrice"])
    else:
        tx["gasPrice"] = await rpc.gas_price()

    if "gas" in request:
        tx["gas"] = _as_int(request["gas"])
    else:
        # eth_estimateGas also surfaces reverts and insufficient funds
        # before anything is broadcast.
        estimate = await rpc.estimate_gas(
            {
                "from": account.address,
                "to": tx["to"],
                "data": data,
                "value": hex(value),
            }
        )
        tx["gas"] = int(estimate * GAS_LIMIT_MARGIN) or DEFAULT_GAS_LIMIT

    return tx


def sign_transaction(account: LocalAccount, tx: dict[str, Any]) -> str:
    """Sign a transaction; returns 0x-prefixed raw transaction hex."""
    signed = account.sign_transaction(tx)
    return "0x" + bytes(signed.raw_transaction).hex()


async def send_transaction(
    rpc: RpcClient,
    account: LocalAccount,
    request: dict[str, Any],
    chain_id: int,
) -> str:
    """
    Build, sign, and broadcast a transaction.

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    tx = await build_transaction(rpc, account, request, chain_id)
    raw_tx = sign_transaction(account, tx)
    tx_hash = await rpc.send_raw_transaction(raw_tx)
    logger.info("Broadcast tx %s (nonce %s)", tx_hash, tx["nonce"])
    return tx_hash


async def wait_for_receipt(
    rpc: Any,
    tx_hash: str,
    confirmations: int = 1,
    timeout: float = 120.0,
    poll_interval: float = 2.0,
) -> dict:
    """
    Wait until a transaction is included and has enough confirmations.

    Args:
        rpc: Anything exposing get_receipt() and block_number()
        tx_hash: Transaction hash
        confirmations: Blocks required, counting the inclusion block
        timeout: Maximum wait time in seconds
        poll_interval: Polling interval in seconds

    Returns:
        Transaction receipt dict

    Raises:
        TimeoutError: If the receipt is not confirmed within timeout
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        receipt = await rpc.get_receipt(tx_hash)
        if receipt is not None and receipt.get("blockNumber") is not None:
            if confirmations <= 1:
                return receipt
            included = _as_int(receipt["blockNumber"])
            if await rpc.block_number() - included + 1 >= confirmations:
                return receipt
        await asyncio.sleep(poll_interval)

    raise TimeoutError(f"Transaction {tx_hash} not confirmed within {timeout}s")
