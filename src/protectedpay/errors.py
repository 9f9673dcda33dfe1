"""
Error taxonomy for ProtectedPay.

Every failure that leaves the contract client is one of the
``ProtectedPayError`` subclasses below. Raw provider and transport errors
are converted with :func:`normalize_error` so callers only ever see a
human-readable ``message`` and, for the CLI, an ``exit_code``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes

logger = logging.getLogger(__name__)

# EIP-1193 provider error codes
USER_REJECTED_CODE = 4001
UNAUTHORIZED_CODE = 4100
UNRECOGNIZED_CHAIN_CODE = 4902
# JSON-RPC code used by nodes for execution reverts
EXECUTION_REVERTED_CODE = 3

# selector of Error(string)
_ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")


class ProviderRpcError(Exception):
    """Error answered by a wallet provider or a JSON-RPC node."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __repr__(self) -> str:
        return f"ProviderRpcError(code={self.code}, message={self.message!r})"


class ProtectedPayError(RuntimeError):
    exit_code: int = 1
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UserRejectedError(ProtectedPayError):
    exit_code = 2
    default_message = "Transaction was rejected"


class InsufficientFundsError(ProtectedPayError):
    exit_code = 3
    default_message = "Insufficient funds for transaction"


class TransactionRevertedError(ProtectedPayError):
    exit_code = 4
    default_message = "Transaction failed"

    def __init__(self, reason: Optional[str] = None, tx_hash: Optional[str] = None) -> None:
        self.reason = reason
        self.tx_hash = tx_hash
        if reason:
            message = f"Transaction reverted: {reason}"
        elif tx_hash:
            message = f"Transaction failed: {tx_hash}"
        else:
            message = None
        super().__init__(message)


class ChainMismatchError(ProtectedPayError):
    exit_code = 5
    default_message = "Wallet is connected to the wrong network"


class ValidationError(ProtectedPayError):
    exit_code = 6


class NotConnectedError(ProtectedPayError):
    exit_code = 7
    default_message = "Please connect your wallet first"


class ContractDecodeError(ProtectedPayError):
    exit_code = 8
    default_message = "Unexpected data returned by the contract"


class TransactionTimeoutError(ProtectedPayError):
    exit_code = 9
    default_message = "Transaction was not confirmed in time"


class NetworkError(ProtectedPayError):
    exit_code = 10
    default_message = "Could not reach the network"


def decode_revert_reason(data: Any) -> Optional[str]:
    """
    Extract the reason string from ``Error(string)`` revert data.

    Args:
        data: Hex string (or bytes) attached to a revert error.

    Returns:
        The reason, or None when the data is empty or of another shape.
    """
    if isinstance(data, dict):
        data = data.get("data")
    if not data:
        return None
    try:
        raw = data if isinstance(data, bytes) else to_bytes(hexstr=data)
    except (TypeError, ValueError):
        return None
    if raw[:4] != _ERROR_STRING_SELECTOR:
        return None
    try:
        (reason,) = decode(["string"], raw[4:])
    except DecodingError:
        return None
    return reason


def _reason_from_message(message: str) -> Optional[str]:
    marker = "execution reverted"
    lowered = message.lower()
    if marker not in lowered:
        return None
    reason = message[lowered.index(marker) + len(marker):].lstrip(": ").strip()
    return reason or None


def normalize_error(exc: BaseException) -> ProtectedPayError:
    """
    Map any exception raised while talking to the chain onto the taxonomy.

    Already-normalized errors pass through unchanged.
    """
    if isinstance(exc, ProtectedPayError):
        return exc

    if isinstance(exc, ProviderRpcError):
        message = exc.message or ""
        lowered = message.lower()
        if (
            exc.code == USER_REJECTED_CODE
            or "user rejected" in lowered
            or "user denied" in lowered
        ):
            return UserRejectedError()
        if "insufficient funds" in lowered:
            return InsufficientFundsError()
        if exc.code == EXECUTION_REVERTED_CODE or "revert" in lowered:
            reason = decode_revert_reason(exc.data) or _reason_from_message(message)
            return TransactionRevertedError(reason)
        if exc.code == UNAUTHORIZED_CODE:
            return NotConnectedError()
        return ProtectedPayError(message or None)

    if isinstance(exc, httpx.HTTPError):
        logger.debug("Transport failure: %r", exc)
        return NetworkError(f"Could not reach the network: {exc}")

    if isinstance(exc, TimeoutError):
        return TransactionTimeoutError(str(exc) or None)

    message = str(exc)
    lowered = message.lower()
    if "user rejected" in lowered:
        return UserRejectedError()
    if "insufficient funds" in lowered:
        return InsufficientFundsError()
    return ProtectedPayError(message or None)


def describe_error(exc: BaseException) -> str:
    """Human-readable message for any error, for display at the UI boundary."""
    return normalize_error(exc).message
