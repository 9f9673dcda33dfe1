"""
Identifier shapes.

Wire IDs are opaque 32-byte values; they are carried as ``0x`` + 64 hex
characters and only ever converted to bytes for encoding.

Free-form claim identifiers are parsed into one of three tagged variants
that decide which claim method runs on-chain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from eth_utils import to_checksum_address

from ..errors import ValidationError

WIRE_ID_RE = re.compile(r"0x[0-9a-fA-F]{64}")
ZERO_ADDRESS = "0x" + "0" * 40


def to_wire_id(raw: bytes) -> str:
    """0x-prefixed hex form of a 32-byte value returned by the contract."""
    return "0x" + bytes(raw).hex()


def wire_id_bytes(wire_id: str) -> bytes:
    """
    32 bytes for an outbound wire ID.

    Raises:
        ValidationError: If the value is not 0x followed by 64 hex characters
    """
    if not isinstance(wire_id, str) or not WIRE_ID_RE.fullmatch(wire_id):
        raise ValidationError(f"Invalid id: {wire_id!r}")
    return bytes.fromhex(wire_id[2:])


def checksum_address(address: str, label: str = "address") -> str:
    """
    EIP-55 form of an address argument.

    Raises:
        ValidationError: If the value is not a 20-byte hex address
    """
    try:
        return to_checksum_address(address)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}: {address!r}") from None


@dataclass(frozen=True)
class ClaimById:
    transfer_id: str


@dataclass(frozen=True)
class ClaimByAddress:
    sender_address: str


@dataclass(frozen=True)
class ClaimByUsername:
    sender_username: str


ClaimTarget = Union[ClaimById, ClaimByAddress, ClaimByUsername]


def parse_claim_identifier(identifier: str) -> ClaimTarget:
    """
    Decide how a claim identifier is resolved on-chain.

    - ``0x`` + 64 hex characters: a transfer id
    - any other ``0x`` prefix: the sender's address
    - anything else: the sender's username
    """
    if WIRE_ID_RE.fullmatch(identifier):
        return ClaimById(identifier)
    if identifier.startswith("0x"):
        return ClaimByAddress(identifier)
    return ClaimByUsername(identifier)
