"""
Return-tuple schemas.

Each contract read has an explicit schema: an ordered list of fields, each
with the converter that turns the raw eth-abi value into its application
form. Amounts become decimal strings, timestamps integer seconds, statuses
their ``IntEnum`` member, ids ``0x`` hex.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Sequence

from eth_utils import to_checksum_address

from ..errors import ContractDecodeError
from ..units import format_amount
from .identifiers import to_wire_id
from .models import GroupPaymentStatus, PotStatus, TransferStatus

Converter = Callable[[Any], Any]


def address(value: Any) -> str:
    return to_checksum_address(value)


def amount(value: Any) -> str:
    return format_amount(int(value))


def uint(value: Any) -> int:
    return int(value)


def text(value: Any) -> str:
    return str(value)


def flag(value: Any) -> bool:
    return bool(value)


def wire_id(value: Any) -> str:
    return to_wire_id(value)


def wire_ids(value: Any) -> tuple[str, ...]:
    return tuple(to_wire_id(item) for item in value)


def status(enum_cls: type[IntEnum]) -> Converter:
    def convert(value: Any) -> IntEnum:
        try:
            return enum_cls(int(value))
        except ValueError:
            raise ContractDecodeError(
                f"Unknown {enum_cls.__name__} value: {value!r}"
            ) from None

    return convert


@dataclass(frozen=True)
class Field:
    name: str
    convert: Converter


@dataclass(frozen=True)
class ReturnSchema:
    function: str
    fields: tuple[Field, ...]

    def decode(self, values: Sequence[Any]) -> dict[str, Any]:
        """Convert a raw return tuple into keyword arguments for a record."""
        if len(values) != len(self.fields):
            raise ContractDecodeError(
                f"{self.function} returned {len(values)} values, "
                f"expected {len(self.fields)}"
            )
        try:
            return {f.name: f.convert(v) for f, v in zip(self.fields, values)}
        except ContractDecodeError:
            raise
        except (TypeError, ValueError) as exc:
            raise ContractDecodeError(f"{self.function}: {exc}") from exc


_TRANSFER_FIELDS = (
    Field("sender", address),
    Field("recipient", address),
    Field("amount", amount),
    Field("timestamp", uint),
    Field("status", status(TransferStatus)),
    Field("remarks", text),
)

TRANSFER_DETAILS = ReturnSchema("getTransferDetails", _TRANSFER_FIELDS)

# element of the getUserTransfers tuple[] output
USER_TRANSFER = ReturnSchema("getUserTransfers", _TRANSFER_FIELDS)

GROUP_PAYMENT_DETAILS = ReturnSchema(
    "getGroupPaymentDetails",
    (
        Field("creator", address),
        Field("recipient", address),
        Field("total_amount", amount),
        Field("amount_per_person", amount),
        Field("num_participants", uint),
        Field("amount_collected", amount),
        Field("timestamp", uint),
        Field("status", status(GroupPaymentStatus)),
        Field("remarks", text),
    ),
)

SAVINGS_POT_DETAILS = ReturnSchema(
    "getSavingsPotDetails",
    (
        Field("owner", address),
        Field("name", text),
        Field("target_amount", amount),
        Field("current_amount", amount),
        Field("timestamp", uint),
        Field("status", status(PotStatus)),
        Field("remarks", text),
    ),
)

USER_PROFILE = ReturnSchema(
    "getUserProfile",
    (
        Field("username", text),
        Field("transfer_ids", wire_ids),
        Field("group_payment_ids", wire_ids),
        Field("participated_group_payment_ids", wire_ids),
        Field("savings_pot_ids", wire_ids),
    ),
)

USER_BY_ADDRESS = ReturnSchema("getUserByAddress", (Field("username", text),))
USER_BY_USERNAME = ReturnSchema("getUserByUsername", (Field("address", address),))
PENDING_TRANSFERS = ReturnSchema("getPendingTransfers", (Field("ids", wire_ids),))
GROUP_PAYMENT_CONTRIBUTION = ReturnSchema(
    "getGroupPaymentContribution", (Field("amount", amount),)
)
HAS_CONTRIBUTED = ReturnSchema(
    "hasContributedToGroupPayment", (Field("contributed", flag),)
)
