"""Domain records decoded from ProtectedPay reads and events. All are frozen."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Union

from ..units import ratio

MIN_PARTICIPANTS = 2


class TransferStatus(IntEnum):
    PENDING = 0
    CLAIMED = 1
    REFUNDED = 2


class GroupPaymentStatus(IntEnum):
    PENDING = 0
    COMPLETED = 1
    CANCELLED = 2


class PotStatus(IntEnum):
    ACTIVE = 0
    BROKEN = 1


def _utc(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class Transfer:
    """Escrowed transfer. ``id`` is None for rows from the bulk history read."""

    id: Optional[str]
    sender: str
    recipient: str
    amount: str
    timestamp: int
    status: TransferStatus
    remarks: str

    @property
    def created_at(self) -> datetime:
        return _utc(self.timestamp)

    @property
    def is_pending(self) -> bool:
        return self.status == TransferStatus.PENDING


@dataclass(frozen=True)
class GroupPayment:
    id: str
    creator: str
    recipient: str
    total_amount: str
    amount_per_person: str
    num_participants: int
    amount_collected: str
    timestamp: int
    status: GroupPaymentStatus
    remarks: str

    @property
    def created_at(self) -> datetime:
        return _utc(self.timestamp)

    @property
    def progress(self) -> float:
        """Share of the total collected so far, in [0, 1]; 0 for a zero total."""
        return ratio(self.amount_collected, self.total_amount)


@dataclass(frozen=True)
class SavingsPot:
    id: str
    owner: str
    name: str
    target_amount: str
    current_amount: str
    timestamp: int
    status: PotStatus
    remarks: str

    @property
    def created_at(self) -> datetime:
        return _utc(self.timestamp)

    @property
    def progress(self) -> float:
        """Share of the target saved so far, in [0, 1]; 0 for a zero target."""
        return ratio(self.current_amount, self.target_amount)


@dataclass(frozen=True)
class UserProfile:
    username: str
    transfer_ids: tuple[str, ...] = ()
    group_payment_ids: tuple[str, ...] = ()
    participated_group_payment_ids: tuple[str, ...] = ()
    savings_pot_ids: tuple[str, ...] = ()

    @property
    def is_registered(self) -> bool:
        return bool(self.username)


@dataclass(frozen=True)
class ProfileDetails:
    """A profile with each of its id lists resolved, in id order."""

    profile: UserProfile
    transfers: tuple[Transfer, ...] = ()
    group_payments: tuple[GroupPayment, ...] = ()
    participated_group_payments: tuple[GroupPayment, ...] = ()
    savings_pots: tuple[SavingsPot, ...] = ()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransferEvent:
    type: str
    transfer_id: str
    amount: str
    sender: Optional[str] = None
    recipient: Optional[str] = None
    remarks: Optional[str] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None


@dataclass(frozen=True)
class GroupPaymentEvent:
    type: str
    payment_id: str
    amount: str
    creator: Optional[str] = None
    contributor: Optional[str] = None
    recipient: Optional[str] = None
    num_participants: Optional[int] = None
    remarks: Optional[str] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None


@dataclass(frozen=True)
class SavingsPotEvent:
    type: str
    pot_id: str
    owner: Optional[str] = None
    contributor: Optional[str] = None
    amount: Optional[str] = None
    name: Optional[str] = None
    target_amount: Optional[str] = None
    remarks: Optional[str] = None
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None


ContractEvent = Union[TransferEvent, GroupPaymentEvent, SavingsPotEvent]
