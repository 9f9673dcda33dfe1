"""
ProtectedPay contract client.

A stateless facade over the deployed contract. Every method takes the
signer to act with; amounts go in and come out as decimal strings. Writes
submit a transaction and wait for one confirmation, reads return decoded
records straight away. Nothing read from the chain is cached between calls.

Writes are never retried: re-submitting a value-bearing transaction is the
caller's decision.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from eth_abi.exceptions import DecodingError, EncodingError

from ..chain.abi import PROTECTED_PAY, find_function, is_payable, load_abi
from ..chain.rpc import decode_function_result, encode_function_call
from ..chain.tx import _as_int
from ..config import DEFAULT_CONTRACT_ADDRESS, NetworkConfig
from ..errors import (
    ChainMismatchError,
    ContractDecodeError,
    TransactionRevertedError,
    ValidationError,
    normalize_error,
)
from ..units import parse_positive_amount
from ..wallet.signer import Signer
from . import decoding
from .events import EventCallback, EventDecoder, EventSubscription
from .identifiers import (
    ClaimByAddress,
    ClaimById,
    ClaimByUsername,
    checksum_address,
    parse_claim_identifier,
    wire_id_bytes,
)
from .models import (
    MIN_PARTICIPANTS,
    GroupPayment,
    ProfileDetails,
    SavingsPot,
    Transfer,
    UserProfile,
)

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3

T = TypeVar("T")


class ProtectedPayClient:
    """Typed, unit-correct access to every ProtectedPay contract method."""

    def __init__(
        self,
        contract_address: str = DEFAULT_CONTRACT_ADDRESS,
        chain_id: Optional[int] = None,
        abi: Optional[list] = None,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> None:
        self.contract_address = checksum_address(contract_address, "contract address")
        self.chain_id = chain_id
        self.abi = abi if abi is not None else load_abi(PROTECTED_PAY)
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self._events = EventDecoder(self.abi)

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "ProtectedPayClient":
        return cls(
            contract_address=config.contract_address,
            chain_id=config.chain_id,
            confirmation_timeout=config.confirmation_timeout,
            poll_interval=config.poll_interval,
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _ensure_chain(self, signer: Signer) -> None:
        if self.chain_id is None:
            return
        try:
            actual = await signer.get_chain_id()
        except Exception as exc:
            raise normalize_error(exc) from exc
        if actual != self.chain_id:
            raise ChainMismatchError(
                f"Wallet is on chain {actual}, expected {self.chain_id}"
            )

    def _calldata(self, function_name: str, args: list) -> str:
        try:
            return encode_function_call(self.abi, function_name, args)
        except EncodingError as exc:
            raise ValidationError(f"Invalid arguments for {function_name}: {exc}") from exc

    async def _read(self, signer: Signer, function_name: str, args: list) -> tuple:
        await self._ensure_chain(signer)
        calldata = self._calldata(function_name, args)
        try:
            result = await signer.call({"to": self.contract_address, "data": calldata})
        except Exception as exc:
            raise normalize_error(exc) from exc

        if not result or result == "0x":
            raise ContractDecodeError(f"{function_name} returned no data")
        try:
            return decode_function_result(self.abi, function_name, result)
        except (DecodingError, ValueError) as exc:
            raise ContractDecodeError(f"{function_name}: {exc}") from exc

    async def _write(
        self,
        signer: Signer,
        function_name: str,
        args: list,
        value: int = 0,
    ) -> dict:
        """Submit a transaction and wait for its receipt. Never retried."""
        if value and not is_payable(find_function(self.abi, function_name)):
            raise ValidationError(f"{function_name} does not accept a payment")
        await self._ensure_chain(signer)

        tx: dict[str, Any] = {
            "to": self.contract_address,
            "data": self._calldata(function_name, args),
        }
        if value:
            tx["value"] = hex(value)

        try:
            tx_hash = await signer.send_transaction(tx)
        except Exception as exc:
            error = normalize_error(exc)
            logger.info("%s not submitted: %s", function_name, error.message)
            raise error from exc
        logger.info("%s submitted: %s", function_name, tx_hash)

        try:
            receipt = await signer.wait_for_transaction(
                tx_hash,
                confirmations=1,
                timeout=self.confirmation_timeout,
                poll_interval=self.poll_interval,
            )
        except Exception as exc:
            raise normalize_error(exc) from exc

        if _as_int(receipt.get("status") or "0x1") != 1:
            reason = await self._revert_reason(signer, tx, receipt)
            logger.warning("%s reverted in %s: %s", function_name, tx_hash, reason)
            raise TransactionRevertedError(reason, tx_hash)

        logger.info("%s confirmed in block %s", function_name, receipt.get("blockNumber"))
        return receipt

    async def _revert_reason(self, signer: Signer, tx: dict, receipt: dict) -> Optional[str]:
        """Replay a failed transaction as a call to recover its revert reason."""
        try:
            await signer.call(tx, block=receipt.get("blockNumber", "latest"))
        except Exception as exc:
            error = normalize_error(exc)
            if isinstance(error, TransactionRevertedError):
                return error.reason
        return None

    @staticmethod
    async def _resolve(
        fetch: Callable[[Signer, str], Awaitable[T]],
        signer: Signer,
        ids: Sequence[str],
    ) -> tuple[T, ...]:
        """Fetch details for each id in parallel, keeping the id order."""
        if not ids:
            return ()
        return tuple(await asyncio.gather(*(fetch(signer, i) for i in ids)))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def register_username(self, signer: Signer, username: str) -> None:
        if not username or len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters long"
            )
        await self._write(signer, "registerUsername", [username])

    async def get_user_by_username(self, signer: Signer, username: str) -> str:
        """Address registered for a username (the zero address if none)."""
        raw = await self._read(signer, "getUserByUsername", [username])
        return decoding.USER_BY_USERNAME.decode(raw)["address"]

    async def get_user_by_address(self, signer: Signer, address: str) -> str:
        """Username registered for an address (empty if none)."""
        raw = await self._read(signer, "getUserByAddress", [checksum_address(address)])
        return decoding.USER_BY_ADDRESS.decode(raw)["username"]

    async def get_user_profile(self, signer: Signer, address: str) -> UserProfile:
        raw = await self._read(signer, "getUserProfile", [checksum_address(address)])
        return UserProfile(**decoding.USER_PROFILE.decode(raw))

    async def get_profile_details(self, signer: Signer, address: str) -> ProfileDetails:
        """Profile with every id list resolved into full records."""
        profile = await self.get_user_profile(signer, address)
        transfers, payments, participated, pots = await asyncio.gather(
            self._resolve(self.get_transfer_details, signer, profile.transfer_ids),
            self._resolve(self.get_group_payment_details, signer, profile.group_payment_ids),
            self._resolve(
                self.get_group_payment_details,
                signer,
                profile.participated_group_payment_ids,
            ),
            self._resolve(self.get_savings_pot_details, signer, profile.savings_pot_ids),
        )
        return ProfileDetails(
            profile=profile,
            transfers=transfers,
            group_payments=payments,
            participated_group_payments=participated,
            savings_pots=pots,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def send_to_address(
        self, signer: Signer, recipient: str, amount: str, remarks: str
    ) -> None:
        value = parse_positive_amount(amount)
        await self._write(
            signer,
            "sendToAddress",
            [checksum_address(recipient, "recipient address"), remarks],
            value=value,
        )

    async def send_to_username(
        self, signer: Signer, username: str, amount: str, remarks: str
    ) -> None:
        value = parse_positive_amount(amount)
        await self._write(signer, "sendToUsername", [username, remarks], value=value)

    async def send(self, signer: Signer, recipient: str, amount: str, remarks: str) -> None:
        """Send to an address when the recipient starts with 0x, else to a username."""
        if recipient.startswith("0x"):
            await self.send_to_address(signer, recipient, amount, remarks)
        else:
            await self.send_to_username(signer, recipient, amount, remarks)

    async def claim_transfer_by_address(self, signer: Signer, sender_address: str) -> None:
        await self._write(
            signer,
            "claimTransferByAddress",
            [checksum_address(sender_address, "sender address")],
        )

    async def claim_transfer_by_username(self, signer: Signer, sender_username: str) -> None:
        await self._write(signer, "claimTransferByUsername", [sender_username])

    async def claim_transfer_by_id(self, signer: Signer, transfer_id: str) -> None:
        await self._write(signer, "claimTransferById", [wire_id_bytes(transfer_id)])

    async def claim_transfer(self, signer: Signer, identifier: str) -> None:
        """Claim by transfer id, sender address or sender username, by shape."""
        target = parse_claim_identifier(identifier)
        if isinstance(target, ClaimById):
            await self.claim_transfer_by_id(signer, target.transfer_id)
        elif isinstance(target, ClaimByAddress):
            await self.claim_transfer_by_address(signer, target.sender_address)
        elif isinstance(target, ClaimByUsername):
            await self.claim_transfer_by_username(signer, target.sender_username)
        else:
            raise TypeError(f"Unhandled claim target: {target!r}")

    async def refund_transfer(self, signer: Signer, transfer_id: str) -> None:
        await self._write(signer, "refundTransfer", [wire_id_bytes(transfer_id)])

    async def get_transfer_details(self, signer: Signer, transfer_id: str) -> Transfer:
        raw = await self._read(signer, "getTransferDetails", [wire_id_bytes(transfer_id)])
        return Transfer(id=transfer_id, **decoding.TRANSFER_DETAILS.decode(raw))

    async def get_pending_transfers(self, signer: Signer, address: str) -> list[str]:
        """Pending transfer ids, in the order the contract returns them."""
        raw = await self._read(signer, "getPendingTransfers", [checksum_address(address)])
        return list(decoding.PENDING_TRANSFERS.decode(raw)["ids"])

    async def get_pending_transfer_details(
        self, signer: Signer, address: str
    ) -> list[Transfer]:
        ids = await self.get_pending_transfers(signer, address)
        return list(await self._resolve(self.get_transfer_details, signer, ids))

    async def get_refundable_transfers(self, signer: Signer, address: str) -> list[Transfer]:
        """Pending transfers that ``address`` sent and may still refund."""
        sender = checksum_address(address)
        transfers = await self.get_pending_transfer_details(signer, sender)
        return [t for t in transfers if t.sender == sender]

    async def get_user_transfers(self, signer: Signer, address: str) -> list[Transfer]:
        """Full transfer history of an address (rows carry no ids)."""
        raw = await self._read(signer, "getUserTransfers", [checksum_address(address)])
        (rows,) = raw
        return [
            Transfer(id=None, **decoding.USER_TRANSFER.decode(row)) for row in rows
        ]

    # ------------------------------------------------------------------
    # Group payments
    # ------------------------------------------------------------------

    async def create_group_payment(
        self,
        signer: Signer,
        recipient: str,
        num_participants: int,
        total_amount: str,
        remarks: str,
    ) -> None:
        if int(num_participants) < MIN_PARTICIPANTS:
            raise ValidationError(
                f"A group payment needs at least {MIN_PARTICIPANTS} participants"
            )
        value = parse_positive_amount(total_amount, "Total amount")
        await self._write(
            signer,
            "createGroupPayment",
            [
                checksum_address(recipient, "recipient address"),
                int(num_participants),
                remarks,
            ],
            value=value,
        )

    async def contribute_to_group_payment(
        self, signer: Signer, payment_id: str, amount: str
    ) -> None:
        value = parse_positive_amount(amount)
        await self._write(
            signer, "contributeToGroupPayment", [wire_id_bytes(payment_id)], value=value
        )

    async def get_group_payment_details(self, signer: Signer, payment_id: str) -> GroupPayment:
        raw = await self._read(
            signer, "getGroupPaymentDetails", [wire_id_bytes(payment_id)]
        )
        return GroupPayment(id=payment_id, **decoding.GROUP_PAYMENT_DETAILS.decode(raw))

    async def get_group_payment_contribution(
        self, signer: Signer, payment_id: str, user_address: str
    ) -> str:
        raw = await self._read(
            signer,
            "getGroupPaymentContribution",
            [wire_id_bytes(payment_id), checksum_address(user_address)],
        )
        return decoding.GROUP_PAYMENT_CONTRIBUTION.decode(raw)["amount"]

    async def has_contributed_to_group_payment(
        self, signer: Signer, payment_id: str, user_address: str
    ) -> bool:
        raw = await self._read(
            signer,
            "hasContributedToGroupPayment",
            [wire_id_bytes(payment_id), checksum_address(user_address)],
        )
        return decoding.HAS_CONTRIBUTED.decode(raw)["contributed"]

    # ------------------------------------------------------------------
    # Savings pots
    # ------------------------------------------------------------------

    async def create_savings_pot(
        self, signer: Signer, name: str, target_amount: str, remarks: str
    ) -> None:
        # the target is an argument, not a deposit
        target = parse_positive_amount(target_amount, "Target amount")
        await self._write(signer, "createSavingsPot", [name, target, remarks])

    async def contribute_to_savings_pot(self, signer: Signer, pot_id: str, amount: str) -> None:
        value = parse_positive_amount(amount)
        await self._write(
            signer, "contributeToSavingsPot", [wire_id_bytes(pot_id)], value=value
        )

    async def break_pot(self, signer: Signer, pot_id: str) -> None:
        await self._write(signer, "breakPot", [wire_id_bytes(pot_id)])

    async def get_savings_pot_details(self, signer: Signer, pot_id: str) -> SavingsPot:
        raw = await self._read(signer, "getSavingsPotDetails", [wire_id_bytes(pot_id)])
        return SavingsPot(id=pot_id, **decoding.SAVINGS_POT_DETAILS.decode(raw))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def subscribe_to_events(
        self,
        signer: Signer,
        callback: EventCallback,
        poll_interval: Optional[float] = None,
    ) -> Callable[[], None]:
        """
        Deliver every contract event from now on to ``callback``.

        Returns:
            A function that stops all nine listeners; calling it again is a no-op
        """
        await self._ensure_chain(signer)
        subscription = EventSubscription(
            signer,
            self.contract_address,
            self._events,
            callback,
            poll_interval=self.poll_interval if poll_interval is None else poll_interval,
        )
        try:
            await subscription.start()
        except Exception as exc:
            raise normalize_error(exc) from exc
        return subscription.unsubscribe
