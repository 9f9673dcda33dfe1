"""
Contract event subscription.

Nine contract events are multiplexed into a single callback through a fixed
dispatch table: event name -> normalizer. Logs are fetched by polling
``eth_getLogs`` and delivered in (block, log index) order, each exactly once
while the subscription is open. Nothing is buffered or replayed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes

from ..chain.abi import abi_type, event_topic, find_event
from ..wallet.signer import Signer
from . import decoding as conv
from .models import ContractEvent, GroupPaymentEvent, SavingsPotEvent, TransferEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[ContractEvent], Union[None, Awaitable[None]]]
Normalizer = Callable[[dict[str, Any], dict[str, Any]], ContractEvent]


def _transfer_initiated(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return TransferEvent(
        type="TransferInitiated",
        transfer_id=conv.wire_id(args["transferId"]),
        sender=conv.address(args["sender"]),
        recipient=conv.address(args["recipient"]),
        amount=conv.amount(args["amount"]),
        remarks=args["remarks"],
        **meta,
    )


def _transfer_claimed(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return TransferEvent(
        type="TransferClaimed",
        transfer_id=conv.wire_id(args["transferId"]),
        recipient=conv.address(args["recipient"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


def _transfer_refunded(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return TransferEvent(
        type="TransferRefunded",
        transfer_id=conv.wire_id(args["transferId"]),
        sender=conv.address(args["sender"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


def _group_payment_created(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return GroupPaymentEvent(
        type="GroupPaymentCreated",
        payment_id=conv.wire_id(args["paymentId"]),
        creator=conv.address(args["creator"]),
        recipient=conv.address(args["recipient"]),
        amount=conv.amount(args["totalAmount"]),
        num_participants=conv.uint(args["numParticipants"]),
        remarks=args["remarks"],
        **meta,
    )


def _group_payment_contributed(
    args: dict[str, Any], meta: dict[str, Any]
) -> ContractEvent:
    return GroupPaymentEvent(
        type="GroupPaymentContributed",
        payment_id=conv.wire_id(args["paymentId"]),
        contributor=conv.address(args["contributor"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


def _group_payment_completed(
    args: dict[str, Any], meta: dict[str, Any]
) -> ContractEvent:
    return GroupPaymentEvent(
        type="GroupPaymentCompleted",
        payment_id=conv.wire_id(args["paymentId"]),
        recipient=conv.address(args["recipient"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


def _savings_pot_created(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return SavingsPotEvent(
        type="SavingsPotCreated",
        pot_id=conv.wire_id(args["potId"]),
        owner=conv.address(args["owner"]),
        name=args["name"],
        target_amount=conv.amount(args["targetAmount"]),
        remarks=args["remarks"],
        **meta,
    )


def _pot_contribution(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return SavingsPotEvent(
        type="PotContribution",
        pot_id=conv.wire_id(args["potId"]),
        contributor=conv.address(args["contributor"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


def _pot_broken(args: dict[str, Any], meta: dict[str, Any]) -> ContractEvent:
    return SavingsPotEvent(
        type="PotBroken",
        pot_id=conv.wire_id(args["potId"]),
        owner=conv.address(args["owner"]),
        amount=conv.amount(args["amount"]),
        **meta,
    )


EVENT_NORMALIZERS: dict[str, Normalizer] = {
    "TransferInitiated": _transfer_initiated,
    "TransferClaimed": _transfer_claimed,
    "TransferRefunded": _transfer_refunded,
    "GroupPaymentCreated": _group_payment_created,
    "GroupPaymentContributed": _group_payment_contributed,
    "GroupPaymentCompleted": _group_payment_completed,
    "SavingsPotCreated": _savings_pot_created,
    "PotContribution": _pot_contribution,
    "PotBroken": _pot_broken,
}


class EventDecoder:
    """Maps log topics to ABI event entries and their normalizers."""

    def __init__(self, abi: list) -> None:
        self._by_topic: dict[str, tuple[dict[str, Any], Normalizer]] = {}
        for name, normalizer in EVENT_NORMALIZERS.items():
            entry = find_event(abi, name)
            self._by_topic[event_topic(entry)] = (entry, normalizer)

    @property
    def topics(self) -> list[str]:
        return list(self._by_topic)

    def decode_args(self, entry: dict[str, Any], log: dict[str, Any]) -> dict[str, Any]:
        """Decode indexed parameters from topics and the rest from data."""
        indexed = [p for p in entry["inputs"] if p.get("indexed")]
        unindexed = [p for p in entry["inputs"] if not p.get("indexed")]
        topics = log.get("topics", [])[1:]
        if len(topics) != len(indexed):
            raise ValueError(
                f"{entry['name']} log has {len(topics)} indexed topics, "
                f"expected {len(indexed)}"
            )

        args: dict[str, Any] = {}
        for param, topic in zip(indexed, topics):
            (args[param["name"]],) = decode([abi_type(param)], to_bytes(hexstr=topic))
        if unindexed:
            values = decode(
                [abi_type(p) for p in unindexed], to_bytes(hexstr=log.get("data", "0x"))
            )
            for param, value in zip(unindexed, values):
                args[param["name"]] = value
        return args

    def normalize(self, log: dict[str, Any]) -> Optional[ContractEvent]:
        """Normalized record for a log, or None for events outside the table."""
        topics = log.get("topics") or []
        if not topics:
            return None
        match = self._by_topic.get(topics[0].lower())
        if match is None:
            return None
        entry, normalizer = match
        meta = {
            "block_number": _int_or_none(log.get("blockNumber")),
            "transaction_hash": log.get("transactionHash"),
            "log_index": _int_or_none(log.get("logIndex")),
        }
        return normalizer(self.decode_args(entry, log), meta)


def _int_or_none(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 16)
    return int(value)


def _log_position(log: dict[str, Any]) -> tuple[int, int]:
    return (_int_or_none(log.get("blockNumber")) or 0, _int_or_none(log.get("logIndex")) or 0)


class EventSubscription:
    """Polls contract logs from the subscription block onwards."""

    def __init__(
        self,
        signer: Signer,
        contract_address: str,
        decoder: EventDecoder,
        callback: EventCallback,
        poll_interval: float = 2.0,
    ) -> None:
        self.signer = signer
        self.contract_address = contract_address
        self.decoder = decoder
        self.callback = callback
        self.poll_interval = poll_interval
        self._next_block: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def anchor(self) -> int:
        """Only logs from blocks after the current head are delivered."""
        self._next_block = await self.signer.block_number() + 1
        return self._next_block

    async def start(self) -> None:
        """Anchor at the next block and start polling in the background."""
        await self.anchor()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def unsubscribe(self) -> None:
        """Stop listening to all events. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Event subscription for %s closed", self.contract_address)

    async def _run(self) -> None:
        while not self._closed:
            try:
                await self.poll()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Event poll failed: %s", exc)
            await asyncio.sleep(self.poll_interval)

    async def poll(self) -> int:
        """Fetch and deliver logs up to the latest block; returns the count delivered."""
        if self._next_block is None:
            raise RuntimeError("Subscription not anchored")
        latest = await self.signer.block_number()
        if latest < self._next_block:
            return 0

        logs = await self.signer.get_logs(
            {
                "address": self.contract_address,
                "fromBlock": hex(self._next_block),
                "toBlock": hex(latest),
                "topics": [self.decoder.topics],
            }
        )
        self._next_block = latest + 1

        delivered = 0
        for log in sorted(logs, key=_log_position):
            if self._closed:
                break
            if log.get("removed"):
                continue
            try:
                event = self.decoder.normalize(log)
            except (DecodingError, TypeError, ValueError) as exc:
                logger.warning("Skipping undecodable log %s: %s", log.get("transactionHash"), exc)
                continue
            if event is None:
                continue
            try:
                result = self.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event callback failed for %s", event.type)
            delivered += 1
        return delivered
