"""Tests for event decoding and the polling subscription."""

from __future__ import annotations

import asyncio
import logging

import pytest
from eth_abi import encode

from fakes import OTHER_ADDRESS, TEST_ADDRESS, FakeNode, wire_id
from protectedpay.chain.abi import event_topic, find_event, load_abi
from protectedpay.contract.client import ProtectedPayClient
from protectedpay.contract.events import EVENT_NORMALIZERS, EventDecoder, EventSubscription
from protectedpay.contract.models import SavingsPotEvent, TransferEvent

ONE = 10**18
CONTRACT = "0xF887B4D3b17C12C86cc917cF72fb8881f866a847"


def _topic(kind: str, value) -> str:
    return "0x" + encode([kind], [value]).hex()


def make_log(name: str, indexed: list, data_types: list, data_values: list, block: int, index: int = 0) -> dict:
    entry = find_event(load_abi(), name)
    return {
        "address": CONTRACT,
        "topics": [event_topic(entry)] + [_topic(kind, value) for kind, value in indexed],
        "data": "0x" + encode(data_types, data_values).hex(),
        "blockNumber": hex(block),
        "logIndex": hex(index),
        "transactionHash": "0x" + f"{block:02x}{index:02x}" * 16,
    }


def transfer_initiated(block: int, index: int = 0, amount: int = ONE, n: int = 1) -> dict:
    return make_log(
        "TransferInitiated",
        [("bytes32", bytes.fromhex(wire_id(n)[2:])), ("address", TEST_ADDRESS), ("address", OTHER_ADDRESS)],
        ["uint256", "string"],
        [amount, "coffee"],
        block,
        index,
    )


def pot_broken(block: int, index: int = 0) -> dict:
    return make_log(
        "PotBroken",
        [("bytes32", bytes.fromhex(wire_id(5)[2:])), ("address", TEST_ADDRESS)],
        ["uint256"],
        [ONE // 2],
        block,
        index,
    )


@pytest.fixture()
def decoder() -> EventDecoder:
    return EventDecoder(load_abi())


class TestEventDecoder:
    def test_dispatch_table_covers_nine_events(self, decoder: EventDecoder) -> None:
        assert len(EVENT_NORMALIZERS) == 9
        assert len(decoder.topics) == 9

    def test_transfer_initiated(self, decoder: EventDecoder) -> None:
        event = decoder.normalize(transfer_initiated(block=7, index=2))
        assert event == TransferEvent(
            type="TransferInitiated",
            transfer_id=wire_id(1),
            amount="1.0",
            sender=TEST_ADDRESS,
            recipient=OTHER_ADDRESS,
            remarks="coffee",
            block_number=7,
            transaction_hash="0x" + "0702" * 16,
            log_index=2,
        )

    def test_savings_pot_created(self, decoder: EventDecoder) -> None:
        log = make_log(
            "SavingsPotCreated",
            [("bytes32", bytes.fromhex(wire_id(4)[2:])), ("address", TEST_ADDRESS)],
            ["string", "uint256", "string"],
            ["Holiday", 2 * ONE, "summer"],
            block=3,
        )
        event = decoder.normalize(log)
        assert isinstance(event, SavingsPotEvent)
        assert event.target_amount == "2.0"
        assert event.amount is None
        assert event.name == "Holiday"

    def test_group_payment_created(self, decoder: EventDecoder) -> None:
        log = make_log(
            "GroupPaymentCreated",
            [("bytes32", bytes.fromhex(wire_id(2)[2:])), ("address", TEST_ADDRESS)],
            ["address", "uint256", "uint256", "string"],
            [OTHER_ADDRESS, 3 * ONE, 3, "dinner"],
            block=3,
        )
        event = decoder.normalize(log)
        assert event.amount == "3.0"
        assert event.num_participants == 3
        assert event.recipient == OTHER_ADDRESS

    def test_unregistered_event_ignored(self, decoder: EventDecoder) -> None:
        log = make_log("UserRegistered", [("address", TEST_ADDRESS)], ["string"], ["alice"], block=1)
        assert decoder.normalize(log) is None

    def test_topic_count_mismatch(self, decoder: EventDecoder) -> None:
        log = transfer_initiated(block=1)
        log["topics"] = log["topics"][:2]
        with pytest.raises(ValueError, match="indexed topics"):
            decoder.normalize(log)


class TestEventSubscription:
    async def test_delivers_new_logs_in_order(self, signer, node: FakeNode, decoder) -> None:
        received = []
        subscription = EventSubscription(signer, CONTRACT, decoder, received.append)
        assert await subscription.anchor() == node.block + 1

        node.logs = [
            pot_broken(block=102, index=0),
            transfer_initiated(block=101, index=3, n=2),
            transfer_initiated(block=100, index=0, n=9),  # before the anchor
            transfer_initiated(block=101, index=1, n=1),
        ]
        node.block = 102

        assert await subscription.poll() == 3
        assert [e.type for e in received] == ["TransferInitiated", "TransferInitiated", "PotBroken"]
        assert [e.transfer_id for e in received[:2]] == [wire_id(1), wire_id(2)]

        # each log once
        assert await subscription.poll() == 0
        assert len(received) == 3

    async def test_removed_and_undecodable_logs_skipped(self, signer, node, decoder) -> None:
        received = []
        subscription = EventSubscription(signer, CONTRACT, decoder, received.append)
        await subscription.anchor()
        removed = transfer_initiated(block=101, index=0)
        removed["removed"] = True
        broken = transfer_initiated(block=101, index=1)
        broken["data"] = "0x1234"
        node.logs = [removed, broken, transfer_initiated(block=101, index=2)]
        node.block = 101

        assert await subscription.poll() == 1
        assert received[0].log_index == 2

    async def test_callback_errors_are_logged(self, signer, node, decoder, caplog) -> None:
        received = []

        async def callback(event):
            received.append(event)
            if len(received) == 1:
                raise RuntimeError("handler bug")

        subscription = EventSubscription(signer, CONTRACT, decoder, callback)
        await subscription.anchor()
        node.logs = [transfer_initiated(block=101, index=0), transfer_initiated(block=101, index=1)]
        node.block = 101

        with caplog.at_level(logging.ERROR, logger="protectedpay.contract.events"):
            await subscription.poll()

        assert len(received) == 2
        assert "Event callback failed for TransferInitiated" in caplog.text

    async def test_subscribe_and_unsubscribe(self, signer, node: FakeNode, config) -> None:
        client = ProtectedPayClient.from_config(config)
        received = []
        unsubscribe = await client.subscribe_to_events(signer, received.append, poll_interval=0.01)

        node.logs.append(transfer_initiated(block=101))
        node.block = 101
        for _ in range(100):
            if received:
                break
            await asyncio.sleep(0.01)
        assert received and received[0].amount == "1.0"

        unsubscribe()
        unsubscribe()

        node.logs.append(pot_broken(block=102))
        node.block = 102
        await asyncio.sleep(0.05)
        assert len(received) == 1
