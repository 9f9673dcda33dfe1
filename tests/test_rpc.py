"""Tests for the JSON-RPC client, call encoding and receipt polling."""

from __future__ import annotations

import json

import httpx
import pytest
from eth_abi import encode

from protectedpay.chain.abi import find_function, function_selector, load_abi
from protectedpay.chain.rpc import RpcClient, decode_function_result, encode_function_call
from protectedpay.chain.tx import wait_for_receipt
from protectedpay.errors import ProviderRpcError


def _reply(request: httpx.Request, result=None, error=None) -> httpx.Response:
    body = json.loads(request.content)
    payload = {"jsonrpc": "2.0", "id": body["id"]}
    if error is not None:
        payload["error"] = error
    else:
        payload["result"] = result
    return httpx.Response(200, json=payload)


class FlakyTransport:
    """Fails the first ``failures`` requests with a connection error."""

    def __init__(self, failures: int, result: str = "0x10") -> None:
        self.failures = failures
        self.result = result
        self.methods: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.methods.append(json.loads(request.content)["method"])
        if self.failures > 0:
            self.failures -= 1
            raise httpx.ConnectError("connection refused", request=request)
        return _reply(request, self.result)


class TestRpcClient:
    async def test_call_returns_result(self) -> None:
        transport = httpx.MockTransport(lambda request: _reply(request, "0xaa36a7"))
        async with RpcClient("http://node.test", transport=transport) as rpc:
            assert await rpc.chain_id() == 11155111

    async def test_error_object(self) -> None:
        error = {"code": 3, "message": "execution reverted", "data": "0x"}
        transport = httpx.MockTransport(lambda request: _reply(request, error=error))
        async with RpcClient("http://node.test", transport=transport) as rpc:
            with pytest.raises(ProviderRpcError) as info:
                await rpc.call("eth_call", [{}, "latest"])
        assert info.value.code == 3
        assert info.value.data == "0x"

    async def test_reads_are_retried(self) -> None:
        flaky = FlakyTransport(failures=2)
        async with RpcClient(
            "http://node.test",
            read_retries=2,
            retry_delay=0,
            transport=httpx.MockTransport(flaky),
        ) as rpc:
            assert await rpc.block_number() == 16
        assert flaky.methods == ["eth_blockNumber"] * 3

    async def test_retries_exhausted(self) -> None:
        flaky = FlakyTransport(failures=5)
        async with RpcClient(
            "http://node.test",
            read_retries=1,
            retry_delay=0,
            transport=httpx.MockTransport(flaky),
        ) as rpc:
            with pytest.raises(httpx.ConnectError):
                await rpc.get_balance("0x000000000000000000000000000000000000dEaD")
        assert len(flaky.methods) == 2

    async def test_broadcast_is_never_retried(self) -> None:
        flaky = FlakyTransport(failures=1)
        async with RpcClient(
            "http://node.test",
            read_retries=3,
            retry_delay=0,
            transport=httpx.MockTransport(flaky),
        ) as rpc:
            with pytest.raises(httpx.ConnectError):
                await rpc.send_raw_transaction("0x00")
        assert flaky.methods == ["eth_sendRawTransaction"]


class TestCallEncoding:
    def test_encode_selector_and_args(self) -> None:
        abi = load_abi()
        data = encode_function_call(abi, "registerUsername", ["alice"])
        selector = function_selector(find_function(abi, "registerUsername"))
        assert data == "0x" + selector.hex() + encode(["string"], ["alice"]).hex()

    def test_argument_count_checked(self) -> None:
        with pytest.raises(ValueError, match="expects 2 arguments"):
            encode_function_call(load_abi(), "sendToAddress", ["0x" + "00" * 20])

    def test_decode_tuple_array(self) -> None:
        row = ("0x" + "11" * 20, "0x" + "22" * 20, 5, 7, 1, "hi")
        data = "0x" + encode(
            ["(address,address,uint256,uint256,uint8,string)[]"], [[row]]
        ).hex()
        (rows,) = decode_function_result(load_abi(), "getUserTransfers", data)
        assert rows[0][2:] == (5, 7, 1, "hi")

    def test_decode_no_outputs(self) -> None:
        assert decode_function_result(load_abi(), "breakPot", "0x") == ()


class FakeReceipts:
    def __init__(self, receipts: list, head: int) -> None:
        self.receipts = receipts
        self.head = head

    async def get_receipt(self, tx_hash: str):
        return self.receipts.pop(0) if self.receipts else None

    async def block_number(self) -> int:
        return self.head


class TestWaitForReceipt:
    async def test_waits_for_inclusion(self) -> None:
        receipt = {"blockNumber": "0x5", "status": "0x1"}
        source = FakeReceipts([None, None, receipt], head=5)
        assert await wait_for_receipt(source, "0xabc", poll_interval=0) == receipt

    async def test_confirmations(self) -> None:
        receipt = {"blockNumber": "0x5", "status": "0x1"}
        source = FakeReceipts([receipt], head=5)
        with pytest.raises(TimeoutError):
            await wait_for_receipt(
                source, "0xabc", confirmations=3, timeout=0.05, poll_interval=0.01
            )

    async def test_timeout(self) -> None:
        with pytest.raises(TimeoutError, match="0xabc"):
            await wait_for_receipt(
                FakeReceipts([], head=1), "0xabc", timeout=0.05, poll_interval=0.01
            )
