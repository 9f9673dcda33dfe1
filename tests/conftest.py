"""Shared fixtures wiring a local wallet provider to the in-memory node."""

from __future__ import annotations

import pytest

from fakes import TEST_PRIVATE_KEY, FakeNode
from protectedpay.config import NetworkConfig
from protectedpay.wallet.provider import LocalWalletProvider
from protectedpay.wallet.session import WalletSession


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def config() -> NetworkConfig:
    return NetworkConfig(rpc_url="http://node.test", poll_interval=0.01)


@pytest.fixture()
async def provider(node: FakeNode, config: NetworkConfig):
    wallet = LocalWalletProvider.from_config(
        config, private_key=TEST_PRIVATE_KEY, transport=node.transport()
    )
    yield wallet
    await wallet.aclose()


@pytest.fixture()
async def session(provider: LocalWalletProvider, config: NetworkConfig):
    wallet_session = WalletSession(provider, config)
    yield wallet_session
    wallet_session.close()


@pytest.fixture()
async def signer(session: WalletSession):
    context = await session.connect()
    return context.signer


@pytest.fixture(autouse=True)
def _no_private_key_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
