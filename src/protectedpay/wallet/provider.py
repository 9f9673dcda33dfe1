"""
Wallet providers.

The session layer talks to a wallet through the EIP-1193 surface only:
``request(method, params)`` plus ``on`` / ``remove_listener`` for the
``accountsChanged`` and ``chainChanged`` notifications.

``LocalWalletProvider`` implements that surface on top of a local
eth-account key: wallet methods are answered in-process, transactions are
signed locally, and every other method is forwarded to the active chain's
JSON-RPC endpoint.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol, Union

import httpx
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..chain import tx as txlib
from ..chain.rpc import RpcClient
from ..config import NetworkConfig
from ..errors import (
    UNAUTHORIZED_CODE,
    UNRECOGNIZED_CHAIN_CODE,
    USER_REJECTED_CODE,
    ProviderRpcError,
)

logger = logging.getLogger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"

ConfirmHook = Callable[[str, dict], Union[bool, Awaitable[bool]]]


class WalletProvider(Protocol):
    async def request(self, method: str, params: Optional[list] = None) -> Any: ...

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> None: ...


@dataclass(frozen=True)
class ChainParameters:
    """A chain the wallet knows how to reach (``wallet_addEthereumChain`` shape)."""

    chain_id: int
    chain_name: str
    rpc_urls: tuple[str, ...]
    native_currency: dict[str, Any] = field(default_factory=dict)
    explorer_urls: tuple[str, ...] = ()

    @classmethod
    def from_request(cls, params: dict[str, Any]) -> "ChainParameters":
        try:
            chain_id = int(params["chainId"], 16)
            rpc_urls = tuple(params["rpcUrls"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderRpcError(-32602, f"Invalid chain parameters: {exc}") from exc
        if not rpc_urls:
            raise ProviderRpcError(-32602, "Invalid chain parameters: no rpcUrls")
        return cls(
            chain_id=chain_id,
            chain_name=params.get("chainName", ""),
            rpc_urls=rpc_urls,
            native_currency=dict(params.get("nativeCurrency") or {}),
            explorer_urls=tuple(params.get("blockExplorerUrls") or ()),
        )

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "ChainParameters":
        return cls.from_request(config.add_chain_params())


class LocalWalletProvider:
    """EIP-1193 style provider backed by a local private key."""

    def __init__(
        self,
        account: Optional[LocalAccount] = None,
        chains: Iterable[ChainParameters] = (),
        chain_id: Optional[int] = None,
        confirm: Optional[ConfirmHook] = None,
        rpc_timeout: float = 30.0,
        read_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._account = account
        self._chains: dict[int, ChainParameters] = {c.chain_id: c for c in chains}
        if chain_id is None:
            if not self._chains:
                raise ValueError("LocalWalletProvider needs at least one chain")
            chain_id = next(iter(self._chains))
        elif chain_id not in self._chains:
            raise ValueError(f"Active chain {chain_id} is not among the known chains")
        self._chain_id = chain_id
        self._confirm = confirm
        self._rpc_timeout = rpc_timeout
        self._read_retries = read_retries
        self._transport = transport
        self._clients: dict[int, RpcClient] = {}
        self._listeners: dict[str, list[Callable[..., Any]]] = {}
        self._handlers: dict[str, Callable[[list], Awaitable[Any]]] = {
            "eth_requestAccounts": self._request_accounts,
            "eth_accounts": self._accounts,
            "eth_chainId": self._current_chain,
            "wallet_switchEthereumChain": self._switch_chain,
            "wallet_addEthereumChain": self._add_chain,
            "eth_sendTransaction": self._send_transaction,
        }

    @classmethod
    def from_config(
        cls,
        config: NetworkConfig,
        private_key: Optional[str] = None,
        confirm: Optional[ConfirmHook] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LocalWalletProvider":
        account = Account.from_key(private_key) if private_key else None
        return cls(
            account=account,
            chains=[ChainParameters.from_config(config)],
            chain_id=config.chain_id,
            confirm=confirm,
            rpc_timeout=config.rpc_timeout,
            read_retries=config.read_retries,
            transport=transport,
        )

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def address(self) -> Optional[str]:
        return self._account.address if self._account else None

    # ------------------------------------------------------------------
    # EIP-1193 surface
    # ------------------------------------------------------------------

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        handler = self._handlers.get(method)
        if handler is not None:
            return await handler(list(params or []))
        return await self._rpc().call(method, list(params or []))

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    # ------------------------------------------------------------------
    # Wallet-side state changes
    # ------------------------------------------------------------------

    def select_account(self, private_key: Optional[str]) -> None:
        """Switch (or clear) the active account and notify listeners."""
        self._account = Account.from_key(private_key) if private_key else None
        self._emit(ACCOUNTS_CHANGED, [self._account.address] if self._account else [])

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    def _rpc(self) -> RpcClient:
        client = self._clients.get(self._chain_id)
        if client is None:
            chain = self._chains[self._chain_id]
            client = RpcClient(
                chain.rpc_urls[0],
                timeout=self._rpc_timeout,
                read_retries=self._read_retries,
                transport=self._transport,
            )
            self._clients[self._chain_id] = client
        return client

    async def _ask(self, method: str, payload: dict) -> None:
        if self._confirm is None:
            return
        approved = self._confirm(method, payload)
        if inspect.isawaitable(approved):
            approved = await approved
        if not approved:
            raise ProviderRpcError(USER_REJECTED_CODE, "User rejected the request.")

    async def _request_accounts(self, params: list) -> list[str]:
        if self._account is None:
            raise ProviderRpcError(UNAUTHORIZED_CODE, "No account configured")
        return [self._account.address]

    async def _accounts(self, params: list) -> list[str]:
        return [self._account.address] if self._account else []

    async def _current_chain(self, params: list) -> str:
        return hex(self._chain_id)

    async def _switch_chain(self, params: list) -> None:
        try:
            target = int(params[0]["chainId"], 16)
        except (IndexError, KeyError, TypeError, ValueError) as exc:
            raise ProviderRpcError(-32602, f"Invalid chain id: {exc}") from exc
        if target not in self._chains:
            raise ProviderRpcError(
                UNRECOGNIZED_CHAIN_CODE, f"Unrecognized chain ID {hex(target)}"
            )
        if target != self._chain_id:
            self._chain_id = target
            logger.info("Wallet switched to chain %s", target)
            self._emit(CHAIN_CHANGED, hex(target))
        return None

    async def _add_chain(self, params: list) -> None:
        if not params:
            raise ProviderRpcError(-32602, "Missing chain parameters")
        chain = ChainParameters.from_request(params[0])
        await self._ask("wallet_addEthereumChain", params[0])
        self._chains[chain.chain_id] = chain
        logger.info("Wallet registered chain %s (%s)", chain.chain_id, chain.chain_name)
        return None

    async def _send_transaction(self, params: list) -> str:
        if self._account is None:
            raise ProviderRpcError(UNAUTHORIZED_CODE, "No account configured")
        if not params:
            raise ProviderRpcError(-32602, "Missing transaction")
        request = dict(params[0])
        sender = request.pop("from", None)
        if sender and sender.lower() != self._account.address.lower():
            raise ProviderRpcError(
                UNAUTHORIZED_CODE, f"Account {sender} is not authorized"
            )
        await self._ask("eth_sendTransaction", request)
        return await txlib.send_transaction(
            self._rpc(), self._account, request, self._chain_id
        )
