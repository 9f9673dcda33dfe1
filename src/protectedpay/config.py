"""
Network configuration.

Settings come from the environment, optionally seeded from
``~/.protectedpay/.env``. Defaults target the Sepolia deployment of the
ProtectedPay contract.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROTECTEDPAY_DIR = Path.home() / ".protectedpay"
PROTECTEDPAY_ENV = PROTECTEDPAY_DIR / ".env"

DEFAULT_CONTRACT_ADDRESS = "0xF887B4D3b17C12C86cc917cF72fb8881f866a847"
DEFAULT_CHAIN_ID = 11155111  # Sepolia
DEFAULT_CHAIN_NAME = "Sepolia Testnet"
DEFAULT_RPC_URL = "https://rpc.sepolia.org"
DEFAULT_EXPLORER_URL = "https://sepolia.etherscan.io/"


@dataclass(frozen=True)
class NativeCurrency:
    name: str = "ETH"
    symbol: str = "ETH"
    decimals: int = 18


@dataclass(frozen=True)
class NetworkConfig:
    """Everything needed to reach the deployed contract."""

    chain_id: int = DEFAULT_CHAIN_ID
    chain_name: str = DEFAULT_CHAIN_NAME
    rpc_url: str = DEFAULT_RPC_URL
    explorer_url: str = DEFAULT_EXPLORER_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    currency: NativeCurrency = NativeCurrency()
    rpc_timeout: float = 30.0
    read_retries: int = 2
    confirmation_timeout: float = 120.0
    poll_interval: float = 2.0

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def add_chain_params(self) -> dict[str, Any]:
        """Parameters for ``wallet_addEthereumChain``."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.chain_name,
            "nativeCurrency": {
                "name": self.currency.name,
                "symbol": self.currency.symbol,
                "decimals": self.currency.decimals,
            },
            "rpcUrls": [self.rpc_url],
            "blockExplorerUrls": [self.explorer_url],
        }


def load_settings(env_path: Optional[Path] = None) -> NetworkConfig:
    """
    Build the network configuration from the environment.

    Args:
        env_path: Path to a .env file (default: ~/.protectedpay/.env)

    Recognised variables: PROTECTEDPAY_RPC_URL, PROTECTEDPAY_CHAIN_ID,
    PROTECTEDPAY_CHAIN_NAME, PROTECTEDPAY_EXPLORER_URL,
    PROTECTEDPAY_CONTRACT_ADDRESS, PROTECTEDPAY_RPC_TIMEOUT,
    PROTECTEDPAY_READ_RETRIES, PROTECTEDPAY_CONFIRMATION_TIMEOUT,
    PROTECTEDPAY_POLL_INTERVAL.
    """
    env_path = env_path or PROTECTEDPAY_ENV
    if env_path.exists():
        load_dotenv(env_path)

    env = os.environ
    try:
        config = NetworkConfig(
            chain_id=int(env.get("PROTECTEDPAY_CHAIN_ID", str(DEFAULT_CHAIN_ID)), 0),
            chain_name=env.get("PROTECTEDPAY_CHAIN_NAME", DEFAULT_CHAIN_NAME),
            rpc_url=env.get("PROTECTEDPAY_RPC_URL", DEFAULT_RPC_URL),
            explorer_url=env.get("PROTECTEDPAY_EXPLORER_URL", DEFAULT_EXPLORER_URL),
            contract_address=env.get(
                "PROTECTEDPAY_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS
            ),
            rpc_timeout=float(env.get("PROTECTEDPAY_RPC_TIMEOUT", "30")),
            read_retries=int(env.get("PROTECTEDPAY_READ_RETRIES", "2")),
            confirmation_timeout=float(
                env.get("PROTECTEDPAY_CONFIRMATION_TIMEOUT", "120")
            ),
            poll_interval=float(env.get("PROTECTEDPAY_POLL_INTERVAL", "2")),
        )
    except ValueError as exc:
        raise ValueError(f"Invalid ProtectedPay setting: {exc}") from exc

    logger.debug(
        "Network config: chain %s via %s, contract %s",
        config.chain_id,
        config.rpc_url,
        config.contract_address,
    )
    return config
