"""
Local wallet key.

ProtectedPay signs with a single secp256k1 key kept next to the network
settings in ~/.protectedpay/.env as PRIVATE_KEY. The settings file wins over
the process environment so that ``--env-file`` always selects the identity.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key
from eth_account import Account

from ..config import PROTECTEDPAY_ENV

PRIVATE_KEY_VAR = "PRIVATE_KEY"


def generate_eoa() -> tuple[str, str]:
    """
    Create a fresh key.

    Returns:
        (private_key, address): 0x-prefixed hex key and its checksummed address
    """
    private_key = "0x" + secrets.token_hex(32)
    return private_key, Account.from_key(private_key).address


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """Store the key in the settings file, leaving other settings untouched."""
    env_path = env_path or PROTECTEDPAY_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(exist_ok=True)
    if os.name != "nt":
        env_path.chmod(0o600)
    set_key(str(env_path), PRIVATE_KEY_VAR, private_key, quote_mode="never")
    return env_path


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Read the signing key.

    Raises:
        ValueError: If no key is configured or it is not a valid secp256k1 key
    """
    env_path = env_path or PROTECTEDPAY_ENV
    stored = dotenv_values(env_path).get(PRIVATE_KEY_VAR) if env_path.exists() else None
    private_key = stored or os.environ.get(PRIVATE_KEY_VAR)
    if not private_key:
        raise ValueError(
            f"{PRIVATE_KEY_VAR} not found. Run 'protectedpay keygen' or set "
            f"{PRIVATE_KEY_VAR} in {env_path}"
        )

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    try:
        Account.from_key(private_key)
    except Exception as exc:
        raise ValueError(f"{PRIVATE_KEY_VAR} in {env_path} is not a valid key") from exc
    return private_key


def get_address(private_key: Optional[str] = None) -> str:
    """Checksummed address of a key (the configured one if None)."""
    return Account.from_key(private_key or load_private_key()).address
