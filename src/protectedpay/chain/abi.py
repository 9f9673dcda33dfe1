"""
ABI Loader - Loads contract ABIs shipped with the package.

Single source of truth: chain/abis/<Contract>.json. The ProtectedPay ABI is
an external, versioned interface and is never edited by hand.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from eth_utils import keccak

ABI_DIR = Path(__file__).resolve().parent / "abis"

PROTECTED_PAY = "ProtectedPay"


@lru_cache(maxsize=16)
def load_artifact(contract_name: str) -> dict[str, Any]:
    """
    Load the JSON artifact for a contract.

    Raises:
        FileNotFoundError: If no artifact ships for the contract
    """
    path = ABI_DIR / f"{contract_name}.json"
    if not path.exists():
        raise FileNotFoundError(f"ABI not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_abi(contract_name: str = PROTECTED_PAY) -> list[dict[str, Any]]:
    """
    Load ABI for a contract.

    Args:
        contract_name: Contract name (e.g., "ProtectedPay")

    Returns:
        ABI as a list of dicts
    """
    return load_artifact(contract_name)["abi"]


def _find_entry(abi: list, entry_type: str, name: str) -> dict[str, Any]:
    for entry in abi:
        if entry.get("type") == entry_type and entry.get("name") == name:
            return entry
    raise ValueError(f"{entry_type.capitalize()} {name} not found in ABI")


def find_function(abi: list, name: str) -> dict[str, Any]:
    return _find_entry(abi, "function", name)


def find_event(abi: list, name: str) -> dict[str, Any]:
    return _find_entry(abi, "event", name)


def abi_type(param: dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples."""
    kind = param["type"]
    if kind.startswith("tuple"):
        inner = ",".join(abi_type(c) for c in param.get("components", []))
        return f"({inner}){kind[len('tuple'):]}"
    return kind


def input_types(entry: dict[str, Any]) -> list[str]:
    return [abi_type(p) for p in entry.get("inputs", [])]


def output_types(entry: dict[str, Any]) -> list[str]:
    return [abi_type(p) for p in entry.get("outputs", [])]


def signature(entry: dict[str, Any]) -> str:
    """Canonical signature, e.g. ``sendToAddress(address,string)``."""
    return f"{entry['name']}({','.join(input_types(entry))})"


def function_selector(entry: dict[str, Any]) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(text=signature(entry))[:4]


def event_topic(entry: dict[str, Any]) -> str:
    """topic0 of an event: 0x-prefixed Keccak-256 of its signature."""
    return "0x" + keccak(text=signature(entry)).hex()


def is_payable(entry: dict[str, Any]) -> bool:
    return entry.get("stateMutability") == "payable"
