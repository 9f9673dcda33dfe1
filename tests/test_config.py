"""Tests for settings loading and key storage."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from fakes import TEST_ADDRESS, TEST_PRIVATE_KEY
from protectedpay.config import DEFAULT_CHAIN_ID, NetworkConfig, load_settings
from protectedpay.wallet.eth import generate_eoa, get_address, load_private_key, save_private_key

SETTINGS = (
    "PROTECTEDPAY_RPC_URL",
    "PROTECTEDPAY_CHAIN_ID",
    "PROTECTEDPAY_CONTRACT_ADDRESS",
    "PROTECTEDPAY_READ_RETRIES",
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch):
    for name in SETTINGS:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in SETTINGS:
        os.environ.pop(name, None)


class TestLoadSettings:
    def test_defaults(self, tmp_path: Path) -> None:
        config = load_settings(tmp_path / "missing.env")
        assert config == NetworkConfig()
        assert config.chain_id == DEFAULT_CHAIN_ID
        assert config.chain_id_hex == "0xaa36a7"

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "PROTECTEDPAY_RPC_URL=http://localhost:8545\nPROTECTEDPAY_CHAIN_ID=0x7a69\n",
            encoding="utf-8",
        )
        config = load_settings(env_file)
        assert config.rpc_url == "http://localhost:8545"
        assert config.chain_id == 31337

    def test_invalid_number(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROTECTEDPAY_READ_RETRIES", "many")
        with pytest.raises(ValueError, match="Invalid ProtectedPay setting"):
            load_settings(tmp_path / "missing.env")

    def test_add_chain_params(self) -> None:
        params = NetworkConfig().add_chain_params()
        assert params["chainId"] == "0xaa36a7"
        assert params["nativeCurrency"] == {"name": "ETH", "symbol": "ETH", "decimals": 18}
        assert params["blockExplorerUrls"] == ["https://sepolia.etherscan.io/"]


class TestKeys:
    def test_generate(self) -> None:
        private_key, address = generate_eoa()
        assert len(private_key) == 66
        assert get_address(private_key) == address

    def test_save_and_load(self, tmp_path: Path) -> None:
        env_file = tmp_path / "nested" / ".env"
        env_file.parent.mkdir()
        env_file.write_text("PROTECTEDPAY_CHAIN_ID=1\n", encoding="utf-8")

        save_private_key(TEST_PRIVATE_KEY, env_file)

        assert load_private_key(env_file) == TEST_PRIVATE_KEY
        assert "PROTECTEDPAY_CHAIN_ID=1" in env_file.read_text(encoding="utf-8")
        if os.name != "nt":
            assert env_file.stat().st_mode & 0o777 == 0o600

    def test_environment_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY[2:])
        assert load_private_key(tmp_path / "missing.env") == TEST_PRIVATE_KEY
        assert get_address(TEST_PRIVATE_KEY) == TEST_ADDRESS

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="protectedpay keygen"):
            load_private_key(tmp_path / "missing.env")

    def test_invalid(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("PRIVATE_KEY=0x1234\n", encoding="utf-8")
        with pytest.raises(ValueError, match="not a valid key"):
            load_private_key(env_file)
