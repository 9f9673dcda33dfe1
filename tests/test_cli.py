"""
CLI tests using Click's test runner.

Commands that reach the chain run against the in-memory node through the
transport carried on ``CliState``.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from fakes import OTHER_ADDRESS, TEST_ADDRESS, TEST_PRIVATE_KEY, FakeNode, wire_id
from protectedpay.cli import VERSION, cli
from protectedpay.commands._session import CliState
from protectedpay.wallet.eth import save_private_key


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def env_file(tmp_path: Path) -> Path:
    return tmp_path / ".protectedpay" / ".env"


@pytest.fixture()
def wallet_env(env_file: Path) -> Path:
    save_private_key(TEST_PRIVATE_KEY, env_file)
    return env_file


def invoke(runner: CliRunner, node: FakeNode, env_file: Path, args: list, **kwargs):
    state = CliState(transport=node.transport())
    return runner.invoke(
        cli,
        ["--env-file", str(env_file), "--rpc-url", "http://node.test", *args],
        obj=state,
        **kwargs,
    )


class TestVersionAndInfo:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_banner_without_command(self, runner: CliRunner, env_file: Path) -> None:
        result = runner.invoke(cli, ["--env-file", str(env_file)])
        assert result.exit_code == 0
        assert "P R O T E C T E D P A Y" in result.output

    def test_info(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(runner, node, wallet_env, ["info"])
        assert result.exit_code == 0
        assert TEST_ADDRESS in result.output
        assert "5.0 ETH" in result.output
        assert "11155111" in result.output


class TestKeys:
    def test_keygen_and_whoami(self, runner: CliRunner, env_file: Path) -> None:
        result = runner.invoke(cli, ["--env-file", str(env_file), "keygen"])
        assert result.exit_code == 0
        assert "Wallet created." in result.output
        assert env_file.exists()

        result = runner.invoke(cli, ["--env-file", str(env_file), "whoami"])
        assert result.exit_code == 0
        assert "Address: 0x" in result.output

    def test_keygen_keeps_existing_key(self, runner: CliRunner, wallet_env: Path) -> None:
        result = runner.invoke(cli, ["--env-file", str(wallet_env), "keygen"])
        assert result.exit_code == 1
        assert TEST_ADDRESS in result.output
        assert TEST_PRIVATE_KEY in wallet_env.read_text(encoding="utf-8")

    def test_whoami_without_wallet(self, runner: CliRunner, env_file: Path) -> None:
        result = runner.invoke(cli, ["--env-file", str(env_file), "whoami"])
        assert result.exit_code == 1
        assert "No wallet found" in result.output


class TestTransactions:
    def test_send_with_yes(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(runner, node, wallet_env, ["send", "bob", "0.5", "-m", "rent", "--yes"])
        assert result.exit_code == 0, result.output
        assert "Sent 0.5 ETH to bob" in result.output
        assert node.sent == [("sendToUsername", ("bob", "rent"), 10**18 // 2)]

    def test_declined_prompt(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(runner, node, wallet_env, ["refund", wire_id(1)], input="n\n")
        assert result.exit_code == 2
        assert "Transaction was rejected" in result.output
        assert node.sent == []

    def test_accepted_prompt(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(runner, node, wallet_env, ["claim", OTHER_ADDRESS], input="y\n")
        assert result.exit_code == 0, result.output
        assert f"Claimed transfer from {OTHER_ADDRESS}" in result.output
        assert [name for name, _, _ in node.sent] == ["claimTransferByAddress"]

    def test_validation_error_exit_code(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(runner, node, wallet_env, ["pot", "create", "Holiday", "0", "--yes"])
        assert result.exit_code == 6
        assert "Target amount must be greater than zero" in result.output

    def test_revert_exit_code(self, runner, node: FakeNode, wallet_env: Path) -> None:
        node.reverts["breakPot"] = "Not pot owner"
        result = invoke(runner, node, wallet_env, ["pot", "break", wire_id(3), "--yes"])
        assert result.exit_code == 4
        assert "Transaction reverted: Not pot owner" in result.output

    def test_group_create(self, runner, node: FakeNode, wallet_env: Path) -> None:
        result = invoke(
            runner, node, wallet_env, ["group", "create", OTHER_ADDRESS, "2", "1", "--yes"]
        )
        assert result.exit_code == 0, result.output
        assert node.sent[0][0] == "createGroupPayment"

    def test_without_wallet(self, runner, node: FakeNode, env_file: Path) -> None:
        result = invoke(runner, node, env_file, ["send", "bob", "1", "--yes"])
        assert result.exit_code == 1
        assert "PRIVATE_KEY not found" in result.output


class TestReads:
    def test_pending_empty(self, runner, node: FakeNode, wallet_env: Path) -> None:
        node.answers["getPendingTransfers"] = ([],)
        result = invoke(runner, node, wallet_env, ["pending"])
        assert result.exit_code == 0, result.output
        assert "No pending transfers." in result.output

    def test_profile(self, runner, node: FakeNode, wallet_env: Path) -> None:
        node.answers["getUserProfile"] = ("alice", [bytes.fromhex(wire_id(1)[2:])], [], [], [])
        node.answers["getTransferDetails"] = (
            TEST_ADDRESS, OTHER_ADDRESS, 10**18, 1_700_000_000, 0, "coffee",
        )
        result = invoke(runner, node, wallet_env, ["profile"])
        assert result.exit_code == 0, result.output
        assert "Profile: alice" in result.output
        assert "Transfers (1)" in result.output
        assert "coffee" in result.output

    def test_username_lookup(self, runner, node: FakeNode, wallet_env: Path) -> None:
        node.answers["getUserByUsername"] = ("0x" + "00" * 20,)
        result = invoke(runner, node, wallet_env, ["username", "ghost"])
        assert result.exit_code == 0, result.output
        assert "ghost: (not registered)" in result.output

    def test_pot_show(self, runner, node: FakeNode, wallet_env: Path) -> None:
        node.answers["getSavingsPotDetails"] = (
            TEST_ADDRESS, "Holiday", 2 * 10**18, 10**18, 1_700_000_000, 0, "",
        )
        result = invoke(runner, node, wallet_env, ["pot", "show", wire_id(3)])
        assert result.exit_code == 0, result.output
        assert "1.0 / 2.0 ETH (50%)" in result.output
