"""Shared fixtures: a scripted RPC double, keys, sessions on temp directories."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pytest
from stellar_sdk import Account, Keypair, Network, SorobanDataBuilder

from orbitctl.config import NetworkContext
from orbitctl.keys.stellar import keypair_signer
from orbitctl.ledger.operations import OperationBuilder
from orbitctl.ledger.tx import PollPolicy, TransactionPipeline, TxParams
from orbitctl.registry.address_book import AddressBook
from orbitctl.registry.artifacts import ArtifactStore
from orbitctl.session import Session

PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE
START_SEQUENCE = 100
TX_HASH = "ab" * 32


def ok_simulation(min_resource_fee: int = 0) -> dict[str, Any]:
    return {
        "transactionData": SorobanDataBuilder().build().to_xdr(),
        "minResourceFee": str(min_resource_fee),
        "results": [{"auth": [], "xdr": "AAAAAQ=="}],
        "latestLedger": 1000,
    }


class FakeRpc:
    """RPC double with scripted responses; unscripted calls succeed."""

    def __init__(self, sequence: int = START_SEQUENCE) -> None:
        self.sequence = sequence
        self.simulations: list[dict[str, Any]] = []
        self.sends: list[dict[str, Any]] = []
        self.statuses: list[dict[str, Any]] = []
        self.simulated: list[str] = []
        self.sent: list[str] = []
        self.polled: list[str] = []
        self.airdrops: list[tuple[str, str]] = []

    def get_account(self, account_id: str) -> Account:
        return Account(account_id, self.sequence)

    def simulate_transaction(self, tx_xdr: str) -> dict[str, Any]:
        self.simulated.append(tx_xdr)
        return self.simulations.pop(0) if self.simulations else ok_simulation()

    def send_transaction(self, tx_xdr: str) -> dict[str, Any]:
        self.sent.append(tx_xdr)
        if self.sends:
            return self.sends.pop(0)
        return {"status": "PENDING", "hash": TX_HASH}

    def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        self.polled.append(tx_hash)
        if self.statuses:
            return self.statuses.pop(0)
        return {"status": "SUCCESS", "ledger": 1001}

    def request_airdrop(self, account_id: str, friendbot_url: str) -> bool:
        self.airdrops.append((account_id, friendbot_url))
        return True


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture()
def rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tx_params(keypair: Keypair) -> TxParams:
    return TxParams(
        account=Account(keypair.public_key, START_SEQUENCE),
        signer=keypair_signer(keypair, PASSPHRASE),
        network_passphrase=PASSPHRASE,
    )


def make_pipeline(rpc: FakeRpc, clock: FakeClock, policy: Optional[PollPolicy] = None) -> TransactionPipeline:
    return TransactionPipeline(rpc, policy or PollPolicy(), sleep=clock.sleep, clock=clock)


@pytest.fixture()
def pipeline(rpc: FakeRpc, clock: FakeClock) -> TransactionPipeline:
    return make_pipeline(rpc, clock)


@pytest.fixture()
def wasm_dir(tmp_path: Path) -> Path:
    """Fake wasm artifacts for every key the Orbit setup installs."""
    directory = tmp_path / "wasm"
    directory.mkdir()
    for name in ("treasury", "treasury_factory", "bridge_oracle", "token", "pool"):
        (directory / f"{name}.wasm").write_bytes(b"\x00asm" + name.encode("utf-8"))
    return directory


@pytest.fixture()
def address_book(tmp_path: Path) -> AddressBook:
    return AddressBook.load("testnet", tmp_path / "books")


@pytest.fixture()
def session(
    keypair: Keypair,
    rpc: FakeRpc,
    clock: FakeClock,
    tx_params: TxParams,
    address_book: AddressBook,
    wasm_dir: Path,
) -> Session:
    network = NetworkContext(
        name="testnet",
        passphrase=PASSPHRASE,
        rpc_url="http://rpc.invalid",
        friendbot_url="http://friendbot.invalid",
    )
    artifacts = ArtifactStore(wasm_dir)
    return Session(
        network=network,
        address_book=address_book,
        artifacts=artifacts,
        rpc=rpc,
        builder=OperationBuilder(address_book, artifacts, PASSPHRASE),
        pipeline=make_pipeline(rpc, clock),
        tx_params=tx_params,
    )
