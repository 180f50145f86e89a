"""Tests for two-phase (queue, then commit) admin changes."""

from __future__ import annotations

import pytest
from stellar_sdk import Keypair

from orbitctl.errors import ExecutionFailure
from orbitctl.ledger.contract_id import derive_contract_id
from orbitctl.ledger.interfaces import POOL_INIT_NOT_UNLOCKED, RESERVE_CONFIG
from orbitctl.ledger.timelock import TwoPhaseStatus, commit_change, queue_change, queue_then_commit
from orbitctl.session import Session

from conftest import PASSPHRASE, TX_HASH, FakeRpc, ok_simulation

NOT_ELIGIBLE = 1217
NOT_ELIGIBLE_ERROR = {"error": f"HostError: Error(Contract, #{NOT_ELIGIBLE})"}


@pytest.fixture()
def asset() -> str:
    return derive_contract_id(Keypair.random().public_key, b"\x01" * 32, PASSPHRASE)


@pytest.fixture()
def pool_session(session: Session) -> Session:
    pool_id = derive_contract_id(session.account_id, b"\x02" * 32, PASSPHRASE)
    session.address_book.set_contract_id("lendingPool", pool_id)
    return session


def _reserve(asset: str) -> list:
    metadata = {name: 1 for name, _ in RESERVE_CONFIG.fields}
    return [asset, metadata]


class TestCommit:
    def test_not_yet_eligible_is_queued(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        rpc.simulations = [NOT_ELIGIBLE_ERROR]

        result = commit_change(pool_session, "lendingPool", "set_reserve", [asset], [NOT_ELIGIBLE])

        assert result.status is TwoPhaseStatus.QUEUED
        assert result.contract_error == NOT_ELIGIBLE
        assert rpc.sent == []

    def test_dry_run_stops_at_eligible(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        result = commit_change(
            pool_session, "lendingPool", "set_reserve", [asset], [NOT_ELIGIBLE], dry_run=True
        )
        assert result.status is TwoPhaseStatus.ELIGIBLE
        assert rpc.sent == []

    def test_committed(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        result = commit_change(pool_session, "lendingPool", "set_reserve", [asset], [NOT_ELIGIBLE])
        assert result.status is TwoPhaseStatus.COMMITTED
        assert result.commit_tx_hash == TX_HASH
        assert len(rpc.sent) == 1

    def test_other_errors_still_raise(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        rpc.simulations = [{"error": "HostError: Error(Contract, #4)"}]
        with pytest.raises(ExecutionFailure) as excinfo:
            commit_change(pool_session, "lendingPool", "set_reserve", [asset], [NOT_ELIGIBLE])
        assert excinfo.value.contract_error == 4

    def test_undeclared_code_is_a_failure(
        self, pool_session: Session, rpc: FakeRpc, asset: str
    ) -> None:
        rpc.simulations = [NOT_ELIGIBLE_ERROR]
        with pytest.raises(ExecutionFailure):
            commit_change(pool_session, "lendingPool", "set_reserve", [asset])


class TestQueue:
    def test_queue_change(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        result = queue_change(pool_session, "lendingPool", "queue_set_reserve", _reserve(asset))
        assert result.status is TwoPhaseStatus.QUEUED
        assert result.queue_tx_hash == TX_HASH

    def test_queue_then_commit_waiting(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        rpc.simulations = [ok_simulation(), NOT_ELIGIBLE_ERROR]

        result = queue_then_commit(
            pool_session,
            "lendingPool",
            "queue_set_reserve",
            _reserve(asset),
            "set_reserve",
            [asset],
            [NOT_ELIGIBLE],
        )

        assert result.status is TwoPhaseStatus.QUEUED
        assert result.queue_tx_hash == TX_HASH
        assert result.commit_tx_hash is None
        assert len(rpc.sent) == 1

    def test_pool_lock_code_is_declared(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        rpc.simulations = [
            ok_simulation(),
            {"error": f"HostError: Error(Contract, #{POOL_INIT_NOT_UNLOCKED})"},
        ]

        result = queue_then_commit(
            pool_session,
            "lendingPool",
            "queue_set_reserve",
            _reserve(asset),
            "set_reserve",
            [asset],
        )

        assert result.status is TwoPhaseStatus.QUEUED
        assert result.contract_error == 1203
        assert result.queue_tx_hash == TX_HASH
        assert len(rpc.sent) == 1

    def test_queue_then_commit_immediate(self, pool_session: Session, rpc: FakeRpc, asset: str) -> None:
        result = queue_then_commit(
            pool_session,
            "lendingPool",
            "queue_set_reserve",
            _reserve(asset),
            "set_reserve",
            [asset],
            [NOT_ELIGIBLE],
        )
        assert result.status is TwoPhaseStatus.COMMITTED
        assert len(rpc.sent) == 2
