"""Tests for the Soroban JSON-RPC client over a mocked httpx transport."""

from __future__ import annotations

import json

import httpx
import pytest
from stellar_sdk import Keypair
from stellar_sdk import xdr as stellar_xdr

from orbitctl.errors import PreconditionError, RpcError
from orbitctl.ledger.rpc import SorobanRpc

RPC_URL = "http://rpc.invalid"
FRIENDBOT_URL = "http://friendbot.invalid"


def _rpc(handler) -> SorobanRpc:
    return SorobanRpc(RPC_URL, transport=httpx.MockTransport(handler))


def _result(result):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    handler.requests = requests  # type: ignore[attr-defined]
    return handler


def _account_entry_xdr(keypair: Keypair, sequence: int) -> str:
    entry = stellar_xdr.LedgerEntryData(
        type=stellar_xdr.LedgerEntryType.ACCOUNT,
        account=stellar_xdr.AccountEntry(
            account_id=keypair.xdr_account_id(),
            balance=stellar_xdr.Int64(10_000_000_000),
            seq_num=stellar_xdr.SequenceNumber(stellar_xdr.Int64(sequence)),
            num_sub_entries=stellar_xdr.Uint32(0),
            inflation_dest=None,
            flags=stellar_xdr.Uint32(0),
            home_domain=stellar_xdr.String32(b""),
            thresholds=stellar_xdr.Thresholds(b"\x01\x00\x00\x00"),
            signers=[],
            ext=stellar_xdr.AccountEntryExt(v=0),
        ),
    )
    return entry.to_xdr()


class TestJsonRpc:
    def test_send_transaction_payload(self) -> None:
        handler = _result({"status": "PENDING", "hash": "ab" * 32})
        response = _rpc(handler).send_transaction("AAAA")

        assert response["status"] == "PENDING"
        request = handler.requests[0]
        assert request["method"] == "sendTransaction"
        assert request["params"] == {"transaction": "AAAA"}
        assert request["jsonrpc"] == "2.0"

    def test_get_transaction_payload(self) -> None:
        handler = _result({"status": "NOT_FOUND"})
        assert _rpc(handler).get_transaction("ab" * 32) == {"status": "NOT_FOUND"}
        assert handler.requests[0]["params"] == {"hash": "ab" * 32}

    def test_error_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "bad"}}
            )

        with pytest.raises(RpcError) as excinfo:
            _rpc(handler).simulate_transaction("AAAA")
        assert excinfo.value.raw == {"code": -32602, "message": "bad"}
        assert excinfo.value.operation == "simulateTransaction"

    def test_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        with pytest.raises(RpcError):
            _rpc(handler).get_network()

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with pytest.raises(RpcError):
            _rpc(handler).get_network()


class TestGetAccount:
    def test_parses_sequence(self) -> None:
        keypair = Keypair.random()
        handler = _result({"entries": [{"xdr": _account_entry_xdr(keypair, 4242)}], "latestLedger": 9})

        account = _rpc(handler).get_account(keypair.public_key)

        assert account.sequence == 4242
        assert account.account.account_id == keypair.public_key
        assert handler.requests[0]["method"] == "getLedgerEntries"

    def test_unknown_account(self) -> None:
        handler = _result({"entries": [], "latestLedger": 9})
        with pytest.raises(PreconditionError):
            _rpc(handler).get_account(Keypair.random().public_key)

    def test_malformed_account_id(self) -> None:
        with pytest.raises(PreconditionError):
            _rpc(_result({})).get_account("GBAD")


class TestAirdrop:
    def test_funded(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json={"successful": True})

        account_id = Keypair.random().public_key
        assert _rpc(handler).request_airdrop(account_id, FRIENDBOT_URL) is True
        assert seen[0].params["addr"] == account_id

    def test_already_funded(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text='{"detail": "createAccountAlreadyExist"}')

        assert _rpc(handler).request_airdrop(Keypair.random().public_key, FRIENDBOT_URL) is False

    def test_unexpected_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(RpcError):
            _rpc(handler).request_airdrop(Keypair.random().public_key, FRIENDBOT_URL)
