"""Unit tests for utils.py functions."""

from __future__ import annotations

import hashlib

import pytest

from orbitctl.utils import hex_to_bytes, parse_contract_error, sha256, sha256_hex


class TestSha256:
    def test_empty(self) -> None:
        assert sha256_hex(b"") == hashlib.sha256(b"").hexdigest()

    def test_digest_matches_hex(self) -> None:
        assert sha256(b"wasm").hex() == sha256_hex(b"wasm")


class TestHexToBytes:
    def test_plain_and_prefixed(self) -> None:
        assert hex_to_bytes("00ff") == b"\x00\xff"
        assert hex_to_bytes("0x00ff") == b"\x00\xff"

    def test_length(self) -> None:
        assert len(hex_to_bytes("ab" * 32, 32)) == 32
        with pytest.raises(ValueError):
            hex_to_bytes("ab" * 31, 32)

    def test_not_hex(self) -> None:
        with pytest.raises(ValueError):
            hex_to_bytes("zz")


class TestParseContractError:
    def test_simulation_message(self) -> None:
        message = "HostError: Error(Contract, #1217)\n\nEvent log (newest first): ..."
        assert parse_contract_error(message) == 1217

    def test_non_contract_errors(self) -> None:
        assert parse_contract_error("HostError: Error(Budget, ExceededLimit)") is None
        assert parse_contract_error(None) is None
        assert parse_contract_error("") is None
