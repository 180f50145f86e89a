"""Tests for the per-network address book."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from stellar_sdk import StrKey

from orbitctl.errors import PreconditionError
from orbitctl.registry.address_book import AddressBook, book_path, validate_book

CONTRACT_ID = StrKey.encode_contract(b"\x11" * 32)


class TestLoad:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path)
        assert book.ids == {}
        assert book.hashes == {}
        assert book.path == tmp_path / "testnet.contracts.json"

    def test_round_trip(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path)
        book.set_contract_id("treasuryFactory", CONTRACT_ID)
        book.set_wasm_hash("treasury", "AB" * 32)
        book.write()

        reloaded = AddressBook.load("testnet", tmp_path)
        assert reloaded.get_contract_id("treasuryFactory") == CONTRACT_ID
        assert reloaded.get_wasm_hash("treasury") == "ab" * 32

    def test_books_are_per_network(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path)
        book.set_contract_id("USDC", CONTRACT_ID)
        book.write()
        assert not AddressBook.load("futurenet", tmp_path).has_contract_id("USDC")

    def test_invalid_json(self, tmp_path: Path) -> None:
        book_path("testnet", tmp_path).write_text("{not json", encoding="utf-8")
        with pytest.raises(PreconditionError):
            AddressBook.load("testnet", tmp_path)

    def test_schema_violation_on_load(self, tmp_path: Path) -> None:
        book_path("testnet", tmp_path).write_text(
            json.dumps({"ids": {"USDC": "not-a-contract"}, "hashes": {}}), encoding="utf-8"
        )
        with pytest.raises(PreconditionError, match="ids/USDC"):
            AddressBook.load("testnet", tmp_path)


class TestAccess:
    def test_missing_entries_raise(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path)
        with pytest.raises(PreconditionError):
            book.get_contract_id("USDC")
        with pytest.raises(PreconditionError):
            book.get_wasm_hash("token")


class TestWrite:
    def test_invalid_entry_is_not_written(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path)
        book.set_contract_id("USDC", CONTRACT_ID)
        book.write()
        before = book.path.read_text(encoding="utf-8")

        book.set_wasm_hash("token", "xyz")
        with pytest.raises(PreconditionError):
            book.write()

        assert book.path.read_text(encoding="utf-8") == before
        assert not book.path.with_suffix(".json.tmp").exists()

    def test_creates_directory(self, tmp_path: Path) -> None:
        book = AddressBook.load("testnet", tmp_path / "nested" / "books")
        book.set_contract_id("USDC", CONTRACT_ID)
        path = book.write()
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "ids": {"USDC": CONTRACT_ID},
            "hashes": {},
        }

    def test_validate_rejects_extra_keys(self) -> None:
        with pytest.raises(PreconditionError):
            validate_book({"ids": {}, "hashes": {}, "extra": 1})
