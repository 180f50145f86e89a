"""Tests for operation encoding and argument conversion."""

from __future__ import annotations

from pathlib import Path

import pytest
from stellar_sdk import Asset, InvokeHostFunction, Keypair, scval
from stellar_sdk import xdr as stellar_xdr

from orbitctl.errors import EncodingError, PreconditionError
from orbitctl.ledger.contract_id import derive_asset_contract_id, derive_contract_id
from orbitctl.ledger.interfaces import ORACLE_ASSET, RESERVE_CONFIG, interface_for
from orbitctl.ledger.operations import (
    OperationBuilder,
    decode_operation,
    encode_operation,
    to_scval,
)
from orbitctl.registry.address_book import AddressBook
from orbitctl.registry.artifacts import ArtifactStore
from orbitctl.utils import sha256_hex

from conftest import PASSPHRASE


@pytest.fixture()
def builder(address_book: AddressBook, wasm_dir: Path) -> OperationBuilder:
    return OperationBuilder(address_book, ArtifactStore(wasm_dir), PASSPHRASE)


def _usdc_id(address_book: AddressBook) -> str:
    contract_id = derive_contract_id(Keypair.random().public_key, b"\x05" * 32, PASSPHRASE)
    address_book.set_contract_id("USDC", contract_id)
    return contract_id


class TestToScval:
    def test_integers(self) -> None:
        assert to_scval("u32", 7).type == stellar_xdr.SCValType.SCV_U32
        assert to_scval("i128", -5).type == stellar_xdr.SCValType.SCV_I128
        assert scval.from_int128(to_scval("i128", 10**20)) == 10**20

    def test_bool_is_not_an_int(self) -> None:
        with pytest.raises(PreconditionError):
            to_scval("u32", True)

    def test_wrong_value_type(self) -> None:
        with pytest.raises(PreconditionError):
            to_scval("bool", "yes")
        with pytest.raises(PreconditionError):
            to_scval("vec<u32>", "1,2")

    def test_unknown_type(self) -> None:
        with pytest.raises(EncodingError):
            to_scval("f64", 1.5)

    def test_vec_and_option(self) -> None:
        value = to_scval("vec<i128>", [1, 2, 3])
        assert value.type == stellar_xdr.SCValType.SCV_VEC
        assert len(value.vec.sc_vec) == 3
        assert to_scval("option<u32>", None).type == stellar_xdr.SCValType.SCV_VOID
        assert to_scval("option<u32>", 4).type == stellar_xdr.SCValType.SCV_U32

    def test_bytes32_length(self) -> None:
        assert to_scval("bytes32", "00" * 32).type == stellar_xdr.SCValType.SCV_BYTES
        with pytest.raises(PreconditionError):
            to_scval("bytes32", "00" * 31)

    def test_struct_encodes_sorted_symbol_map(self) -> None:
        metadata = {name: i for i, (name, _) in enumerate(reversed(RESERVE_CONFIG.fields))}
        value = to_scval(RESERVE_CONFIG, metadata)
        assert value.type == stellar_xdr.SCValType.SCV_MAP
        keys = [entry.key.sym.sc_symbol.decode() for entry in value.map.sc_map]
        assert keys == sorted(metadata)

    def test_struct_requires_exact_fields(self) -> None:
        with pytest.raises(PreconditionError):
            to_scval(RESERVE_CONFIG, {"c_factor": 1})

    def test_scval_passes_through(self) -> None:
        original = scval.to_symbol("x")
        assert to_scval("u32", original) is original

    def test_map_keys_follow_host_order(self) -> None:
        value = to_scval("map<u32,bool>", {9: True, 2: False, 5: True})
        assert [scval.from_uint32(entry.key) for entry in value.map.sc_map] == [2, 5, 9]

    def test_map_address_keys_put_accounts_first(self) -> None:
        contract_id = derive_contract_id(Keypair.random().public_key, b"\x01" * 32, PASSPHRASE)
        account_id = Keypair.random().public_key
        value = to_scval("map<address,i128>", {contract_id: 2, account_id: 1})
        keys = [scval.from_address(entry.key).address for entry in value.map.sc_map]
        assert keys == [account_id, contract_id]
        assert scval.from_int128(value.map.sc_map[0].val) == 1

    def test_map_symbol_keys_sort_bytewise(self) -> None:
        value = to_scval("map<symbol,u32>", {"b": 1, "B": 2, "a": 3})
        assert [entry.key.sym.sc_symbol for entry in value.map.sc_map] == [b"B", b"a", b"b"]

    def test_map_unsupported_key_type(self) -> None:
        with pytest.raises(EncodingError):
            to_scval("map<vec<u32>,u32>", {(1,): 1})

    def test_enum_encodes_tag_and_values(self) -> None:
        token = derive_contract_id(Keypair.random().public_key, b"\x02" * 32, PASSPHRASE)
        value = to_scval(ORACLE_ASSET, {"tag": "Stellar", "values": [token]})
        items = value.vec.sc_vec
        assert items[0].sym.sc_symbol == b"Stellar"
        assert scval.from_address(items[1]).address == token

        other = to_scval(ORACLE_ASSET, {"tag": "Other", "values": ["USD"]})
        assert [item.sym.sc_symbol for item in other.vec.sc_vec] == [b"Other", b"USD"]

    def test_enum_rejects_bad_variant(self) -> None:
        with pytest.raises(PreconditionError):
            to_scval(ORACLE_ASSET, {"tag": "Fiat", "values": ["USD"]})
        with pytest.raises(PreconditionError):
            to_scval(ORACLE_ASSET, {"tag": "Other", "values": []})
        with pytest.raises(PreconditionError):
            to_scval(ORACLE_ASSET, "USD")


class TestRoundTrip:
    def test_encode_decode(self, builder: OperationBuilder) -> None:
        op, _ = builder.upload_wasm("token")
        encoded = encode_operation(op)
        assert encode_operation(decode_operation(encoded)) == encoded

    def test_decode_malformed(self) -> None:
        with pytest.raises(EncodingError):
            decode_operation("not-xdr")


class TestOperationBuilder:
    def test_unknown_action(self, builder: OperationBuilder) -> None:
        with pytest.raises(PreconditionError):
            builder.build("destroy")

    def test_upload_wasm(self, builder: OperationBuilder, wasm_dir: Path) -> None:
        op, wasm_hash = builder.build("install", wasm_key="token")
        assert isinstance(op, InvokeHostFunction)
        assert op.host_function.wasm == (wasm_dir / "token.wasm").read_bytes()
        assert wasm_hash == sha256_hex((wasm_dir / "token.wasm").read_bytes())

    def test_upload_missing_artifact(self, builder: OperationBuilder) -> None:
        with pytest.raises(PreconditionError):
            builder.upload_wasm("backstop")

    def test_upload_unknown_key(self, builder: OperationBuilder) -> None:
        with pytest.raises(PreconditionError):
            builder.upload_wasm("nope")

    def test_create_requires_installed_wasm(self, builder: OperationBuilder) -> None:
        with pytest.raises(PreconditionError):
            builder.create_contract("treasury", Keypair.random().public_key, b"\x00" * 32)

    def test_create_contract_id_matches_derivation(
        self, builder: OperationBuilder, address_book: AddressBook
    ) -> None:
        address_book.set_wasm_hash("treasury", "cd" * 32)
        account_id = Keypair.random().public_key
        salt = b"\x09" * 32

        op, contract_id = builder.build("deploy", wasm_key="treasury", account_id=account_id, salt=salt)

        assert contract_id == derive_contract_id(account_id, salt, PASSPHRASE)
        create = op.host_function.create_contract
        assert create.executable.wasm_hash.hash == bytes.fromhex("cd" * 32)
        assert create.contract_id_preimage.from_address.salt.uint256 == salt

    def test_invoke_positional(self, builder: OperationBuilder, address_book: AddressBook) -> None:
        _usdc_id(address_book)
        recipient = Keypair.random().public_key

        op = builder.build("invoke", contract_key="USDC", function="mint", args=[recipient, 1000])

        call = op.host_function.invoke_contract
        assert call.function_name.sc_symbol == b"mint"
        assert call.args[0].type == stellar_xdr.SCValType.SCV_ADDRESS
        assert scval.from_int128(call.args[1]) == 1000

    def test_invoke_named_args_follow_declared_order(
        self, builder: OperationBuilder, address_book: AddressBook
    ) -> None:
        _usdc_id(address_book)
        recipient = Keypair.random().public_key
        op = builder.invoke("USDC", "mint", {"amount": 5, "to": recipient})
        args = op.host_function.invoke_contract.args
        assert args[0].type == stellar_xdr.SCValType.SCV_ADDRESS
        assert scval.from_int128(args[1]) == 5

    def test_invoke_wrong_arity(self, builder: OperationBuilder, address_book: AddressBook) -> None:
        _usdc_id(address_book)
        with pytest.raises(PreconditionError):
            builder.invoke("USDC", "mint", [Keypair.random().public_key])

    def test_invoke_unknown_function(self, builder: OperationBuilder, address_book: AddressBook) -> None:
        _usdc_id(address_book)
        with pytest.raises(PreconditionError):
            builder.invoke("USDC", "rug", [])

    def test_invoke_unregistered_contract(self, builder: OperationBuilder) -> None:
        with pytest.raises(PreconditionError):
            builder.invoke("USDC", "mint", [Keypair.random().public_key, 1])

    def test_invoke_without_interface_needs_scvals(
        self, builder: OperationBuilder, address_book: AddressBook
    ) -> None:
        address_book.set_contract_id("custom", derive_contract_id(Keypair.random().public_key, b"\x03" * 32, PASSPHRASE))
        assert interface_for("custom") is None
        with pytest.raises(PreconditionError):
            builder.invoke("custom", "poke", [1])
        op = builder.invoke("custom", "poke", [scval.to_uint32(1)])
        assert op.host_function.invoke_contract.args[0].type == stellar_xdr.SCValType.SCV_U32

    def test_invoke_oracle_set_data(self, builder: OperationBuilder, address_book: AddressBook) -> None:
        address_book.set_contract_id(
            "oraclemock", derive_contract_id(Keypair.random().public_key, b"\x04" * 32, PASSPHRASE)
        )
        usdc = _usdc_id(address_book)
        admin = Keypair.random().public_key

        op = builder.invoke(
            "oraclemock",
            "set_data",
            [
                admin,
                {"tag": "Other", "values": ["USD"]},
                [{"tag": "Stellar", "values": [usdc]}],
                7,
                300,
            ],
        )

        args = op.host_function.invoke_contract.args
        assert op.host_function.invoke_contract.function_name.sc_symbol == b"set_data"
        assert args[1].vec.sc_vec[0].sym.sc_symbol == b"Other"
        assert args[2].type == stellar_xdr.SCValType.SCV_VEC
        assert args[2].vec.sc_vec[0].vec.sc_vec[0].sym.sc_symbol == b"Stellar"
        assert scval.from_uint32(args[3]) == 7
        assert scval.from_uint32(args[4]) == 300

    def test_create_asset_contract(self, builder: OperationBuilder) -> None:
        asset = Asset("USDC", Keypair.random().public_key)

        op, contract_id = builder.build("deploy_asset", asset=asset)

        assert contract_id == derive_asset_contract_id(asset, PASSPHRASE)
        create = op.host_function.create_contract
        assert create.executable.type == stellar_xdr.ContractExecutableType.CONTRACT_EXECUTABLE_STELLAR_ASSET
        assert (
            create.contract_id_preimage.type
            == stellar_xdr.ContractIDPreimageType.CONTRACT_ID_PREIMAGE_FROM_ASSET
        )
