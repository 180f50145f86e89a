"""
Operation Builder - turn logical actions into Soroban host-function operations.

Four actions are supported:

- install: upload a wasm artifact (HOST_FUNCTION_TYPE_UPLOAD_CONTRACT_WASM)
- deploy:  create a contract from an installed wasm hash (HOST_FUNCTION_TYPE_CREATE_CONTRACT)
- deploy_asset: create the Stellar Asset Contract of a classic asset
- invoke:  call a function on a registered contract (HOST_FUNCTION_TYPE_INVOKE_CONTRACT)

All preconditions (known action, installed wasm, registered contract,
argument list matching the declared interface) are checked here, before
anything is sent to the network.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence, Union

from stellar_sdk import Address, Asset, InvokeHostFunction, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..errors import EncodingError, PreconditionError
from ..registry.address_book import AddressBook
from ..registry.artifacts import ArtifactStore
from ..utils import hex_to_bytes, sha256
from .contract_id import (
    asset_contract_preimage,
    contract_id_preimage,
    derive_asset_contract_id,
    derive_contract_id,
)
from .interfaces import ContractEnum, ContractInterface, ParamType, Struct, Vec, interface_for

ACTIONS = ("install", "deploy", "deploy_asset", "invoke")

_INT_CONVERTERS: dict[str, Callable[[int], stellar_xdr.SCVal]] = {
    "u32": scval.to_uint32,
    "i32": scval.to_int32,
    "u64": scval.to_uint64,
    "i64": scval.to_int64,
    "u128": scval.to_uint128,
    "i128": scval.to_int128,
}


# ---------------------------------------------------------------------------
# XDR round trip
# ---------------------------------------------------------------------------


def encode_operation(operation: Operation) -> str:
    """Base64 XDR of an operation."""
    try:
        return operation.to_xdr_object().to_xdr()
    except Exception as exc:
        raise EncodingError(f"Cannot encode operation: {exc}") from exc


def decode_operation(encoded: str) -> Operation:
    """Decode base64 XDR back into a stellar_sdk operation object."""
    try:
        return Operation.from_xdr_object(stellar_xdr.Operation.from_xdr(encoded))
    except Exception as exc:
        raise EncodingError(f"Malformed operation XDR: {exc}") from exc


# ---------------------------------------------------------------------------
# Argument conversion
# ---------------------------------------------------------------------------


def _split_generic(type_name: str) -> tuple[str, str]:
    head, _, rest = type_name.partition("<")
    if not rest.endswith(">"):
        raise EncodingError(f"Malformed type: {type_name}")
    return head, rest[:-1]


def _split_top_level(inner: str) -> tuple[str, str]:
    depth = 0
    for index, char in enumerate(inner):
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        elif char == "," and depth == 0:
            return inner[:index].strip(), inner[index + 1 :].strip()
    raise EncodingError(f"Malformed map type: map<{inner}>")


_KEY_ORDER: dict[stellar_xdr.SCValType, Callable[[stellar_xdr.SCVal], Any]] = {
    stellar_xdr.SCValType.SCV_BOOL: scval.from_bool,
    stellar_xdr.SCValType.SCV_U32: scval.from_uint32,
    stellar_xdr.SCValType.SCV_I32: scval.from_int32,
    stellar_xdr.SCValType.SCV_U64: scval.from_uint64,
    stellar_xdr.SCValType.SCV_I64: scval.from_int64,
    stellar_xdr.SCValType.SCV_U128: scval.from_uint128,
    stellar_xdr.SCValType.SCV_I128: scval.from_int128,
    stellar_xdr.SCValType.SCV_BYTES: scval.from_bytes,
    stellar_xdr.SCValType.SCV_STRING: scval.from_string,
    stellar_xdr.SCValType.SCV_SYMBOL: lambda v: scval.from_symbol(v).encode("utf-8"),
    stellar_xdr.SCValType.SCV_ADDRESS: lambda v: _address_order(scval.from_address(v)),
}


def _address_order(address: Address) -> tuple[int, bytes]:
    # Accounts (type 0) sort before contracts (type 1), then by raw key
    return address.type.value, address.key


def scval_sort_key(value: stellar_xdr.SCVal) -> tuple[int, Any]:
    """Host ordering of an SCVal map key: by value type, then by value."""
    order = _KEY_ORDER.get(value.type)
    if order is None:
        raise EncodingError(f"Map keys of type {value.type.name} are not supported")
    return value.type.value, order(value)


def _scmap(entries: list[tuple[stellar_xdr.SCVal, stellar_xdr.SCVal]]) -> stellar_xdr.SCVal:
    return stellar_xdr.SCVal(
        type=stellar_xdr.SCValType.SCV_MAP,
        map=stellar_xdr.SCMap([stellar_xdr.SCMapEntry(key=k, val=v) for k, v in entries]),
    )


def to_scval(param_type: ParamType, value: Any, name: str = "arg") -> stellar_xdr.SCVal:
    """Convert a native Python value to an SCVal of the declared type.

    Values that are already SCVals pass through untouched.

    Raises:
        PreconditionError: the value does not fit the declared type
        EncodingError: the declared type itself is not understood
    """
    if isinstance(value, stellar_xdr.SCVal):
        return value

    if isinstance(param_type, Struct):
        if not isinstance(value, Mapping):
            raise PreconditionError(f"{name}: {param_type.name} expects a mapping")
        declared = dict(param_type.fields)
        if set(value) != set(declared):
            raise PreconditionError(
                f"{name}: {param_type.name} fields {sorted(value)} != {sorted(declared)}"
            )
        # Contract structs encode as maps keyed by field symbol, sorted
        return _scmap(
            [
                (scval.to_symbol(field_name), to_scval(declared[field_name], value[field_name], f"{name}.{field_name}"))
                for field_name in sorted(declared)
            ]
        )

    if isinstance(param_type, Vec):
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise PreconditionError(f"{name}: expects a list")
        return scval.to_vec(
            [to_scval(param_type.item, item, f"{name}[{i}]") for i, item in enumerate(value)]
        )

    if isinstance(param_type, ContractEnum):
        # {"tag": "Stellar", "values": ["C..."]}; unit variants may omit values
        if not isinstance(value, Mapping) or "tag" not in value:
            raise PreconditionError(f"{name}: {param_type.name} expects {{'tag': ..., 'values': [...]}}")
        tag = value["tag"]
        types = param_type.variant(tag)
        if types is None:
            raise PreconditionError(f"{name}: {param_type.name} has no variant '{tag}'")
        values = list(value.get("values") or ())
        if len(values) != len(types):
            raise PreconditionError(
                f"{name}: {param_type.name}::{tag} expects {len(types)} values, got {len(values)}"
            )
        return scval.to_vec(
            [scval.to_symbol(tag)]
            + [to_scval(t, v, f"{name}.{tag}[{i}]") for i, (t, v) in enumerate(zip(types, values))]
        )

    type_name = param_type.strip()
    try:
        if type_name.startswith("vec<"):
            _, inner = _split_generic(type_name)
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                raise PreconditionError(f"{name}: {type_name} expects a list")
            return scval.to_vec([to_scval(inner, item, f"{name}[{i}]") for i, item in enumerate(value)])

        if type_name.startswith("option<"):
            _, inner = _split_generic(type_name)
            return scval.to_void() if value is None else to_scval(inner, value, name)

        if type_name.startswith("map<"):
            _, inner = _split_generic(type_name)
            key_type, value_type = _split_top_level(inner)
            if not isinstance(value, Mapping):
                raise PreconditionError(f"{name}: {type_name} expects a mapping")
            entries = [
                (to_scval(key_type, k, f"{name}.key"), to_scval(value_type, v, f"{name}[{k!r}]"))
                for k, v in value.items()
            ]
            entries.sort(key=lambda entry: scval_sort_key(entry[0]))
            return _scmap(entries)

        if type_name in _INT_CONVERTERS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise PreconditionError(f"{name}: {type_name} expects an int, got {value!r}")
            return _INT_CONVERTERS[type_name](value)

        if type_name == "address":
            if not isinstance(value, (str, Address)):
                raise PreconditionError(f"{name}: address expects a G.../C... string")
            return scval.to_address(value)

        if type_name == "bool":
            if not isinstance(value, bool):
                raise PreconditionError(f"{name}: bool expects True/False, got {value!r}")
            return scval.to_bool(value)

        if type_name == "symbol":
            return scval.to_symbol(str(value))

        if type_name == "string":
            return scval.to_string(str(value))

        if type_name in ("bytes", "bytes32"):
            raw = hex_to_bytes(value) if isinstance(value, str) else bytes(value)
            if type_name == "bytes32" and len(raw) != 32:
                raise PreconditionError(f"{name}: bytes32 expects 32 bytes, got {len(raw)}")
            return scval.to_bytes(raw)
    except (ValueError, TypeError) as exc:
        raise PreconditionError(f"{name}: cannot convert {value!r} to {type_name}: {exc}") from exc

    raise EncodingError(f"{name}: unsupported parameter type '{type_name}'")


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class OperationBuilder:
    """Builds install / deploy / invoke operations against an address book."""

    def __init__(
        self,
        address_book: AddressBook,
        artifacts: ArtifactStore,
        network_passphrase: str,
        interfaces: Callable[[str], Optional[ContractInterface]] = interface_for,
    ) -> None:
        self.address_book = address_book
        self.artifacts = artifacts
        self.network_passphrase = network_passphrase
        self.interfaces = interfaces

    def build(self, action: str, **kwargs: Any) -> Any:
        """Dispatch a logical action name to its builder."""
        if action == "install":
            return self.upload_wasm(**kwargs)
        if action == "deploy":
            return self.create_contract(**kwargs)
        if action == "deploy_asset":
            return self.create_asset_contract(**kwargs)
        if action == "invoke":
            return self.invoke(**kwargs)
        raise PreconditionError(f"Unknown action '{action}'. Expected one of: {', '.join(ACTIONS)}")

    def upload_wasm(self, wasm_key: str) -> tuple[InvokeHostFunction, str]:
        """Upload operation for a wasm artifact, plus the artifact's hex hash."""
        wasm = self.artifacts.read(wasm_key)
        host_function = stellar_xdr.HostFunction(
            type=stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_UPLOAD_CONTRACT_WASM,
            wasm=wasm,
        )
        return InvokeHostFunction(host_function=host_function, auth=[]), sha256(wasm).hex()

    def create_contract(
        self, wasm_key: str, account_id: str, salt: bytes
    ) -> tuple[InvokeHostFunction, str]:
        """Create-contract operation and the contract id it will produce."""
        wasm_hash = hex_to_bytes(self.address_book.get_wasm_hash(wasm_key), 32)
        preimage = contract_id_preimage(account_id, salt)
        host_function = stellar_xdr.HostFunction(
            type=stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_CREATE_CONTRACT,
            create_contract=stellar_xdr.CreateContractArgs(
                contract_id_preimage=preimage,
                executable=stellar_xdr.ContractExecutable(
                    type=stellar_xdr.ContractExecutableType.CONTRACT_EXECUTABLE_WASM,
                    wasm_hash=stellar_xdr.Hash(wasm_hash),
                ),
            ),
        )
        contract_id = derive_contract_id(account_id, salt, self.network_passphrase)
        return InvokeHostFunction(host_function=host_function, auth=[]), contract_id

    def create_asset_contract(self, asset: Asset) -> tuple[InvokeHostFunction, str]:
        """Deploy operation for the asset's Stellar Asset Contract, and its id."""
        preimage = asset_contract_preimage(asset)
        host_function = stellar_xdr.HostFunction(
            type=stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_CREATE_CONTRACT,
            create_contract=stellar_xdr.CreateContractArgs(
                contract_id_preimage=preimage,
                executable=stellar_xdr.ContractExecutable(
                    type=stellar_xdr.ContractExecutableType.CONTRACT_EXECUTABLE_STELLAR_ASSET,
                ),
            ),
        )
        contract_id = derive_asset_contract_id(asset, self.network_passphrase)
        return InvokeHostFunction(host_function=host_function, auth=[]), contract_id

    def invoke(
        self,
        contract_key: str,
        function: str,
        args: Union[Sequence[Any], Mapping[str, Any]] = (),
        interface: Optional[ContractInterface] = None,
    ) -> InvokeHostFunction:
        """Contract call with arguments checked against the declared interface."""
        contract_id = self.address_book.get_contract_id(contract_key)
        interface = interface or self.interfaces(contract_key)
        parameters = self._convert_args(contract_key, function, args, interface)

        host_function = stellar_xdr.HostFunction(
            type=stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_INVOKE_CONTRACT,
            invoke_contract=stellar_xdr.InvokeContractArgs(
                contract_address=Address(contract_id).to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(function.encode("utf-8")),
                args=parameters,
            ),
        )
        return InvokeHostFunction(host_function=host_function, auth=[])

    def _convert_args(
        self,
        contract_key: str,
        function: str,
        args: Union[Sequence[Any], Mapping[str, Any]],
        interface: Optional[ContractInterface],
    ) -> list[stellar_xdr.SCVal]:
        if interface is None:
            values = list(args.values()) if isinstance(args, Mapping) else list(args)
            if not all(isinstance(v, stellar_xdr.SCVal) for v in values):
                raise PreconditionError(
                    f"No interface declared for '{contract_key}'; arguments must be SCVals",
                    operation=function,
                    contract=contract_key,
                )
            return values

        declared = interface.function(function)
        if declared is None:
            raise PreconditionError(
                f"'{function}' is not part of the {interface.name} interface",
                operation=function,
                contract=contract_key,
            )

        if isinstance(args, Mapping):
            if set(args) != set(declared.param_names):
                raise PreconditionError(
                    f"{function} expects arguments {list(declared.param_names)}, got {sorted(args)}",
                    operation=function,
                    contract=contract_key,
                )
            ordered = [args[name] for name in declared.param_names]
        else:
            ordered = list(args)
            if len(ordered) != len(declared.params):
                raise PreconditionError(
                    f"{function} expects {len(declared.params)} arguments, got {len(ordered)}",
                    operation=function,
                    contract=contract_key,
                )

        return [
            to_scval(param_type, value, param_name)
            for (param_name, param_type), value in zip(declared.params, ordered)
        ]
