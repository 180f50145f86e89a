"""
Ledger footprints for administrative (TTL-extension and restore) operations.

Administrative operations carry no contract payload, only the set of ledger
keys whose lifetime they touch.  Their resource budget is conventionally
zero and the network assesses the real cost.  Anything that invokes contract
code must use simulation-derived budgets instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from stellar_sdk import Address, ExtendFootprintTTL, RestoreFootprint, SorobanDataBuilder
from stellar_sdk import xdr as stellar_xdr

from ..errors import EncodingError

# Ledger sequence the bump operations extend entries to.
DEFAULT_EXTEND_TO = 535670

PERSISTENT = stellar_xdr.ContractDataDurability.PERSISTENT
TEMPORARY = stellar_xdr.ContractDataDurability.TEMPORARY


@dataclass(frozen=True)
class LedgerFootprint:
    read_only: tuple[stellar_xdr.LedgerKey, ...] = ()
    read_write: tuple[stellar_xdr.LedgerKey, ...] = ()

    def __len__(self) -> int:
        return len(self.read_only) + len(self.read_write)


@dataclass(frozen=True)
class ResourceBudget:
    footprint: LedgerFootprint = field(default_factory=LedgerFootprint)
    instructions: int = 0
    read_bytes: int = 0
    write_bytes: int = 0
    resource_fee: int = 0

    @property
    def is_network_assessed(self) -> bool:
        return (
            self.instructions == 0
            and self.read_bytes == 0
            and self.write_bytes == 0
            and self.resource_fee == 0
        )

    def to_soroban_data(self) -> stellar_xdr.SorobanTransactionData:
        builder = SorobanDataBuilder()
        builder.set_read_only(list(self.footprint.read_only))
        builder.set_read_write(list(self.footprint.read_write))
        builder.set_resources(self.instructions, self.read_bytes, self.write_bytes)
        builder.set_resource_fee(self.resource_fee)
        return builder.build()


def _contract_address(contract_id: str) -> stellar_xdr.SCAddress:
    try:
        return Address(contract_id).to_xdr_sc_address()
    except Exception as exc:
        raise EncodingError(f"Malformed contract address: {contract_id!r}") from exc


def contract_data_key(
    contract_id: str,
    data_key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = PERSISTENT,
) -> stellar_xdr.LedgerKey:
    if not isinstance(data_key, stellar_xdr.SCVal):
        raise EncodingError(f"Data key must be an SCVal, got {type(data_key).__name__}")
    return stellar_xdr.LedgerKey(
        type=stellar_xdr.LedgerEntryType.CONTRACT_DATA,
        contract_data=stellar_xdr.LedgerKeyContractData(
            contract=_contract_address(contract_id),
            key=data_key,
            durability=durability,
        ),
    )


def contract_instance_key(contract_id: str) -> stellar_xdr.LedgerKey:
    instance = stellar_xdr.SCVal(type=stellar_xdr.SCValType.SCV_LEDGER_KEY_CONTRACT_INSTANCE)
    return contract_data_key(contract_id, instance, PERSISTENT)


def contract_code_key(wasm_hash: bytes) -> stellar_xdr.LedgerKey:
    if len(wasm_hash) != 32:
        raise EncodingError(f"Wasm hash must be 32 bytes, got {len(wasm_hash)}")
    return stellar_xdr.LedgerKey(
        type=stellar_xdr.LedgerEntryType.CONTRACT_CODE,
        contract_code=stellar_xdr.LedgerKeyContractCode(hash=stellar_xdr.Hash(bytes(wasm_hash))),
    )


def instance_bump_footprint(contract_id: str) -> LedgerFootprint:
    return LedgerFootprint(read_only=(contract_instance_key(contract_id),))


def code_bump_footprint(wasm_hash: bytes) -> LedgerFootprint:
    return LedgerFootprint(read_only=(contract_code_key(wasm_hash),))


def data_bump_footprint(
    contract_id: str,
    data_key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = PERSISTENT,
) -> LedgerFootprint:
    return LedgerFootprint(read_only=(contract_data_key(contract_id, data_key, durability),))


def restore_footprint(
    contract_id: str,
    data_key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = PERSISTENT,
) -> LedgerFootprint:
    return LedgerFootprint(read_write=(contract_data_key(contract_id, data_key, durability),))


def administrative_budget(footprint: LedgerFootprint) -> ResourceBudget:
    """Zero-valued budget: the network assesses the true cost."""
    return ResourceBudget(footprint=footprint)


def extend_ttl_operation(extend_to: int = DEFAULT_EXTEND_TO) -> ExtendFootprintTTL:
    return ExtendFootprintTTL(extend_to=extend_to)


def restore_operation() -> RestoreFootprint:
    return RestoreFootprint()


def is_administrative(operations: Sequence[object]) -> bool:
    return bool(operations) and all(
        isinstance(op, (ExtendFootprintTTL, RestoreFootprint)) for op in operations
    )
