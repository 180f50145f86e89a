"""
Declared call signatures for the contracts orbitctl administers.

Only the functions the toolkit calls are declared.  Types use the Soroban
contract type names: address, symbol, string, bool, u32, i32, u64, i64, u128, i128,
bytes, bytes32, vec<T>, option<T>, map<K,V>, plus ``Struct`` for contract
types that encode as symbol-keyed maps, ``ContractEnum`` for tagged unions
and ``Vec`` for lists of either.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Struct:
    name: str
    fields: tuple[tuple[str, "ParamType"], ...]


@dataclass(frozen=True)
class ContractEnum:
    """Tagged union; encodes as a vec of the tag symbol followed by the values."""

    name: str
    variants: tuple[tuple[str, tuple["ParamType", ...]], ...]

    def variant(self, tag: str) -> Optional[tuple["ParamType", ...]]:
        return dict(self.variants).get(tag)


@dataclass(frozen=True)
class Vec:
    item: "ParamType"


ParamType = Union[str, Struct, ContractEnum, Vec]


@dataclass(frozen=True)
class Function:
    name: str
    params: tuple[tuple[str, ParamType], ...] = ()

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.params)


@dataclass(frozen=True)
class ContractInterface:
    name: str
    functions: dict[str, Function]
    # Contract error codes meaning "time lock not yet elapsed"
    not_eligible_codes: tuple[int, ...] = field(default_factory=tuple)
    # Contract error codes meaning "initialize already ran"
    already_initialized_codes: tuple[int, ...] = field(default_factory=tuple)

    def function(self, name: str) -> Optional[Function]:
        return self.functions.get(name)


def _interface(
    name: str,
    *functions: Function,
    not_eligible_codes: tuple[int, ...] = (),
    already_initialized_codes: tuple[int, ...] = (),
) -> ContractInterface:
    return ContractInterface(
        name=name,
        functions={fn.name: fn for fn in functions},
        not_eligible_codes=not_eligible_codes,
        already_initialized_codes=already_initialized_codes,
    )


# Shared "already initialized" contract error of the Blend and Orbit contracts
ALREADY_INITIALIZED = 3
# Blend pool: queued reserve change whose time lock has not elapsed
POOL_INIT_NOT_UNLOCKED = 1203

TREASURY_INIT_META = Struct(
    "TreasuryInitMeta",
    (
        ("pool_factory", "address"),
        ("treasury_hash", "bytes32"),
    ),
)

RESERVE_CONFIG = Struct(
    "ReserveConfig",
    (
        ("c_factor", "u32"),
        ("decimals", "u32"),
        ("index", "u32"),
        ("l_factor", "u32"),
        ("max_util", "u32"),
        ("r_base", "u32"),
        ("r_one", "u32"),
        ("r_three", "u32"),
        ("r_two", "u32"),
        ("reactivity", "u32"),
        ("util", "u32"),
    ),
)

TOKEN = _interface(
    "token",
    Function("initialize", (("admin", "address"), ("decimal", "u32"), ("name", "string"), ("symbol", "string"))),
    Function("mint", (("to", "address"), ("amount", "i128"))),
    Function("set_admin", (("new_admin", "address"),)),
    Function("transfer", (("from", "address"), ("to", "address"), ("amount", "i128"))),
    Function("balance", (("id", "address"),)),
    Function(
        "approve",
        (("from", "address"), ("spender", "address"), ("amount", "i128"), ("expiration_ledger", "u32")),
    ),
    Function("burn", (("from", "address"), ("amount", "i128"))),
)

TREASURY_FACTORY = _interface(
    "treasuryFactory",
    Function("initialize", (("admin", "address"), ("treasury_init_meta", TREASURY_INIT_META))),
    Function("deploy", (("salt", "bytes32"), ("token", "address"), ("blend_pool", "address"))),
    Function("is_deployed", (("treasury_id", "address"),)),
    already_initialized_codes=(ALREADY_INITIALIZED,),
)

POOL = _interface(
    "lendingPool",
    Function("queue_set_reserve", (("asset", "address"), ("metadata", RESERVE_CONFIG))),
    Function("cancel_set_reserve", (("asset", "address"),)),
    Function("set_reserve", (("asset", "address"),)),
    Function("set_status", (("pool_status", "u32"),)),
    not_eligible_codes=(POOL_INIT_NOT_UNLOCKED,),
)

BACKSTOP = _interface(
    "backstop",
    Function("deposit", (("from", "address"), ("pool_address", "address"), ("amount", "i128"))),
    Function("queue_withdrawal", (("from", "address"), ("pool_address", "address"), ("amount", "i128"))),
    Function("dequeue_withdrawal", (("from", "address"), ("pool_address", "address"), ("amount", "i128"))),
    Function("withdraw", (("from", "address"), ("pool_address", "address"), ("amount", "i128"))),
)

ORACLE_ASSET = ContractEnum(
    "Asset",
    (
        ("Stellar", ("address",)),
        ("Other", ("symbol",)),
    ),
)

ORACLE_MOCK = _interface(
    "oraclemock",
    Function(
        "set_data",
        (
            ("admin", "address"),
            ("base", ORACLE_ASSET),
            ("assets", Vec(ORACLE_ASSET)),
            ("decimals", "u32"),
            ("resolution", "u32"),
        ),
    ),
    Function("set_price_stable", (("prices", "vec<i128>"),)),
)

BY_NAME: dict[str, ContractInterface] = {
    iface.name: iface for iface in (TOKEN, TREASURY_FACTORY, POOL, BACKSTOP, ORACLE_MOCK)
}

# Contract keys whose interface differs from their own name
_KEY_ALIASES: dict[str, str] = {
    "USDC": "token",
    "XLM": "token",
    "wETH": "token",
    "wBTC": "token",
    "BLND": "token",
    "backstopToken": "token",
}


def interface_for(contract_key: str) -> Optional[ContractInterface]:
    """Default interface for an address-book contract key, if declared."""
    name = _KEY_ALIASES.get(contract_key, contract_key)
    return BY_NAME.get(name)
