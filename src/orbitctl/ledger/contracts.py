"""
High-level contract actions: install, deploy, bump, restore, invoke, airdrop.

Each action builds its operation, runs it through the session's pipeline and,
for state-changing actions, records the result in the address book right
after the network confirms it.  A failure anywhere before confirmation leaves
the address book untouched, so an interrupted setup can simply be re-run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Union

from stellar_sdk import Asset
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..errors import ExecutionFailure, PreconditionError
from ..utils import hex_to_bytes
from .contract_id import new_salt
from .footprint import (
    DEFAULT_EXTEND_TO,
    PERSISTENT,
    LedgerFootprint,
    administrative_budget,
    code_bump_footprint,
    data_bump_footprint,
    extend_ttl_operation,
    instance_bump_footprint,
    restore_footprint,
    restore_operation,
)
from .interfaces import interface_for
from .tx import ResultParser, TxOutcome

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

# Contracts the Orbit deployment installs, and the one it deploys
ORBIT_WASM_KEYS = ("treasury", "treasuryFactory", "bridgeOracle")
ORBIT_DEPLOYED_KEYS = ("treasuryFactory",)
# Blend pool factory the treasury factory is wired to; deployed outside orbitctl
POOL_FACTORY_KEY = "poolFactory"


def install_contract(session: "Session", wasm_key: str) -> str:
    """
    Upload a wasm artifact and record its hash.

    Returns:
        Hex SHA-256 of the uploaded wasm
    """
    op, wasm_hash = session.builder.upload_wasm(wasm_key)
    logger.info("Uploading contract wasm for %s", wasm_key)
    session.pipeline.submit([op], session.tx_params, operation_name="install", contract=wasm_key)

    session.address_book.set_wasm_hash(wasm_key, wasm_hash)
    session.address_book.write()
    logger.info("Contract %s installed with hash %s", wasm_key, wasm_hash)
    return wasm_hash


def deploy_contract(
    session: "Session",
    contract_key: str,
    wasm_key: str,
    salt: Optional[bytes] = None,
) -> str:
    """
    Create a contract instance from an installed wasm and record its address.

    The address is derived before submission but only written to the address
    book once the create transaction succeeds.

    Returns:
        The C... contract id
    """
    salt = salt if salt is not None else new_salt()
    op, contract_id = session.builder.create_contract(wasm_key, session.account_id, salt)
    logger.info("Deploying contract %s with id %s", contract_key, contract_id)
    session.pipeline.submit([op], session.tx_params, operation_name="deploy", contract=contract_key)

    session.address_book.set_contract_id(contract_key, contract_id)
    session.address_book.write()
    return contract_id


def deploy_stellar_asset(session: "Session", contract_key: str, asset: Asset) -> str:
    """
    Deploy the Stellar Asset Contract of a classic asset and record its address.

    An asset has a single contract per network.  If the address book already
    knows ``contract_key`` nothing is submitted.

    Returns:
        The C... contract id
    """
    if session.address_book.has_contract_id(contract_key):
        logger.info("Stellar asset %s already deployed, skipping", contract_key)
        return session.address_book.get_contract_id(contract_key)

    op, contract_id = session.builder.create_asset_contract(asset)
    logger.info("Deploying Stellar asset %s (%s) with id %s", contract_key, asset.code, contract_id)
    session.pipeline.submit([op], session.tx_params, operation_name="deploy_asset", contract=contract_key)

    session.address_book.set_contract_id(contract_key, contract_id)
    session.address_book.write()
    return contract_id


def _submit_administrative(
    session: "Session",
    operation: Operation,
    footprint: LedgerFootprint,
    operation_name: str,
    target: str,
) -> TxOutcome:
    return session.pipeline.submit(
        [operation],
        session.tx_params,
        budget=administrative_budget(footprint),
        operation_name=operation_name,
        contract=target,
    )


def bump_contract_instance(
    session: "Session", contract_key: str, extend_to: int = DEFAULT_EXTEND_TO
) -> TxOutcome:
    contract_id = session.address_book.get_contract_id(contract_key)
    logger.info("Bumping the contract instance for %s", contract_key)
    return _submit_administrative(
        session,
        extend_ttl_operation(extend_to),
        instance_bump_footprint(contract_id),
        "bump_instance",
        contract_key,
    )


def bump_contract_code(
    session: "Session", wasm_key: str, extend_to: int = DEFAULT_EXTEND_TO
) -> TxOutcome:
    wasm_hash = hex_to_bytes(session.address_book.get_wasm_hash(wasm_key), 32)
    logger.info("Bumping the contract code for wasm %s", wasm_key)
    return _submit_administrative(
        session,
        extend_ttl_operation(extend_to),
        code_bump_footprint(wasm_hash),
        "bump_code",
        wasm_key,
    )


def bump_contract_data(
    session: "Session",
    contract_key: str,
    data_key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = PERSISTENT,
    extend_to: int = DEFAULT_EXTEND_TO,
) -> TxOutcome:
    contract_id = session.address_book.get_contract_id(contract_key)
    logger.info("Bumping contract data of %s", contract_key)
    return _submit_administrative(
        session,
        extend_ttl_operation(extend_to),
        data_bump_footprint(contract_id, data_key, durability),
        "bump_data",
        contract_key,
    )


def restore_contract_data(
    session: "Session",
    contract_key: str,
    data_key: stellar_xdr.SCVal,
    durability: stellar_xdr.ContractDataDurability = PERSISTENT,
) -> TxOutcome:
    contract_id = session.address_book.get_contract_id(contract_key)
    logger.info("Restoring contract data of %s", contract_key)
    return _submit_administrative(
        session,
        restore_operation(),
        restore_footprint(contract_id, data_key, durability),
        "restore_data",
        contract_key,
    )


def invoke_contract(
    session: "Session",
    contract_key: str,
    function: str,
    args: Union[Sequence[Any], Mapping[str, Any]] = (),
    *,
    parser: Optional[ResultParser] = None,
    not_eligible_codes: Optional[Iterable[int]] = None,
) -> TxOutcome:
    """Call ``function`` on a registered contract and wait for the result.

    Without explicit ``not_eligible_codes`` the contract interface's declared
    codes apply.
    """
    op = session.builder.invoke(contract_key, function, args)
    if not_eligible_codes is None:
        interface = interface_for(contract_key)
        not_eligible_codes = interface.not_eligible_codes if interface else ()
    return session.pipeline.submit(
        [op],
        session.tx_params,
        parser=parser,
        operation_name=function,
        contract=contract_key,
        not_eligible_codes=tuple(not_eligible_codes),
    )


def airdrop_account(session: "Session", account_id: Optional[str] = None) -> bool:
    """Fund an account from the network's friendbot.

    Returns:
        True if funded now, False if the account already existed.
    """
    account_id = account_id or session.account_id
    friendbot_url = session.network.friendbot_url
    if not friendbot_url:
        raise PreconditionError(f"Network '{session.network.name}' has no friendbot")
    logger.info("Funding %s via friendbot", account_id)
    return session.rpc.request_airdrop(account_id, friendbot_url)


def ensure_installed(session: "Session", wasm_key: str) -> str:
    """Install ``wasm_key`` unless the address book already records it."""
    if session.address_book.has_wasm_hash(wasm_key):
        logger.info("Wasm %s already installed, skipping", wasm_key)
        return session.address_book.get_wasm_hash(wasm_key)
    return install_contract(session, wasm_key)


def ensure_deployed(
    session: "Session",
    contract_key: str,
    wasm_key: Optional[str] = None,
    salt: Optional[bytes] = None,
) -> str:
    """Deploy ``contract_key`` unless the address book already records it."""
    if session.address_book.has_contract_id(contract_key):
        logger.info("Contract %s already deployed, skipping", contract_key)
        return session.address_book.get_contract_id(contract_key)
    return deploy_contract(session, contract_key, wasm_key or contract_key, salt)


def initialize_treasury_factory(
    session: "Session",
    contract_key: str = "treasuryFactory",
    treasury_wasm_key: str = "treasury",
    pool_factory_key: str = POOL_FACTORY_KEY,
) -> Optional[TxOutcome]:
    """Call ``initialize(admin, TreasuryInitMeta)`` on the treasury factory.

    The operator becomes the admin.  A factory that is already initialized is
    left alone and ``None`` is returned.
    """
    meta = {
        "treasury_hash": session.address_book.get_wasm_hash(treasury_wasm_key),
        "pool_factory": session.address_book.get_contract_id(pool_factory_key),
    }
    try:
        return invoke_contract(session, contract_key, "initialize", [session.account_id, meta])
    except ExecutionFailure as exc:
        interface = interface_for(contract_key)
        codes = interface.already_initialized_codes if interface else ()
        if exc.contract_error is None or exc.contract_error not in codes:
            raise
        logger.info("%s already initialized, skipping", contract_key)
        return None


def initialize_orbit(session: "Session") -> dict[str, str]:
    """
    Install the Orbit contracts, deploy the treasury factory and initialize it.

    Steps already reflected on chain or in the address book are skipped, so
    the sequence can be re-run after an interruption.  The Blend pool factory
    (``poolFactory``) must already be in the address book.

    Returns:
        Mapping of contract key to contract id for the deployed contracts
    """
    if not session.address_book.has_contract_id(POOL_FACTORY_KEY):
        raise PreconditionError(
            f"'{POOL_FACTORY_KEY}' is not in the {session.network.name} address book; "
            "deploy the Blend contracts first"
        )

    for wasm_key in ORBIT_WASM_KEYS:
        ensure_installed(session, wasm_key)
        bump_contract_code(session, wasm_key)

    deployed = {}
    for contract_key in ORBIT_DEPLOYED_KEYS:
        deployed[contract_key] = ensure_deployed(session, contract_key)
        bump_contract_instance(session, contract_key)

    initialize_treasury_factory(session)
    bump_contract_instance(session, "treasuryFactory")
    return deployed
