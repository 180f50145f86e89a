"""
Transaction Pipeline - build, sign, submit and poll Soroban transactions.

    BUILD -> SIGN -> SUBMIT -> POLL{PENDING <-> PENDING, -> SUCCESS, -> FAILED}

BUILD either applies an explicit resource budget (administrative
operations) or simulates the transaction and applies the simulated
footprint, resource fee and auth entries.  The account sequence is advanced
once the final envelope is built, and handed back if signing fails or the
network rejects the envelope.  Build and sign failures are never retried.
Each lifecycle state (``TxState``) is logged and reported to the optional
``on_state`` observer.

POLL repeats getTransaction every ``PollPolicy.interval`` seconds while the
status is NOT_FOUND or PENDING, bounded by ``max_attempts`` and ``timeout``.
Only that transient state is resolved internally; every other outcome is
raised to the caller with the operation name, contract and raw response.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from stellar_sdk import (
    Account,
    ExtendFootprintTTL,
    InvokeHostFunction,
    RestoreFootprint,
    TransactionBuilder,
    TransactionEnvelope,
)
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import Operation

from ..config import DEFAULT_BASE_FEE, DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from ..errors import (
    EncodingError,
    ExecutionFailure,
    NetworkRejection,
    NotYetEligible,
    PollTimeout,
    PreconditionError,
    RpcError,
)
from ..utils import parse_contract_error
from .footprint import ResourceBudget, is_administrative
from .operations import decode_operation, encode_operation
from .rpc import RpcClient

logger = logging.getLogger(__name__)

# Unsigned envelope XDR (base64) -> signed envelope XDR (base64)
Signer = Callable[[str], str]
ResultParser = Callable[[Optional[stellar_xdr.SCVal]], Any]
# Called with each lifecycle state and a short detail (sequence, hash, ...)
StateObserver = Callable[["TxState", str], None]
OperationInput = Union[str, Operation]

NOT_FOUND = "NOT_FOUND"
PENDING = "PENDING"
SUCCESS = "SUCCESS"
FAILED = "FAILED"

_SEND_ACCEPTED = ("PENDING", "DUPLICATE")
_SEND_RETRY_LATER = "TRY_AGAIN_LATER"
_SEND_ERROR = "ERROR"

_SOROBAN_OPERATIONS = (InvokeHostFunction, ExtendFootprintTTL, RestoreFootprint)


class TxState(str, Enum):
    BUILT = "BUILT"
    SIGNED = "SIGNED"
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class TxParams:
    """Per-session transaction parameters, passed by reference.

    ``account.sequence`` is advanced in place each time an envelope is built.
    """

    account: Account
    signer: Signer
    network_passphrase: str
    fee: int = DEFAULT_BASE_FEE
    time_bounds: Optional[tuple[int, int]] = None

    @property
    def account_id(self) -> str:
        """G... address of the source account."""
        return self.account.account.account_id


@dataclass(frozen=True)
class PollPolicy:
    interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: Optional[int] = 60
    timeout: Optional[float] = DEFAULT_POLL_TIMEOUT


@dataclass(frozen=True)
class TxOutcome:
    tx_hash: str
    status: TxState
    polls: int
    ledger: Optional[int] = None
    result: Any = None
    result_meta_xdr: Optional[str] = None


def result_code(result_xdr: Optional[str]) -> Optional[str]:
    """Name of the transaction result code (e.g. ``txBAD_SEQ``), if decodable."""
    if not result_xdr:
        return None
    try:
        return stellar_xdr.TransactionResult.from_xdr(result_xdr).result.code.name
    except Exception:
        return None


def contract_error_from_events(events: Optional[Iterable[str]]) -> Optional[int]:
    """First contract error code carried by a list of diagnostic event XDRs."""
    for raw in events or ():
        try:
            body = stellar_xdr.DiagnosticEvent.from_xdr(raw).event.body.v0
            values = [body.data, *body.topics]
        except Exception:
            continue
        for value in values:
            if (
                value.type == stellar_xdr.SCValType.SCV_ERROR
                and value.error.type == stellar_xdr.SCErrorType.SCE_CONTRACT
            ):
                return value.error.contract_code.uint32
    return None


def extract_return_value(result_meta_xdr: Optional[str]) -> Optional[stellar_xdr.SCVal]:
    """Return value of a Soroban invocation from ``resultMetaXdr``."""
    if not result_meta_xdr:
        return None
    try:
        meta = stellar_xdr.TransactionMeta.from_xdr(result_meta_xdr)
    except Exception as exc:
        raise EncodingError(f"Malformed result meta: {exc}", raw=result_meta_xdr) from exc
    for version in ("v4", "v3"):
        body = getattr(meta, version, None)
        soroban_meta = getattr(body, "soroban_meta", None) if body is not None else None
        if soroban_meta is not None:
            return soroban_meta.return_value
    return None


class TransactionPipeline:
    """Submits operations for one account and waits for a terminal status.

    One pipeline per account: ``submit`` holds a lock for the whole
    build-to-terminal span, so submissions through the same pipeline never
    race on the sequence number.
    """

    def __init__(
        self,
        rpc: RpcClient,
        poll_policy: PollPolicy = PollPolicy(),
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_state: Optional[StateObserver] = None,
    ) -> None:
        self.rpc = rpc
        self.poll_policy = poll_policy
        self._sleep = sleep
        self._clock = clock
        self._on_state = on_state
        self._lock = threading.Lock()

    def _transition(self, state: TxState, operation_name: Optional[str], detail: str) -> None:
        logger.log(
            logging.DEBUG if state is TxState.PENDING else logging.INFO,
            "%s: %s %s",
            operation_name or "tx",
            state.value,
            detail,
        )
        if self._on_state is not None:
            self._on_state(state, detail)

    # ---- account ----

    def refresh_account(self, params: TxParams) -> int:
        """Re-sync ``params.account`` with the network's sequence number."""
        fresh = self.rpc.get_account(params.account_id)
        params.account.sequence = fresh.sequence
        return fresh.sequence

    # ---- BUILD ----

    def _normalize(self, operations: Sequence[OperationInput]) -> list[Operation]:
        if not operations:
            raise EncodingError("A transaction needs at least one operation")
        normalized = []
        for op in operations:
            # Round-trip objects too: validates them and keeps the caller's copy untouched
            encoded = op if isinstance(op, str) else encode_operation(op)
            normalized.append(decode_operation(encoded))
        soroban = [op for op in normalized if isinstance(op, _SOROBAN_OPERATIONS)]
        if soroban and len(normalized) != 1:
            raise EncodingError("A Soroban transaction must carry exactly one operation")
        return normalized

    def _assemble(
        self,
        account: Account,
        operations: Sequence[Operation],
        params: TxParams,
        soroban_data: Optional[stellar_xdr.SorobanTransactionData],
        resource_fee: int,
    ) -> TransactionEnvelope:
        min_time, max_time = params.time_bounds or (0, 0)
        try:
            builder = TransactionBuilder(
                source_account=account,
                network_passphrase=params.network_passphrase,
                base_fee=params.fee,
            )
            builder.add_time_bounds(min_time, max_time)
            for op in operations:
                builder.append_operation(op)
            if soroban_data is not None:
                builder.set_soroban_data(soroban_data)
            envelope = builder.build()
        except Exception as exc:
            raise EncodingError(f"Cannot build transaction: {exc}") from exc
        envelope.transaction.fee = params.fee * len(operations) + resource_fee
        return envelope

    def simulate(
        self,
        operations: Sequence[OperationInput],
        params: TxParams,
        *,
        operation_name: Optional[str] = None,
        contract: Optional[str] = None,
        not_eligible_codes: Iterable[int] = (),
    ) -> dict[str, Any]:
        """Simulate against a copy of the account; never touches the sequence."""
        ops = self._normalize(operations)
        return self._simulate(ops, params, operation_name, contract, tuple(not_eligible_codes))

    def _simulate(
        self,
        ops: Sequence[Operation],
        params: TxParams,
        operation_name: Optional[str],
        contract: Optional[str],
        not_eligible_codes: tuple[int, ...],
    ) -> dict[str, Any]:
        scratch = Account(params.account_id, params.account.sequence)
        envelope = self._assemble(scratch, ops, params, None, 0)
        simulation = self.rpc.simulate_transaction(envelope.to_xdr()) or {}

        if simulation.get("error"):
            code = parse_contract_error(simulation["error"])
            if code is None:
                code = contract_error_from_events(simulation.get("events"))
            if code is not None and code in not_eligible_codes:
                raise NotYetEligible(
                    f"Not yet eligible (contract error #{code})",
                    contract_error=code,
                    operation=operation_name,
                    contract=contract,
                    raw=simulation["error"],
                )
            raise ExecutionFailure(
                f"Simulation failed: {simulation['error']}",
                contract_error=code,
                operation=operation_name,
                contract=contract,
                raw=simulation["error"],
            )

        if simulation.get("restorePreamble"):
            raise PreconditionError(
                "Transaction touches archived ledger entries; restore them first",
                operation=operation_name,
                contract=contract,
                raw=simulation["restorePreamble"],
            )

        if "transactionData" not in simulation:
            raise RpcError(
                "Simulation response has no transactionData",
                operation=operation_name,
                contract=contract,
                raw=simulation,
            )
        return simulation

    def build(
        self,
        operations: Sequence[OperationInput],
        params: TxParams,
        *,
        budget: Optional[ResourceBudget] = None,
        operation_name: Optional[str] = None,
        contract: Optional[str] = None,
        not_eligible_codes: Iterable[int] = (),
    ) -> TransactionEnvelope:
        """Build the final envelope. Advances ``params.account.sequence`` on success only."""
        ops = self._normalize(operations)
        soroban = isinstance(ops[0], _SOROBAN_OPERATIONS)

        soroban_data: Optional[stellar_xdr.SorobanTransactionData] = None
        resource_fee = 0
        if budget is not None:
            if budget.is_network_assessed and not is_administrative(ops):
                raise EncodingError(
                    "Zero-valued resource budgets are only valid for TTL-extension "
                    "and restore operations; use simulation for contract calls",
                    operation=operation_name,
                    contract=contract,
                )
            soroban_data = budget.to_soroban_data()
            resource_fee = budget.resource_fee
        elif soroban:
            simulation = self._simulate(ops, params, operation_name, contract, tuple(not_eligible_codes))
            try:
                soroban_data = stellar_xdr.SorobanTransactionData.from_xdr(simulation["transactionData"])
                resource_fee = int(simulation.get("minResourceFee", 0))
                self._apply_auth(ops, simulation)
            except (ValueError, TypeError, KeyError) as exc:
                raise EncodingError(f"Malformed simulation result: {exc}", raw=simulation) from exc

        envelope = self._assemble(params.account, ops, params, soroban_data, resource_fee)
        self._transition(
            TxState.BUILT,
            operation_name,
            f"seq={envelope.transaction.sequence} fee={envelope.transaction.fee}",
        )
        return envelope

    @staticmethod
    def _apply_auth(ops: Sequence[Operation], simulation: dict[str, Any]) -> None:
        results = simulation.get("results") or []
        if not results:
            return
        entries = results[0].get("auth") or []
        for op in ops:
            if isinstance(op, InvokeHostFunction) and not op.auth:
                op.auth = [stellar_xdr.SorobanAuthorizationEntry.from_xdr(a) for a in entries]

    # ---- SIGN / SUBMIT ----

    def sign(self, envelope: TransactionEnvelope, params: TxParams) -> str:
        return params.signer(envelope.to_xdr())

    def send(
        self,
        signed_xdr: str,
        *,
        operation_name: Optional[str] = None,
        contract: Optional[str] = None,
    ) -> str:
        response = self.rpc.send_transaction(signed_xdr) or {}
        status = response.get("status")
        tx_hash = response.get("hash")

        if status in _SEND_ACCEPTED:
            self._transition(TxState.SUBMITTED, operation_name, f"{tx_hash} ({status})")
            return tx_hash

        if status == _SEND_RETRY_LATER:
            raise NetworkRejection(
                "Network asked to try again later",
                result_code=_SEND_RETRY_LATER,
                operation=operation_name,
                contract=contract,
                raw=response,
            )

        if status == _SEND_ERROR:
            code = result_code(response.get("errorResultXdr"))
            raise NetworkRejection(
                f"Transaction rejected: {code or 'unknown result code'}",
                result_code=code,
                operation=operation_name,
                contract=contract,
                raw=response,
            )

        raise RpcError(
            f"Unexpected sendTransaction status: {status}",
            operation=operation_name,
            contract=contract,
            raw=response,
        )

    # ---- POLL ----

    def poll(
        self,
        tx_hash: str,
        *,
        operation_name: Optional[str] = None,
        contract: Optional[str] = None,
        not_eligible_codes: Iterable[int] = (),
    ) -> tuple[dict[str, Any], int]:
        """Wait for a terminal status. Returns the SUCCESS response and poll count."""
        policy = self.poll_policy
        started = self._clock()
        status = PENDING
        response: dict[str, Any] = {}
        polls = 0

        while status in (NOT_FOUND, PENDING):
            if policy.max_attempts is not None and polls >= policy.max_attempts:
                raise PollTimeout(
                    f"Transaction {tx_hash} still {status} after {polls} polls",
                    tx_hash=tx_hash,
                    operation=operation_name,
                    contract=contract,
                    raw=response,
                )
            if policy.timeout is not None and self._clock() - started >= policy.timeout:
                raise PollTimeout(
                    f"Transaction {tx_hash} still {status} after {policy.timeout}s",
                    tx_hash=tx_hash,
                    operation=operation_name,
                    contract=contract,
                    raw=response,
                )
            self._sleep(policy.interval)
            response = self.rpc.get_transaction(tx_hash) or {}
            polls += 1
            status = response.get("status")
            logger.debug("%s: poll %d for %s -> %s", operation_name or "tx", polls, tx_hash, status)
            if status in (NOT_FOUND, PENDING):
                self._transition(TxState.PENDING, operation_name, tx_hash)

        if status == SUCCESS:
            self._transition(TxState.SUCCESS, operation_name, f"{tx_hash} after {polls} polls")
            return response, polls

        if status == FAILED:
            self._transition(TxState.FAILED, operation_name, tx_hash)
            code = result_code(response.get("resultXdr"))
            contract_error = contract_error_from_events(response.get("diagnosticEventsXdr"))
            if contract_error is not None and contract_error in tuple(not_eligible_codes):
                raise NotYetEligible(
                    f"Not yet eligible (contract error #{contract_error})",
                    contract_error=contract_error,
                    operation=operation_name,
                    contract=contract,
                    raw=response,
                )
            raise ExecutionFailure(
                f"Transaction {tx_hash} failed: {code or 'unknown result code'}",
                tx_hash=tx_hash,
                result_code=code,
                contract_error=contract_error,
                operation=operation_name,
                contract=contract,
                raw=response,
            )

        raise RpcError(
            f"Unexpected getTransaction status: {status}",
            operation=operation_name,
            contract=contract,
            raw=response,
        )

    # ---- full pipeline ----

    def submit(
        self,
        operations: Sequence[OperationInput],
        params: TxParams,
        *,
        budget: Optional[ResourceBudget] = None,
        parser: Optional[ResultParser] = None,
        operation_name: Optional[str] = None,
        contract: Optional[str] = None,
        not_eligible_codes: Iterable[int] = (),
    ) -> TxOutcome:
        """
        Build, sign, submit and poll until SUCCESS or FAILED.

        Args:
            operations: Base64 operation XDRs or stellar_sdk operation objects
            params: Session transaction parameters
            budget: Explicit resource budget (administrative operations)
            parser: Decodes the invocation's return value on SUCCESS
            operation_name: Label used in logs and errors
            contract: Target contract, used in logs and errors
            not_eligible_codes: Contract error codes that mean "time lock not elapsed"

        Returns:
            TxOutcome of the confirmed transaction

        Raises:
            EncodingError, PreconditionError: build problems, sequence untouched
            NetworkRejection: rejected before execution, sequence handed back
            ExecutionFailure: simulation or on-chain execution failed
            NotYetEligible: failure matched one of ``not_eligible_codes``
            PollTimeout: no terminal status within the poll policy
        """
        codes = tuple(not_eligible_codes)
        with self._lock:
            sequence = params.account.sequence
            envelope = self.build(
                operations,
                params,
                budget=budget,
                operation_name=operation_name,
                contract=contract,
                not_eligible_codes=codes,
            )
            # Neither a signing failure nor a rejection consumes the sequence number
            try:
                signed_xdr = self.sign(envelope, params)
            except Exception:
                params.account.sequence = sequence
                raise
            self._transition(TxState.SIGNED, operation_name, envelope.hash_hex())
            try:
                tx_hash = self.send(signed_xdr, operation_name=operation_name, contract=contract)
            except NetworkRejection:
                params.account.sequence = sequence
                raise
            response, polls = self.poll(
                tx_hash,
                operation_name=operation_name,
                contract=contract,
                not_eligible_codes=codes,
            )

        meta_xdr = response.get("resultMetaXdr")
        result = None
        if parser is not None:
            return_value = extract_return_value(meta_xdr)
            try:
                result = parser(return_value)
            except Exception as exc:
                raise EncodingError(
                    f"Result parser failed: {exc}",
                    operation=operation_name,
                    contract=contract,
                    raw=meta_xdr,
                ) from exc

        return TxOutcome(
            tx_hash=tx_hash,
            status=TxState.SUCCESS,
            polls=polls,
            ledger=response.get("ledger"),
            result=result,
            result_meta_xdr=meta_xdr,
        )
