"""
Two-phase (queue, then commit) administrative changes.

Some admin changes are time-locked: a queue call records the change and a
commit call applies it once the lock has elapsed.  Committing too early is an
expected outcome, not an error, so it is reported as a status:

    QUEUED     the change is queued; commit is not yet allowed
    ELIGIBLE   commit simulated cleanly; it can be submitted
    COMMITTED  commit submitted and confirmed

Hard failures (wrong arguments, missing permissions, ...) still raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Union

from ..errors import NotYetEligible
from .contracts import invoke_contract
from .interfaces import interface_for

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

Args = Union[Sequence[Any], Mapping[str, Any]]


class TwoPhaseStatus(str, Enum):
    QUEUED = "QUEUED"
    ELIGIBLE = "ELIGIBLE"
    COMMITTED = "COMMITTED"


@dataclass(frozen=True)
class TwoPhaseResult:
    status: TwoPhaseStatus
    queue_tx_hash: Optional[str] = None
    commit_tx_hash: Optional[str] = None
    detail: Optional[str] = None
    contract_error: Optional[int] = None


def _codes(contract_key: str, not_eligible_codes: Optional[Iterable[int]]) -> tuple[int, ...]:
    if not_eligible_codes is not None:
        return tuple(not_eligible_codes)
    interface = interface_for(contract_key)
    return interface.not_eligible_codes if interface else ()


def queue_change(
    session: "Session",
    contract_key: str,
    queue_fn: str,
    args: Args = (),
) -> TwoPhaseResult:
    logger.info("Queuing %s on %s", queue_fn, contract_key)
    outcome = invoke_contract(session, contract_key, queue_fn, args)
    return TwoPhaseResult(status=TwoPhaseStatus.QUEUED, queue_tx_hash=outcome.tx_hash)


def commit_change(
    session: "Session",
    contract_key: str,
    commit_fn: str,
    args: Args = (),
    not_eligible_codes: Optional[Iterable[int]] = None,
    *,
    dry_run: bool = False,
) -> TwoPhaseResult:
    """
    Commit a queued change if its time lock has elapsed.

    The commit is simulated first.  A not-yet-eligible contract error yields
    QUEUED without submitting anything.  ``dry_run`` stops at ELIGIBLE.

    Raises:
        ExecutionFailure: the commit fails for any other reason
    """
    codes = _codes(contract_key, not_eligible_codes)
    op = session.builder.invoke(contract_key, commit_fn, args)

    try:
        session.pipeline.simulate(
            [op],
            session.tx_params,
            operation_name=commit_fn,
            contract=contract_key,
            not_eligible_codes=codes,
        )
    except NotYetEligible as exc:
        logger.info("%s on %s not yet eligible (error #%s)", commit_fn, contract_key, exc.contract_error)
        return TwoPhaseResult(
            status=TwoPhaseStatus.QUEUED,
            detail=str(exc),
            contract_error=exc.contract_error,
        )

    if dry_run:
        return TwoPhaseResult(status=TwoPhaseStatus.ELIGIBLE)

    try:
        outcome = invoke_contract(
            session, contract_key, commit_fn, args, not_eligible_codes=codes
        )
    except NotYetEligible as exc:
        # Lock boundary fell between simulation and execution
        return TwoPhaseResult(
            status=TwoPhaseStatus.QUEUED,
            detail=str(exc),
            contract_error=exc.contract_error,
        )

    logger.info("Committed %s on %s", commit_fn, contract_key)
    return TwoPhaseResult(status=TwoPhaseStatus.COMMITTED, commit_tx_hash=outcome.tx_hash)


def queue_then_commit(
    session: "Session",
    contract_key: str,
    queue_fn: str,
    queue_args: Args,
    commit_fn: str,
    commit_args: Args,
    not_eligible_codes: Optional[Iterable[int]] = None,
) -> TwoPhaseResult:
    """Queue a change and try to commit it straight away.

    A zero-length time lock commits immediately; otherwise the result is
    QUEUED and the commit can be retried later with ``commit_change``.
    """
    queued = queue_change(session, contract_key, queue_fn, queue_args)
    committed = commit_change(session, contract_key, commit_fn, commit_args, not_eligible_codes)
    return TwoPhaseResult(
        status=committed.status,
        queue_tx_hash=queued.queue_tx_hash,
        commit_tx_hash=committed.commit_tx_hash,
        detail=committed.detail,
        contract_error=committed.contract_error,
    )
