"""
Queue-commit - two-phase (time-locked) admin changes.

Queues a change with one function and commits it with another, e.g.
``queue_set_reserve`` followed by ``set_reserve`` on a lending pool.  A
commit attempted before the lock elapses is reported as QUEUED and exits
with the not-yet-eligible code so scripts can retry later.
"""

from __future__ import annotations

import sys
from typing import Optional

import click

from ..errors import NotYetEligible, OrbitError
from ..ledger.timelock import TwoPhaseStatus, commit_change, queue_change
from ._common import fail, header, network_option, open_session, parse_json_args


@click.command("queue-commit")
@click.option("--contract", "contract_key", required=True, help="Contract key in the address book")
@click.option("--queue-fn", default=None, help="Function that queues the change")
@click.option("--queue-args", default="[]", help="Queue args as JSON array or object")
@click.option("--commit-fn", required=True, help="Function that commits the change")
@click.option("--commit-args", default="[]", help="Commit args as JSON array or object")
@click.option(
    "--not-eligible-code",
    "not_eligible_codes",
    multiple=True,
    type=int,
    help="Contract error code meaning 'time lock not elapsed' (repeatable)",
)
@click.option("--dry-run", is_flag=True, help="Only check whether the commit is eligible")
@network_option
def queue_commit(
    contract_key: str,
    queue_fn: Optional[str],
    queue_args: str,
    commit_fn: str,
    commit_args: str,
    not_eligible_codes: tuple[int, ...],
    dry_run: bool,
    network: str,
) -> None:
    """Queue a time-locked change (optional) and try to commit it."""
    header("Queue-commit")
    parsed_queue_args = parse_json_args(queue_args, "--queue-args")
    parsed_commit_args = parse_json_args(commit_args, "--commit-args")

    try:
        session = open_session(network)
        if queue_fn:
            queued = queue_change(session, contract_key, queue_fn, parsed_queue_args)
            click.echo(click.style("  Queued: ", dim=True) + f"{queue_fn} ({queued.queue_tx_hash})")

        result = commit_change(
            session,
            contract_key,
            commit_fn,
            parsed_commit_args,
            not_eligible_codes or None,
            dry_run=dry_run,
        )
    except OrbitError as exc:
        fail(exc)

    if result.status is TwoPhaseStatus.QUEUED:
        click.secho(f"QUEUED: {commit_fn} not yet eligible, retry later.", fg="yellow")
        if result.contract_error is not None:
            click.echo(f"  Contract error: #{result.contract_error}")
        sys.exit(NotYetEligible.exit_code)

    if result.status is TwoPhaseStatus.ELIGIBLE:
        click.secho(f"ELIGIBLE: {commit_fn} can be committed now.", fg="green")
        return

    click.secho(f"COMMITTED: {commit_fn} confirmed.", fg="green")
    click.echo(f"  TX: {result.commit_tx_hash}")
