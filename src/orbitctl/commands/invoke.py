"""
Invoke - call a function on a registered contract.

Arguments are given as JSON: an array for positional arguments or an object
keyed by parameter name.  They are converted according to the contract's
declared interface before anything is sent.
"""

from __future__ import annotations

import click
from stellar_sdk import scval

from ..errors import OrbitError
from ..ledger.contracts import invoke_contract
from ._common import fail, header, network_option, open_session, parse_json_args


def _native(value):
    if value is None:
        return None
    return scval.to_native(value)


@click.command()
@click.option("--contract", "contract_key", required=True, help="Contract key in the address book")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array or object")
@click.option(
    "--not-eligible-code",
    "not_eligible_codes",
    multiple=True,
    type=int,
    help="Contract error code meaning 'time lock not elapsed' (repeatable)",
)
@network_option
def invoke(
    contract_key: str,
    func_name: str,
    args_json: str,
    not_eligible_codes: tuple[int, ...],
    network: str,
) -> None:
    """Execute a contract call from the operator account."""
    header("Invoke")
    args = parse_json_args(args_json)

    try:
        session = open_session(network)
        click.echo(f"  Sender: {session.account_id}")
        click.echo(f"  Target: {contract_key} ({session.address_book.get_contract_id(contract_key)})")
        click.echo(f"  Function: {func_name}")
        click.echo(f"  Args: {args}")
        click.echo("")

        outcome = invoke_contract(
            session,
            contract_key,
            func_name,
            args,
            parser=_native,
            not_eligible_codes=not_eligible_codes or None,
        )
    except OrbitError as exc:
        fail(exc)

    click.secho("SUCCESS: Transaction confirmed!", fg="green")
    click.echo(f"  TX: {outcome.tx_hash}")
    if outcome.result is not None:
        click.echo(f"  Result: {outcome.result}")
