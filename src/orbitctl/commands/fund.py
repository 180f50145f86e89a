"""Fund - request test-network lumens from the friendbot."""

from __future__ import annotations

import sys
from typing import Optional

import click

from ..errors import PreconditionError
from ..keys.stellar import get_account_id
from ._common import header, load_context, network_option, request_funding


@click.command()
@click.argument("account_id", required=False)
@network_option
def fund(account_id: Optional[str], network: str) -> None:
    """Fund ACCOUNT_ID (default: the operator account) via friendbot."""
    header("Fund")

    context = load_context(network)
    try:
        account_id = account_id or get_account_id()
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)

    click.echo(f"  Network: {context.name}")
    click.echo(f"  Account: {account_id}")
    click.echo("")

    if request_funding(context, account_id):
        click.secho("SUCCESS: Account funded.", fg="green")
    else:
        click.secho("Account already funded.", fg="yellow")
