"""
Init-orbit - install, deploy and initialize the Orbit contracts.

Flow:
1. Optionally fund the operator via friendbot (--fund)
2. Install treasury, treasury factory and bridge oracle wasm (bump code)
3. Deploy the treasury factory (bump instance)
4. Initialize the treasury factory against the Blend pool factory (bump instance)

Steps already done are skipped, so an interrupted run can be resumed by
running the command again.
"""

from __future__ import annotations

import sys

import click

from ..errors import OrbitError, PreconditionError
from ..keys.stellar import get_account_id
from ..ledger.contracts import ORBIT_WASM_KEYS, initialize_orbit
from ._common import fail, load_context, network_option, open_session, request_funding


@click.command("init-orbit")
@click.option("--fund", "fund_account", is_flag=True, help="Fund the operator via friendbot first")
@network_option
def init_orbit(fund_account: bool, network: str) -> None:
    """Install, deploy and initialize the Orbit contracts."""
    click.echo()
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("Init Orbit", fg="bright_white", bold=True)
        + click.style(" ─── install, deploy, initialize", fg="cyan")
    )
    click.echo()

    if fund_account:
        try:
            account_id = get_account_id()
        except ValueError as exc:
            click.secho(f"ERROR: {exc}", fg="red")
            sys.exit(PreconditionError.exit_code)
        funded = request_funding(load_context(network), account_id)
        click.echo(click.style("        Funded:  ", dim=True) + ("yes" if funded else "already"))

    try:
        session = open_session(network)
        click.echo(click.style("        Network: ", dim=True) + session.network.name)
        click.echo(click.style("        Account: ", dim=True) + session.account_id)
        click.echo(click.style("        Wasm:    ", dim=True) + ", ".join(ORBIT_WASM_KEYS))
        click.echo()

        deployed = initialize_orbit(session)
    except OrbitError as exc:
        fail(exc)

    click.echo(
        click.style("  ◆ ", fg="green")
        + click.style("Orbit initialized", fg="green", bold=True)
    )
    click.echo()
    click.secho("  Deployed:", fg="cyan")
    for contract_key, contract_id in deployed.items():
        click.echo(f"    {contract_key}: {contract_id}")
    click.echo(f"    Address book: {session.address_book.path}")
    click.echo()
