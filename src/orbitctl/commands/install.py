"""
Install - upload wasm artifacts and record their hashes.

Keys already present in the address book are skipped unless --force is
given, so the command is safe to re-run.
"""

from __future__ import annotations

import click

from ..errors import OrbitError
from ..ledger.contracts import bump_contract_code, ensure_installed, install_contract
from ._common import fail, header, network_option, open_session


@click.command()
@click.argument("wasm_keys", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Re-upload even if the hash is already recorded")
@click.option("--bump/--no-bump", default=True, help="Extend the code TTL after installing")
@network_option
def install(wasm_keys: tuple[str, ...], force: bool, bump: bool, network: str) -> None:
    """Upload contract wasm for each WASM_KEY."""
    header("Install")

    try:
        session = open_session(network)
        click.echo(f"  Network: {session.network.name}")
        click.echo(f"  Account: {session.account_id}")
        click.echo("")

        for wasm_key in wasm_keys:
            click.secho(f"  {wasm_key}", fg="bright_white")
            if force:
                wasm_hash = install_contract(session, wasm_key)
            else:
                wasm_hash = ensure_installed(session, wasm_key)
            click.echo(click.style("    Hash: ", dim=True) + wasm_hash)
            if bump:
                outcome = bump_contract_code(session, wasm_key)
                click.echo(click.style("    Bumped: ", dim=True) + outcome.tx_hash)
    except OrbitError as exc:
        fail(exc)

    click.echo("")
    click.secho("SUCCESS: Installed.", fg="green")
