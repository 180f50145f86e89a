"""
Deploy - create a contract instance from an installed wasm, or the Stellar
Asset Contract of a classic asset (deploy-asset).

The contract address is recorded in the address book only once the create
transaction is confirmed.
"""

from __future__ import annotations

import sys
from typing import Optional

import click
from stellar_sdk import Asset

from ..errors import OrbitError, PreconditionError
from ..ledger.contracts import (
    bump_contract_instance,
    deploy_contract,
    deploy_stellar_asset,
    ensure_deployed,
)
from ..utils import hex_to_bytes
from ._common import fail, header, network_option, open_session


@click.command()
@click.argument("contract_key")
@click.option("--wasm-key", default=None, help="Installed wasm to deploy (default: CONTRACT_KEY)")
@click.option("--salt", "salt_hex", default=None, help="32-byte hex salt (default: random)")
@click.option("--force", is_flag=True, help="Deploy even if the address book has this key")
@click.option("--bump/--no-bump", default=True, help="Extend the instance TTL after deploying")
@network_option
def deploy(
    contract_key: str,
    wasm_key: Optional[str],
    salt_hex: Optional[str],
    force: bool,
    bump: bool,
    network: str,
) -> None:
    """Deploy CONTRACT_KEY and record its address."""
    header("Deploy")

    salt = None
    if salt_hex:
        try:
            salt = hex_to_bytes(salt_hex, 32)
        except ValueError as exc:
            click.secho(f"ERROR: Invalid --salt: {exc}", fg="red")
            sys.exit(PreconditionError.exit_code)

    try:
        session = open_session(network)
        wasm_key = wasm_key or contract_key
        click.echo(f"  Network: {session.network.name}")
        click.echo(f"  Contract: {contract_key} (wasm: {wasm_key})")
        click.echo("")

        if force:
            contract_id = deploy_contract(session, contract_key, wasm_key, salt)
        else:
            contract_id = ensure_deployed(session, contract_key, wasm_key, salt)

        click.echo(click.style("  Address: ", dim=True) + contract_id)
        if bump:
            outcome = bump_contract_instance(session, contract_key)
            click.echo(click.style("  Bumped: ", dim=True) + outcome.tx_hash)
    except OrbitError as exc:
        fail(exc)

    click.echo("")
    click.secho("SUCCESS: Deployed.", fg="green")


def parse_asset(text: str) -> Asset:
    """``native`` or ``CODE:ISSUER``."""
    if text.lower() in ("native", "xlm"):
        return Asset.native()
    code, sep, issuer = text.partition(":")
    if not sep:
        raise ValueError("expected 'native' or CODE:ISSUER")
    return Asset(code, issuer)


@click.command("deploy-asset")
@click.argument("contract_key")
@click.option("--asset", "asset_text", required=True, help="'native' or CODE:ISSUER")
@click.option("--bump/--no-bump", default=True, help="Extend the instance TTL after deploying")
@network_option
def deploy_asset(contract_key: str, asset_text: str, bump: bool, network: str) -> None:
    """Deploy the Stellar Asset Contract of a classic asset as CONTRACT_KEY."""
    header("Deploy asset")

    try:
        asset = parse_asset(asset_text)
    except ValueError as exc:
        click.secho(f"ERROR: Invalid --asset: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)

    try:
        session = open_session(network)
        click.echo(f"  Network: {session.network.name}")
        click.echo(f"  Asset: {asset_text} -> {contract_key}")
        click.echo("")

        contract_id = deploy_stellar_asset(session, contract_key, asset)
        click.echo(click.style("  Address: ", dim=True) + contract_id)
        if bump:
            outcome = bump_contract_instance(session, contract_key)
            click.echo(click.style("  Bumped: ", dim=True) + outcome.tx_hash)
    except OrbitError as exc:
        fail(exc)

    click.echo("")
    click.secho("SUCCESS: Deployed.", fg="green")
