"""Bump - extend the TTL of a contract instance or its code."""

from __future__ import annotations

import click

from ..errors import OrbitError
from ..ledger.contracts import bump_contract_code, bump_contract_instance
from ..ledger.footprint import DEFAULT_EXTEND_TO
from ._common import fail, header, network_option, open_session

extend_to_option = click.option(
    "--extend-to",
    default=DEFAULT_EXTEND_TO,
    type=int,
    show_default=True,
    help="Ledger to extend the entry's TTL to",
)


@click.group()
def bump() -> None:
    """Extend contract instance or code TTLs."""
    pass


@bump.command("instance")
@click.argument("contract_keys", nargs=-1, required=True)
@extend_to_option
@network_option
def bump_instance(contract_keys: tuple[str, ...], extend_to: int, network: str) -> None:
    """Bump the instance entry of each CONTRACT_KEY."""
    header("Bump instance")
    try:
        session = open_session(network)
        for contract_key in contract_keys:
            outcome = bump_contract_instance(session, contract_key, extend_to)
            click.echo(f"  {contract_key}: {outcome.tx_hash}")
    except OrbitError as exc:
        fail(exc)
    click.secho("SUCCESS: Bumped.", fg="green")


@bump.command("code")
@click.argument("wasm_keys", nargs=-1, required=True)
@extend_to_option
@network_option
def bump_code(wasm_keys: tuple[str, ...], extend_to: int, network: str) -> None:
    """Bump the code entry of each installed WASM_KEY."""
    header("Bump code")
    try:
        session = open_session(network)
        for wasm_key in wasm_keys:
            outcome = bump_contract_code(session, wasm_key, extend_to)
            click.echo(f"  {wasm_key}: {outcome.tx_hash}")
    except OrbitError as exc:
        fail(exc)
    click.secho("SUCCESS: Bumped.", fg="green")
