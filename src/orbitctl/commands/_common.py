"""Shared option declarations and helpers for the CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn, Optional, Union

import click

from ..config import NetworkContext, load_network
from ..errors import OrbitError, PreconditionError
from ..keys.stellar import get_keypair
from ..ledger.rpc import SorobanRpc
from ..session import Session

network_option = click.option(
    "--network",
    "-n",
    envvar="ORBIT_NETWORK",
    default=None,
    help="Network name (testnet, futurenet, mainnet, standalone)",
)


def header(title: str) -> None:
    click.echo(f"=== orbitctl {title} ===")
    click.echo("")


def open_session(network_name: Optional[str]) -> Session:
    """Open a session or exit with a precondition error."""
    try:
        network = load_network(network_name)
        keypair = get_keypair()
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)
    return Session.open(network, keypair=keypair)


def load_context(network_name: Optional[str]) -> NetworkContext:
    try:
        return load_network(network_name)
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)


def request_funding(context: NetworkContext, account_id: str) -> bool:
    """Friendbot airdrop without a session; the account may not exist yet."""
    if not context.friendbot_url:
        click.secho(f"ERROR: Network '{context.name}' has no friendbot.", fg="red")
        sys.exit(PreconditionError.exit_code)
    try:
        return SorobanRpc(context.rpc_url).request_airdrop(account_id, context.friendbot_url)
    except OrbitError as exc:
        fail(exc)


def fail(exc: OrbitError) -> NoReturn:
    """Report an orbitctl error and exit with its exit code."""
    click.secho(f"FAILED: {exc}", fg="red")
    tx_hash = getattr(exc, "tx_hash", None)
    if tx_hash:
        click.echo(f"  TX: {tx_hash}")
    result_code = getattr(exc, "result_code", None)
    if result_code:
        click.echo(f"  Result: {result_code}")
    contract_error = getattr(exc, "contract_error", None)
    if contract_error is not None:
        click.echo(f"  Contract error: #{contract_error}")
    sys.exit(exc.exit_code)


def parse_json_args(text: str, option: str = "--args") -> Union[list[Any], dict[str, Any]]:
    """Decode a JSON array (positional) or object (named) of call arguments."""
    try:
        args = json.loads(text)
    except json.JSONDecodeError as exc:
        click.secho(f"ERROR: Invalid {option}: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)
    if not isinstance(args, (list, dict)):
        click.secho(f"ERROR: {option} must be a JSON array or object", fg="red")
        sys.exit(PreconditionError.exit_code)
    return args
