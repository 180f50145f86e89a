"""
Inspect - offline commands that never touch the network.

- contract-id: derive the address a deploy would produce
- book show:   print the address book for a network
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from .. import config
from ..errors import OrbitError, PreconditionError
from ..keys.stellar import get_account_id
from ..ledger.contract_id import derive_contract_id
from ..registry.address_book import AddressBook
from ..utils import hex_to_bytes
from ._common import fail, network_option


@click.command("contract-id")
@click.option("--salt", "salt_hex", required=True, help="32-byte hex salt")
@click.option("--account", "account_id", default=None, help="Deployer G... address (default: operator)")
@network_option
def contract_id(salt_hex: str, account_id: Optional[str], network: str) -> None:
    """Derive the contract address for a deployer and salt."""
    try:
        salt = hex_to_bytes(salt_hex, 32)
        context = config.load_network(network)
        account_id = account_id or get_account_id()
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(PreconditionError.exit_code)

    try:
        click.echo(derive_contract_id(account_id, salt, context.passphrase))
    except OrbitError as exc:
        fail(exc)


@click.group()
def book() -> None:
    """Inspect the address book."""
    pass


@book.command("show")
@click.option(
    "--book-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="ORBIT_BOOK_DIR",
    default=None,
    help="Directory holding <network>.contracts.json",
)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@network_option
def book_show(book_dir: Optional[Path], as_json: bool, network: Optional[str]) -> None:
    """Show recorded contract ids and wasm hashes."""
    network = network or config.DEFAULT_NETWORK
    try:
        address_book = AddressBook.load(network, book_dir or config.book_dir())
    except OrbitError as exc:
        fail(exc)

    if as_json:
        click.echo(json.dumps(address_book.to_dict(), indent=2, sort_keys=True))
        return

    click.secho(f"  {address_book.path}", fg="cyan")
    click.echo()
    click.secho("  Contracts", fg="bright_white", bold=True)
    if not address_book.ids:
        click.echo(click.style("    (none)", dim=True))
    for key, value in sorted(address_book.ids.items()):
        click.echo(f"    {key:<18} {value}")
    click.echo()
    click.secho("  Wasm hashes", fg="bright_white", bold=True)
    if not address_book.hashes:
        click.echo(click.style("    (none)", dim=True))
    for key, value in sorted(address_book.hashes.items()):
        click.echo(f"    {key:<18} {value}")
