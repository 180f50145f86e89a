"""
Keygen - create the operator key.

Flow:
1. Reuse ADMIN_SECRET if one is configured, otherwise generate a keypair
2. Save it to ~/.orbitctl/.env (0600)
3. Optionally fund the account via friendbot (--fund)
"""

from __future__ import annotations

from pathlib import Path

import click

from ..config import env_path
from ..keys.stellar import generate_keypair, get_account_id, save_secret
from ._common import load_context, network_option, request_funding


def _ensure_identity(force: bool) -> tuple[str, Path, bool]:
    """Returns (account_id, env file, created)."""
    if not force:
        try:
            return get_account_id(), env_path(), False
        except ValueError:
            pass
    secret, account_id = generate_keypair()
    path = save_secret(secret)
    return account_id, path, True


@click.command()
@click.option("--force", is_flag=True, help="Replace an existing ADMIN_SECRET")
@click.option("--fund", "fund_account", is_flag=True, help="Fund the new account via friendbot")
@network_option
def keygen(force: bool, fund_account: bool, network: str) -> None:
    """Create (or show) the operator key."""
    click.echo()
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("Keygen", fg="bright_white", bold=True)
        + click.style(" ─── operator identity", fg="cyan")
    )
    click.echo()

    account_id, path, created = _ensure_identity(force)
    click.echo(click.style("        Account: ", dim=True) + click.style(account_id, fg="bright_white"))
    click.echo(click.style("        Config:  ", dim=True) + click.style(str(path), fg="bright_white"))
    click.echo()
    if created:
        click.secho(f"        IMPORTANT: Back up {path}. Loss is irreversible.", fg="yellow", bold=True)
    else:
        click.secho("        Existing key kept (use --force to replace).", dim=True)
    click.echo()

    if not fund_account:
        return

    funded = request_funding(load_context(network), account_id)
    click.secho("        Funded." if funded else "        Already funded.", fg="green")
    click.echo()
