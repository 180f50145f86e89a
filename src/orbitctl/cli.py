"""
orbitctl CLI

Command-line interface for installing, deploying and administering the
Orbit Soroban contracts.

Identity = one ed25519 operator key (ADMIN_SECRET).  Every command is
non-interactive; failures exit with the error's exit code.

Commands:
  keygen        - Create the operator key
  fund          - Fund an account via friendbot
  install       - Upload wasm and record its hash
  deploy        - Deploy a contract and record its address
  deploy-asset  - Deploy a Stellar Asset Contract
  bump          - Extend instance / code TTLs
  invoke        - Call a contract function
  queue-commit  - Two-phase (time-locked) admin change
  init-orbit    - Install, deploy and initialize the Orbit contracts
  contract-id   - Derive a contract address offline
  book          - Show the address book
  whoami        - Show the operator account
  info          - Show configuration
"""

from __future__ import annotations

import logging
import sys

import click

from . import __version__, config
from .keys.stellar import get_account_id


# ============ Banner ============


def _print_banner() -> None:
    """Print the orbitctl banner."""
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("        O R B I T C T L", fg="bright_white", bold=True)
        + click.style(f"        v{__version__}", dim=True)
    )
    click.secho("        ─── Soroban contract operations ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="orbitctl")
@click.option("--verbose", "-v", count=True, help="Log pipeline progress (-vv for polls)")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """orbitctl: Soroban contract operations."""
    config.load_env()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.bump import bump
from .commands.deploy import deploy, deploy_asset
from .commands.fund import fund
from .commands.inspect import book, contract_id
from .commands.install import install
from .commands.invoke import invoke
from .commands.keygen import keygen
from .commands.queue_commit import queue_commit
from .commands.setup import init_orbit

cli.add_command(keygen)
cli.add_command(fund)
cli.add_command(install)
cli.add_command(deploy)
cli.add_command(deploy_asset)
cli.add_command(bump)
cli.add_command(invoke)
cli.add_command(queue_commit)
cli.add_command(init_orbit)
cli.add_command(contract_id)
cli.add_command(book)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show the operator account."""
    try:
        click.echo(f"Account: {get_account_id()}")
    except ValueError:
        click.echo("No operator key found.")
        click.echo("Run 'orbitctl keygen' to create one.")
        sys.exit(1)


# ============ Info ============


@cli.command()
def info() -> None:
    """Show configuration."""
    _print_banner()

    click.secho("  Status ─────────────────────────────────", fg="cyan")
    click.echo()

    try:
        account_id = get_account_id()
        click.echo(
            click.style("  Account:     ", dim=True)
            + click.style(account_id, fg="bright_white")
        )
    except ValueError:
        click.echo(
            click.style("  Account:     ", dim=True)
            + click.style("not initialized", fg="yellow")
            + click.style("  (run: orbitctl keygen)", dim=True)
        )

    try:
        network = config.load_network()
        click.echo(click.style("  Network:     ", dim=True) + click.style(network.name, fg="bright_white"))
        click.echo(click.style("  RPC:         ", dim=True) + network.rpc_url)
        click.echo(click.style("  Friendbot:   ", dim=True) + (network.friendbot_url or "none"))
    except ValueError as exc:
        click.echo(click.style("  Network:     ", dim=True) + click.style(str(exc), fg="yellow"))

    click.echo(click.style("  Wasm dir:    ", dim=True) + str(config.wasm_dir()))
    click.echo(click.style("  Book dir:    ", dim=True) + str(config.book_dir()))
    click.echo(click.style("  Config:      ", dim=True) + str(config.env_path()))
    click.echo()

    click.secho("  Commands ───────────────────────────────", fg="cyan")
    click.echo()

    commands = [
        ("keygen      ", "Create the operator key"),
        ("fund        ", "Fund an account via friendbot"),
        ("install     ", "Upload wasm and record its hash"),
        ("deploy      ", "Deploy a contract"),
        ("deploy-asset", "Deploy a Stellar Asset Contract"),
        ("bump        ", "Extend instance / code TTLs"),
        ("invoke      ", "Call a contract function"),
        ("queue-commit", "Time-locked admin change"),
        ("init-orbit  ", "Install, deploy, initialize Orbit"),
        ("contract-id ", "Derive a contract address"),
        ("book show   ", "Show the address book"),
    ]
    for cmd, desc in commands:
        click.echo(
            click.style("  ", dim=True)
            + click.style(cmd, fg="bright_white", bold=True)
            + click.style("  ◇  ", fg="cyan")
            + click.style(desc, dim=True)
        )

    click.echo()


# ============ Entry Points ============


def main() -> None:
    """orbitctl CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
