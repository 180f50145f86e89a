"""
Configuration for orbitctl.

Settings come from the process environment, optionally seeded from
``~/.orbitctl/.env`` (or the file named by ``ORBITCTL_ENV``).  Values already
present in the environment win over the .env file.

Keys:
  ADMIN_SECRET          S... secret seed of the operator account
  ORBIT_NETWORK         testnet | futurenet | mainnet | standalone
  ORBIT_RPC_URL         override the network's Soroban RPC endpoint
  ORBIT_FRIENDBOT_URL   override the network's friendbot endpoint
  ORBIT_PASSPHRASE      override the network passphrase
  ORBIT_WASM_DIR        directory holding the compiled contract wasm files
  ORBIT_BOOK_DIR        directory holding <network>.contracts.json
  ORBIT_BASE_FEE        base fee per operation in stroops
  ORBIT_POLL_INTERVAL   seconds between getTransaction polls
  ORBIT_POLL_TIMEOUT    seconds before giving up on a submitted transaction
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ORBITCTL_DIR = Path.home() / ".orbitctl"
ORBITCTL_ENV = ORBITCTL_DIR / ".env"

DEFAULT_NETWORK = "testnet"
DEFAULT_BASE_FEE = 10_000
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_POLL_TIMEOUT = 120.0


@dataclass(frozen=True)
class NetworkContext:
    """Immutable description of the network a session talks to."""

    name: str
    passphrase: str
    rpc_url: str
    friendbot_url: Optional[str] = None


_NETWORKS: dict[str, NetworkContext] = {
    "testnet": NetworkContext(
        name="testnet",
        passphrase="Test SDF Network ; September 2015",
        rpc_url="https://soroban-testnet.stellar.org",
        friendbot_url="https://friendbot.stellar.org",
    ),
    "futurenet": NetworkContext(
        name="futurenet",
        passphrase="Test SDF Future Network ; October 2022",
        rpc_url="https://rpc-futurenet.stellar.org",
        friendbot_url="https://friendbot-futurenet.stellar.org",
    ),
    "mainnet": NetworkContext(
        name="mainnet",
        passphrase="Public Global Stellar Network ; September 2015",
        rpc_url="",
    ),
    "standalone": NetworkContext(
        name="standalone",
        passphrase="Standalone Network ; February 2017",
        rpc_url="http://localhost:8000/soroban/rpc",
        friendbot_url="http://localhost:8000/friendbot",
    ),
}

# Logical wasm key -> file name under ORBIT_WASM_DIR
WASM_FILES: dict[str, str] = {
    "token": "token.wasm",
    "comet": "comet.wasm",
    "cometFactory": "comet_factory.wasm",
    "oraclemock": "oracle.wasm",
    "emitter": "emitter.wasm",
    "poolFactory": "pool_factory.wasm",
    "backstop": "backstop.wasm",
    "lendingPool": "pool.wasm",
    "tokenLockup": "token_lockup.wasm",
    "blendLockup": "blend_lockup.wasm",
    "treasury": "treasury.wasm",
    "treasuryFactory": "treasury_factory.wasm",
    "bridgeOracle": "bridge_oracle.wasm",
}


def env_path() -> Path:
    override = os.environ.get("ORBITCTL_ENV")
    return Path(override).expanduser() if override else ORBITCTL_ENV


def load_env(path: Optional[Path] = None) -> Optional[Path]:
    """Load the .env file into the process environment without overriding it.

    Returns:
        The path that was loaded, or None if no file exists.
    """
    path = path or env_path()
    if not path.exists():
        return None
    load_dotenv(path, override=False)
    return path


def known_networks() -> list[str]:
    return sorted(_NETWORKS)


def load_network(name: Optional[str] = None) -> NetworkContext:
    """Resolve a network by name, applying environment overrides.

    Raises:
        ValueError: Unknown network, or no RPC endpoint configured.
    """
    name = name or os.environ.get("ORBIT_NETWORK", DEFAULT_NETWORK)
    base = _NETWORKS.get(name)
    if base is None:
        raise ValueError(
            f"Unknown network '{name}'. Expected one of: {', '.join(known_networks())}"
        )

    rpc_url = os.environ.get("ORBIT_RPC_URL") or base.rpc_url
    if not rpc_url:
        raise ValueError(f"No RPC endpoint for '{name}'. Set ORBIT_RPC_URL.")

    return NetworkContext(
        name=base.name,
        passphrase=os.environ.get("ORBIT_PASSPHRASE") or base.passphrase,
        rpc_url=rpc_url,
        friendbot_url=os.environ.get("ORBIT_FRIENDBOT_URL") or base.friendbot_url,
    )


def wasm_dir() -> Path:
    return Path(os.environ.get("ORBIT_WASM_DIR", "wasm")).expanduser()


def book_dir() -> Path:
    return Path(os.environ.get("ORBIT_BOOK_DIR", ".")).expanduser()


def base_fee() -> int:
    return int(os.environ.get("ORBIT_BASE_FEE", str(DEFAULT_BASE_FEE)))


def poll_interval() -> float:
    return float(os.environ.get("ORBIT_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL)))


def poll_timeout() -> float:
    return float(os.environ.get("ORBIT_POLL_TIMEOUT", str(DEFAULT_POLL_TIMEOUT)))
