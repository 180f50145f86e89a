"""
Stellar ed25519 key management for orbitctl.

The operator key signs every transaction the toolkit submits.  It is stored
in ~/.orbitctl/.env as ADMIN_SECRET (an ``S...`` secret seed).

Signing is exposed as a plain callable (``Signer``): unsigned envelope XDR
in, signed envelope XDR out.  The pipeline never sees the secret.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv
from stellar_sdk import Keypair, TransactionEnvelope

from ..config import env_path as default_env_path

SECRET_ENV_KEY = "ADMIN_SECRET"


def generate_keypair() -> tuple[str, str]:
    """
    Generate a new ed25519 keypair.

    Returns:
        Tuple of (secret_seed, account_id)
        - secret_seed: S... encoded secret (56 chars)
        - account_id: G... encoded public key (56 chars)
    """
    keypair = Keypair.random()
    return keypair.secret, keypair.public_key


def _read_env(path: Path) -> dict[str, str]:
    existing: dict[str, str] = {}
    if path.exists():
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                existing[k.strip()] = v.strip()
    return existing


def save_env_value(key: str, value: str, env_path: Optional[Path] = None) -> Path:
    """Save a single key=value to the .env file, preserving other entries."""
    env_path = env_path or default_env_path()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing = _read_env(env_path)
    existing[key] = value

    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    # Set secure permissions on Unix
    if os.name != "nt":
        env_path.chmod(0o600)

    os.environ[key] = value
    return env_path


def save_secret(secret: str, env_path: Optional[Path] = None) -> Path:
    """
    Save the operator secret seed to the .env file.

    Args:
        secret: S... secret seed
        env_path: Path to .env file (default: ~/.orbitctl/.env)

    Returns:
        Path to the saved .env file

    Raises:
        ValueError: If the secret is not a valid ed25519 seed
    """
    Keypair.from_secret(secret)
    return save_env_value(SECRET_ENV_KEY, secret, env_path)


def load_secret(env_path: Optional[Path] = None) -> str:
    """
    Load the operator secret seed from the .env file or environment.

    Raises:
        ValueError: If ADMIN_SECRET is not set anywhere
    """
    env_path = env_path or default_env_path()

    if env_path.exists():
        load_dotenv(env_path, override=False)

    secret = os.environ.get(SECRET_ENV_KEY)
    if not secret:
        raise ValueError(
            f"{SECRET_ENV_KEY} not found. Run 'orbitctl keygen' or set "
            f"{SECRET_ENV_KEY} in {env_path}"
        )
    return secret.strip()


def get_keypair(secret: Optional[str] = None) -> Keypair:
    """Keypair for ``secret``, or for the configured ADMIN_SECRET."""
    if secret is None:
        secret = load_secret()
    try:
        return Keypair.from_secret(secret)
    except Exception as exc:
        raise ValueError(f"{SECRET_ENV_KEY} is not a valid secret seed") from exc


def get_account_id(secret: Optional[str] = None) -> str:
    return get_keypair(secret).public_key


def sign_with_keypair(envelope_xdr: str, keypair: Keypair, network_passphrase: str) -> str:
    envelope = TransactionEnvelope.from_xdr(envelope_xdr, network_passphrase)
    envelope.sign(keypair)
    return envelope.to_xdr()


def keypair_signer(keypair: Keypair, network_passphrase: str) -> Callable[[str], str]:
    """Signer callable bound to one keypair and network."""

    def signer(envelope_xdr: str) -> str:
        return sign_with_keypair(envelope_xdr, keypair, network_passphrase)

    return signer
