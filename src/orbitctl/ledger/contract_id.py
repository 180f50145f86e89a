"""
Contract ID derivation.

A contract deployed from an account gets an address that is fully
determined by (deployer account, 32-byte salt, network passphrase):

    network_id  = sha256(passphrase)
    preimage    = HashIDPreimage(ENVELOPE_TYPE_CONTRACT_ID,
                                 network_id,
                                 ContractIDPreimage(FROM_ADDRESS, account, salt))
    contract_id = StrKey.encode_contract(sha256(xdr(preimage)))

A Stellar Asset Contract is instead bound to its classic asset
(ContractIDPreimage FROM_ASSET), so its address depends only on the asset
and the network.

The XDR must match the network's canonical encoding exactly, otherwise the
derived address will never match what the create-contract operation produces.
"""

from __future__ import annotations

import secrets

from stellar_sdk import Address, Asset, StrKey
from stellar_sdk import xdr as stellar_xdr

from ..errors import PreconditionError
from ..utils import sha256

SALT_LENGTH = 32


def new_salt() -> bytes:
    """Generate a fresh random deployment salt."""
    return secrets.token_bytes(SALT_LENGTH)


def network_id(network_passphrase: str) -> bytes:
    return sha256(network_passphrase.encode("utf-8"))


def _check_inputs(account_id: str, salt: bytes) -> None:
    if not isinstance(account_id, str) or not StrKey.is_valid_ed25519_public_key(account_id):
        raise PreconditionError(f"Malformed account id: {account_id!r}")
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_LENGTH:
        raise PreconditionError(f"Salt must be exactly {SALT_LENGTH} bytes")


def contract_id_preimage(account_id: str, salt: bytes) -> stellar_xdr.ContractIDPreimage:
    """Inner preimage binding the deployer address and salt.

    The same object is embedded in the create-contract host function, so the
    derived id and the deployed id come from one source.
    """
    _check_inputs(account_id, salt)
    return stellar_xdr.ContractIDPreimage(
        type=stellar_xdr.ContractIDPreimageType.CONTRACT_ID_PREIMAGE_FROM_ADDRESS,
        from_address=stellar_xdr.ContractIDPreimageFromAddress(
            address=Address(account_id).to_xdr_sc_address(),
            salt=stellar_xdr.Uint256(bytes(salt)),
        ),
    )


def asset_contract_preimage(asset: Asset) -> stellar_xdr.ContractIDPreimage:
    """Inner preimage of a Stellar Asset Contract, bound to the classic asset."""
    return stellar_xdr.ContractIDPreimage(
        type=stellar_xdr.ContractIDPreimageType.CONTRACT_ID_PREIMAGE_FROM_ASSET,
        from_asset=asset.to_xdr_object(),
    )


def _outer_preimage_bytes(
    inner: stellar_xdr.ContractIDPreimage, network_passphrase: str
) -> bytes:
    preimage = stellar_xdr.HashIDPreimage(
        type=stellar_xdr.EnvelopeType.ENVELOPE_TYPE_CONTRACT_ID,
        contract_id=stellar_xdr.HashIDPreimageContractID(
            network_id=stellar_xdr.Hash(network_id(network_passphrase)),
            contract_id_preimage=inner,
        ),
    )
    return preimage.to_xdr_bytes()


def hash_id_preimage_bytes(account_id: str, salt: bytes, network_passphrase: str) -> bytes:
    """Canonical XDR of the envelope-typed outer preimage."""
    return _outer_preimage_bytes(contract_id_preimage(account_id, salt), network_passphrase)


def derive_contract_id(account_id: str, salt: bytes, network_passphrase: str) -> str:
    """Compute the C... address a deploy from ``account_id`` with ``salt`` creates."""
    digest = sha256(hash_id_preimage_bytes(account_id, salt, network_passphrase))
    return StrKey.encode_contract(digest)


def derive_asset_contract_id(asset: Asset, network_passphrase: str) -> str:
    """C... address of the Stellar Asset Contract wrapping ``asset``.

    Unlike wasm deployments there is no salt: one asset has exactly one
    contract per network, whoever deploys it.
    """
    digest = sha256(_outer_preimage_bytes(asset_contract_preimage(asset), network_passphrase))
    return StrKey.encode_contract(digest)
