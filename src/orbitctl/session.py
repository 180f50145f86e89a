"""
Session - one operator account talking to one network.

Everything the high-level actions need is built once, explicitly, and passed
around.  There is no module-level state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stellar_sdk import Keypair

from . import config
from .config import NetworkContext
from .keys.stellar import get_keypair, keypair_signer
from .ledger.operations import OperationBuilder
from .ledger.rpc import RpcClient, SorobanRpc
from .ledger.tx import PollPolicy, TransactionPipeline, TxParams
from .registry.address_book import AddressBook
from .registry.artifacts import ArtifactStore

logger = logging.getLogger(__name__)


@dataclass
class Session:
    network: NetworkContext
    address_book: AddressBook
    artifacts: ArtifactStore
    rpc: RpcClient
    builder: OperationBuilder
    pipeline: TransactionPipeline
    tx_params: TxParams

    @property
    def account_id(self) -> str:
        return self.tx_params.account_id

    @classmethod
    def open(
        cls,
        network: Optional[NetworkContext] = None,
        *,
        keypair: Optional[Keypair] = None,
        rpc: Optional[RpcClient] = None,
        book_dir: Optional[Path] = None,
        wasm_dir: Optional[Path] = None,
        fee: Optional[int] = None,
        poll_policy: Optional[PollPolicy] = None,
    ) -> "Session":
        """
        Build a session from configuration, overriding any piece explicitly.

        The account sequence is fetched from the network, so the operator
        account must already exist (see ``airdrop_account``).
        """
        network = network or config.load_network()
        keypair = keypair or get_keypair()
        rpc = rpc or SorobanRpc(network.rpc_url)
        poll_policy = poll_policy or PollPolicy(
            interval=config.poll_interval(),
            timeout=config.poll_timeout(),
        )

        address_book = AddressBook.load(network.name, book_dir or config.book_dir())
        artifacts = ArtifactStore(wasm_dir or config.wasm_dir())
        builder = OperationBuilder(address_book, artifacts, network.passphrase)

        account = rpc.get_account(keypair.public_key)
        tx_params = TxParams(
            account=account,
            signer=keypair_signer(keypair, network.passphrase),
            network_passphrase=network.passphrase,
            fee=fee if fee is not None else config.base_fee(),
        )
        logger.info(
            "Session on %s for %s (sequence %s)", network.name, keypair.public_key, account.sequence
        )
        return cls(
            network=network,
            address_book=address_book,
            artifacts=artifacts,
            rpc=rpc,
            builder=builder,
            pipeline=TransactionPipeline(rpc, poll_policy),
            tx_params=tx_params,
        )
