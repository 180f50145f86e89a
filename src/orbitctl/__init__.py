__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "OrbitError",
    "PreconditionError",
    "EncodingError",
    "NetworkRejection",
    "ExecutionFailure",
    "NotYetEligible",
    "PollTimeout",
    "RpcError",
    # Configuration
    "NetworkContext",
    "load_network",
    # Contract ids and footprints
    "derive_contract_id",
    "derive_asset_contract_id",
    "new_salt",
    "LedgerFootprint",
    "ResourceBudget",
    # Operations
    "OperationBuilder",
    "encode_operation",
    "decode_operation",
    # Pipeline
    "PollPolicy",
    "TransactionPipeline",
    "TxOutcome",
    "TxParams",
    "TxState",
    "SorobanRpc",
    # Actions
    "install_contract",
    "deploy_contract",
    "deploy_stellar_asset",
    "bump_contract_instance",
    "bump_contract_code",
    "bump_contract_data",
    "restore_contract_data",
    "invoke_contract",
    "airdrop_account",
    "initialize_treasury_factory",
    "initialize_orbit",
    "TwoPhaseStatus",
    "TwoPhaseResult",
    "queue_change",
    "commit_change",
    "queue_then_commit",
    # Registry / session
    "AddressBook",
    "ArtifactStore",
    "Session",
]

from .config import NetworkContext, load_network
from .errors import (
    EncodingError,
    ExecutionFailure,
    NetworkRejection,
    NotYetEligible,
    OrbitError,
    PollTimeout,
    PreconditionError,
    RpcError,
)
from .ledger.contract_id import derive_asset_contract_id, derive_contract_id, new_salt
from .ledger.contracts import (
    airdrop_account,
    bump_contract_code,
    bump_contract_data,
    bump_contract_instance,
    deploy_contract,
    deploy_stellar_asset,
    initialize_orbit,
    initialize_treasury_factory,
    install_contract,
    invoke_contract,
    restore_contract_data,
)
from .ledger.footprint import LedgerFootprint, ResourceBudget
from .ledger.operations import OperationBuilder, decode_operation, encode_operation
from .ledger.rpc import SorobanRpc
from .ledger.timelock import (
    TwoPhaseResult,
    TwoPhaseStatus,
    commit_change,
    queue_change,
    queue_then_commit,
)
from .ledger.tx import PollPolicy, TransactionPipeline, TxOutcome, TxParams, TxState
from .registry.address_book import AddressBook
from .registry.artifacts import ArtifactStore
from .session import Session
