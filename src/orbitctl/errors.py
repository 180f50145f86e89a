"""
Error taxonomy for orbitctl.

Every error raised by the pipeline or the high-level actions derives from
``OrbitError`` and carries enough context (operation name, target contract,
raw network message) to diagnose a failure without re-executing it.
The CLI maps ``exit_code`` to the process exit status.
"""

from __future__ import annotations

from typing import Any, Optional


class OrbitError(RuntimeError):
    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        contract: Optional[str] = None,
        raw: Any = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.contract = contract
        self.raw = raw

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.contract:
            context.append(f"contract={self.contract}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class PreconditionError(OrbitError):
    """Caller or configuration misuse: missing artifact, unregistered contract, bad input."""

    exit_code = 2


class EncodingError(OrbitError):
    """Malformed preimage, footprint or operation. Indicates a bug, never retried."""

    exit_code = 3


class NetworkRejection(OrbitError):
    """Submission rejected before execution (bad sequence, insufficient fee, ...)."""

    exit_code = 4

    def __init__(self, message: str, *, result_code: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.result_code = result_code


class ExecutionFailure(OrbitError):
    """Transaction executed (or simulated) and returned an on-chain error."""

    exit_code = 5

    def __init__(
        self,
        message: str,
        *,
        tx_hash: Optional[str] = None,
        result_code: Optional[str] = None,
        contract_error: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.tx_hash = tx_hash
        self.result_code = result_code
        self.contract_error = contract_error


class NotYetEligible(OrbitError):
    """A time-locked commit was attempted before its unlock time. Retry later."""

    exit_code = 6

    def __init__(self, message: str, *, contract_error: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.contract_error = contract_error


class PollTimeout(OrbitError):
    """The poll cap was reached. The transaction may still land on-chain."""

    exit_code = 7

    def __init__(self, message: str, *, tx_hash: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.tx_hash = tx_hash


class RpcError(OrbitError):
    """Transport failure or JSON-RPC error object from the RPC endpoint."""

    exit_code = 8


__all__ = [
    "OrbitError",
    "PreconditionError",
    "EncodingError",
    "NetworkRejection",
    "ExecutionFailure",
    "NotYetEligible",
    "PollTimeout",
    "RpcError",
]
