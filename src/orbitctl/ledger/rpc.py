"""
JSON-RPC client for a Soroban RPC endpoint.

Lightweight: uses httpx for HTTP and stellar_sdk only for XDR.  Covers the
handful of calls the pipeline needs, not the whole RPC surface:

- getNetwork
- getLedgerEntries (account sequence lookup)
- simulateTransaction
- sendTransaction
- getTransaction

plus a plain HTTP request to the network's friendbot for funding.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
from stellar_sdk import Account, Keypair
from stellar_sdk import xdr as stellar_xdr

from ..errors import PreconditionError, RpcError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RpcClient(Protocol):
    """What a session needs from an RPC endpoint."""

    def get_account(self, account_id: str) -> Account:
        ...

    def simulate_transaction(self, tx_xdr: str) -> dict[str, Any]:
        ...

    def send_transaction(self, tx_xdr: str) -> dict[str, Any]:
        ...

    def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        ...

    def request_airdrop(self, account_id: str, friendbot_url: str) -> bool:
        ...


class SorobanRpc:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def _rpc_call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "getTransaction")
            params: Named RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: Transport failure or JSON-RPC error object
        """
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": 1, "method": method}
        if params is not None:
            payload["params"] = params

        try:
            with self._client() as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"RPC transport error: {exc}", operation=method) from exc
        except ValueError as exc:
            raise RpcError(f"RPC returned invalid JSON: {exc}", operation=method) from exc

        if "error" in data:
            raise RpcError(f"RPC error: {data['error']}", operation=method, raw=data["error"])

        return data.get("result")

    def get_network(self) -> dict[str, Any]:
        return self._rpc_call("getNetwork")

    def get_account(self, account_id: str) -> Account:
        """Current sequence number of an account, as an sdk Account."""
        try:
            account_key = Keypair.from_public_key(account_id).xdr_account_id()
        except Exception as exc:
            raise PreconditionError(f"Malformed account id: {account_id!r}") from exc

        key = stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(account_id=account_key),
        )
        result = self._rpc_call("getLedgerEntries", {"keys": [key.to_xdr()]})
        entries = (result or {}).get("entries") or []
        if not entries:
            raise PreconditionError(
                f"Account {account_id} not found on the network. Fund it first.",
                raw=result,
            )

        data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
        sequence = data.account.seq_num.sequence_number.int64
        return Account(account_id, sequence)

    def simulate_transaction(self, tx_xdr: str) -> dict[str, Any]:
        return self._rpc_call("simulateTransaction", {"transaction": tx_xdr})

    def send_transaction(self, tx_xdr: str) -> dict[str, Any]:
        return self._rpc_call("sendTransaction", {"transaction": tx_xdr})

    def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        return self._rpc_call("getTransaction", {"hash": tx_hash})

    def request_airdrop(self, account_id: str, friendbot_url: str) -> bool:
        """
        Fund an account from the network's friendbot.

        Returns:
            True if the account was funded, False if it already existed.

        Raises:
            RpcError: Friendbot unreachable or returned an unexpected error
        """
        try:
            with self._client() as client:
                response = client.get(friendbot_url, params={"addr": account_id})
        except httpx.HTTPError as exc:
            raise RpcError(f"Friendbot request failed: {exc}", operation="airdrop") from exc

        if response.status_code == 200:
            return True
        # Friendbot answers 400 when the account is already funded
        if response.status_code == 400 and "createAccountAlreadyExist" in response.text:
            logger.info("Account %s already funded", account_id)
            return False
        raise RpcError(
            f"Friendbot returned HTTP {response.status_code}",
            operation="airdrop",
            raw=response.text,
        )
