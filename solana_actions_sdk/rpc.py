"""
Minimal Solana JSON-RPC client implementing the BlockchainClient interface.
"""
import base64
import itertools
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ClientConfig
from .exceptions import BlockchainError, ConfirmationError

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class SolanaRpcClient:
    """
    Client for the handful of RPC methods an Action interaction needs.

    Only ``getLatestBlockhash``, ``sendTransaction`` and
    ``getSignatureStatuses`` are used.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config or ClientConfig.from_env()
        self.rpc_url = self.config.rpc_url
        self.logger = logger or logging.getLogger(__name__)
        self._ids = itertools.count(1)

        if session is None:
            session = requests.Session()
            # sendTransaction is safe to repeat: the cluster dedupes by signature
            retries = Retry(
                total=self.config.retry_count,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["POST"],
                raise_on_status=False,
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def _call(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.config.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            self.logger.error("RPC %s failed: %s", method, e)
            raise BlockchainError(f"RPC {method} failed: {e}") from e
        except ValueError as e:
            raise BlockchainError(f"Invalid JSON from RPC {method}: {e}") from e

        if "error" in data:
            error = data["error"] or {}
            raise BlockchainError(f"RPC {method} error {error.get('code')}: {error.get('message')}")
        if "result" not in data:
            raise BlockchainError(f"RPC {method} returned no result")
        return data["result"]

    def get_latest_blockhash(self) -> str:
        """
        Fetch a recent blockhash.

        Returns:
            Base58 blockhash
        """
        result = self._call("getLatestBlockhash", [{"commitment": self.config.commitment}])
        try:
            blockhash = result["value"]["blockhash"]
        except (KeyError, TypeError):
            raise BlockchainError(f"Unexpected getLatestBlockhash result: {result}")
        self.logger.debug("Latest blockhash %s…", blockhash[:6])
        return blockhash

    def send_transaction(self, transaction: bytes) -> str:
        """
        Send a signed transaction.

        Returns:
            Base58 transaction signature

        Raises:
            ConfirmationError: If the cluster refuses the transaction
        """
        encoded = base64.b64encode(transaction).decode("ascii")
        try:
            signature = self._call("sendTransaction", [encoded, {
                "encoding": "base64",
                "preflightCommitment": self.config.commitment,
            }])
        except BlockchainError as e:
            raise ConfirmationError(f"Transaction was not accepted: {e}") from e
        self.logger.info("Sent transaction %s…", signature[:6])
        return signature

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        result = self._call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        statuses = (result or {}).get("value") or [None]
        return statuses[0]

    def confirm_transaction(self, signature: str) -> str:
        """
        Poll until a signature reaches the configured commitment.

        Raises:
            ConfirmationError: If the transaction failed or did not confirm in time
        """
        wanted = _COMMITMENT_RANK[self.config.commitment]
        deadline = time.monotonic() + self.config.confirm_timeout
        while True:
            try:
                status = self.get_signature_status(signature)
            except BlockchainError as e:
                raise ConfirmationError(f"Could not check transaction {signature}: {e}",
                                        signature=signature) from e
            if status is not None:
                if status.get("err") is not None:
                    raise ConfirmationError(
                        f"Transaction {signature} failed: {status['err']}", signature=signature
                    )
                reached = _COMMITMENT_RANK.get(status.get("confirmationStatus") or "", -1)
                if reached >= wanted:
                    self.logger.info("Transaction %s… reached %s", signature[:6],
                                     status.get("confirmationStatus"))
                    return signature
            if time.monotonic() >= deadline:
                raise ConfirmationError(
                    f"Transaction {signature} not confirmed within {self.config.confirm_timeout}s",
                    signature=signature,
                )
            time.sleep(self.config.poll_interval)

    def submit_and_confirm(self, transaction: bytes) -> str:
        """Send a signed transaction and wait for confirmation."""
        signature = self.send_transaction(transaction)
        return self.confirm_transaction(signature)
