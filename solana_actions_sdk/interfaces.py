"""
Collaborator interfaces consumed by the Solana Actions SDK.

Implementations may be plain or ``async`` methods; the chain controller
awaits whichever it gets.
"""
from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class ActionsTransport(Protocol):
    """HTTP access to Action APIs"""

    def get_action(self, url: str) -> Dict[str, Any]:
        """GET an Action and return the decoded JSON body"""
        ...

    def post_action(self, href: str, account: str) -> Dict[str, Any]:
        """POST ``{account}`` to a LinkedAction href and return the JSON body"""
        ...

    def post_next_action(self, href: str, account: str, signature: str) -> Dict[str, Any]:
        """POST ``{account, signature}`` to a chained callback and return the JSON body"""
        ...

    def get_actions_json(self, origin: str) -> Dict[str, Any]:
        """GET ``<origin>/actions.json``"""
        ...


@runtime_checkable
class BlockchainClient(Protocol):
    """Access to the Solana cluster"""

    def get_latest_blockhash(self) -> str:
        """Return a recent blockhash, base58 encoded"""
        ...

    def submit_and_confirm(self, transaction: bytes) -> str:
        """
        Send a signed transaction and wait for confirmation.

        Returns the base58 transaction signature; raises ConfirmationError
        when the transaction fails or does not confirm.
        """
        ...


@runtime_checkable
class Signer(Protocol):
    """Wallet that signs transactions on behalf of the user"""

    def sign(self, transaction: bytes, account: str) -> bytes:
        """
        Sign a wire-format transaction as ``account``.

        Returns the signed wire-format transaction; raises UserRejectedError
        when the user declines.
        """
        ...
