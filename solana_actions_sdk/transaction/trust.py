"""
Trust classification of transactions returned by Action POST responses.

An Action API hands the client a transaction to sign. Before it reaches the
wallet the client decides whether it may be signed at all:

- no signatures yet: the client owns the fee payer and blockhash and rewrites
  both;
- some signatures already present: every one must verify, nothing may be
  rewritten, and the only missing signature may be the user's.

Anything that cannot be decided is rejected as malformed.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import base58
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from ..exceptions import (
    BlockchainError, MalformedTransactionError, MaliciousTransactionError,
    RejectReason, TransactionDecodeError, TransactionRejectedError,
)
from ..interfaces import BlockchainClient
from .wire import (
    decode_transaction, message_bytes, missing_signers, rewrite_fee_payer_and_blockhash,
    signed_slots, signer_keys,
)

PUBKEY_LENGTH = 32
BLOCKHASH_LENGTH = 32


class TransactionSignatureState(str, Enum):
    UNSIGNED = "unsigned"
    PARTIALLY_SIGNED = "partiallySigned"
    INVALID_SIGNATURE = "invalidSignature"


@dataclass(frozen=True)
class TrustVerdict:
    """
    A transaction the requesting account may sign.

    Attributes:
        state: Signature state found on the returned transaction
        fee_payer_override: Whether the fee payer was rewritten
        blockhash_override: Whether the recent blockhash was rewritten
        transaction: Transaction to hand to the signer
    """
    state: TransactionSignatureState
    fee_payer_override: bool
    blockhash_override: bool
    transaction: VersionedTransaction

    def to_bytes(self) -> bytes:
        return bytes(self.transaction)


@dataclass(frozen=True)
class Rejection:
    """
    A transaction that must not be signed.

    Attributes:
        reason: MALFORMED or MALICIOUS
        detail: Human-readable explanation
        state: Signature state, when it could be determined
    """
    reason: RejectReason
    detail: str
    state: Optional[TransactionSignatureState] = None

    def to_error(self) -> TransactionRejectedError:
        if self.reason == RejectReason.MALICIOUS:
            return MaliciousTransactionError(self.detail, rejection=self)
        return MalformedTransactionError(self.detail, rejection=self)


Classification = Union[TrustVerdict, Rejection]


def _short(key: Pubkey) -> str:
    return str(key)[:6] + "…"


def _decode_key(value: str, length: int) -> Optional[bytes]:
    try:
        decoded = base58.b58decode(value)
    except ValueError:
        return None
    return decoded if len(decoded) == length else None


class TransactionTrustClassifier:
    """
    Decides whether a returned transaction may be signed by the user.

    Args:
        blockchain: Source of fresh blockhashes for unsigned transactions
        logger: Optional logger instance
    """

    def __init__(self, blockchain: BlockchainClient, logger: Optional[logging.Logger] = None):
        self.blockchain = blockchain
        self.logger = logger or logging.getLogger(__name__)

    def _reject(self, reason: RejectReason, detail: str,
                state: Optional[TransactionSignatureState] = None) -> Rejection:
        self.logger.warning("Rejected transaction as %s: %s", reason.value, detail)
        return Rejection(reason, detail, state)

    def classify(self, transaction: Union[bytes, VersionedTransaction], requesting_account: str) -> Classification:
        """
        Classify a transaction returned for ``requesting_account``.

        Args:
            transaction: Wire bytes or a decoded transaction
            requesting_account: Base58 public key the POST was made for

        Returns:
            TrustVerdict if the account may sign, otherwise Rejection

        Raises:
            BlockchainError: If a fresh blockhash cannot be fetched for an unsigned transaction
        """
        account = _decode_key(requesting_account, PUBKEY_LENGTH)
        if account is None:
            return self._reject(RejectReason.MALFORMED, "requesting account is not a public key")

        if isinstance(transaction, VersionedTransaction):
            transaction = bytes(transaction)
        try:
            tx = decode_transaction(transaction)
        except TransactionDecodeError as e:
            return self._reject(RejectReason.MALFORMED, f"cannot decode transaction: {e}")

        if not signed_slots(tx):
            return self._classify_unsigned(tx, Pubkey(account))
        return self._classify_partially_signed(tx, Pubkey(account))

    def _classify_unsigned(self, tx: VersionedTransaction, account: Pubkey) -> Classification:
        blockhash = _decode_key(self.blockchain.get_latest_blockhash(), BLOCKHASH_LENGTH)
        if blockhash is None:
            raise BlockchainError("blockchain returned an invalid blockhash")

        try:
            rewritten = rewrite_fee_payer_and_blockhash(tx, account, Hash(blockhash))
        except TransactionDecodeError as e:
            return self._reject(RejectReason.MALFORMED, f"cannot rewrite transaction: {e}",
                                TransactionSignatureState.UNSIGNED)

        foreign = [key for key in missing_signers(rewritten) if key != account]
        if foreign:
            return self._reject(
                RejectReason.MALICIOUS,
                f"transaction also requires signatures from {', '.join(_short(k) for k in foreign)}",
                TransactionSignatureState.UNSIGNED,
            )

        self.logger.debug("Unsigned transaction rewritten for fee payer %s", _short(account))
        return TrustVerdict(
            state=TransactionSignatureState.UNSIGNED,
            fee_payer_override=True,
            blockhash_override=True,
            transaction=rewritten,
        )

    def _classify_partially_signed(self, tx: VersionedTransaction, account: Pubkey) -> Classification:
        message = message_bytes(tx)
        signers = signer_keys(tx.message)
        for index in signed_slots(tx):
            if not tx.signatures[index].verify(signers[index], message):
                return self._reject(
                    RejectReason.MALFORMED,
                    f"signature of {_short(signers[index])} does not verify",
                    TransactionSignatureState.INVALID_SIGNATURE,
                )

        missing = missing_signers(tx)
        foreign = [key for key in missing if key != account]
        if foreign:
            return self._reject(
                RejectReason.MALICIOUS,
                f"transaction requires signatures from {', '.join(_short(k) for k in foreign)}",
                TransactionSignatureState.PARTIALLY_SIGNED,
            )
        if account not in missing:
            return self._reject(
                RejectReason.MALFORMED,
                "transaction has no signature slot left for the requesting account",
                TransactionSignatureState.PARTIALLY_SIGNED,
            )

        self.logger.debug("Partially signed transaction accepted for %s", _short(account))
        return TrustVerdict(
            state=TransactionSignatureState.PARTIALLY_SIGNED,
            fee_payer_override=False,
            blockhash_override=False,
            transaction=tx,
        )
