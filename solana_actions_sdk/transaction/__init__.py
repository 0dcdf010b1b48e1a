"""
Transaction module for the Solana Actions SDK.

Inspects Solana transactions and decides whether one returned by an Action API
may be signed.
"""
from .wire import (
    decode_transaction, message_bytes, signer_keys, signed_slots, missing_signers,
    unsigned_transaction, with_signature, rewrite_fee_payer_and_blockhash,
)
from .trust import (
    TransactionTrustClassifier, TransactionSignatureState, TrustVerdict, Rejection, Classification,
)

__all__ = [
    'decode_transaction',
    'message_bytes',
    'signer_keys',
    'signed_slots',
    'missing_signers',
    'unsigned_transaction',
    'with_signature',
    'rewrite_fee_payer_and_blockhash',
    'TransactionTrustClassifier',
    'TransactionSignatureState',
    'TrustVerdict',
    'Rejection',
    'Classification',
]
