"""
Solana transactions as returned by Action APIs.

Decoding and encoding of legacy and version 0 transactions is done by
``solders``; this module adds the structural checks the trust rules rely on
and rebuilds unsigned transactions for a new fee payer and blockhash.
"""
from typing import List, Union

from solders.errors import BincodeError
from solders.hash import Hash
from solders.instruction import AccountMeta, CompiledInstruction, Instruction
from solders.message import Message, MessageHeader, MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..exceptions import TransactionDecodeError

AnyMessage = Union[Message, MessageV0]

EMPTY_SIGNATURE = bytes(64)


def decode_transaction(data: bytes) -> VersionedTransaction:
    """
    Decode a wire-format transaction and check its structure.

    Raises:
        TransactionDecodeError: If the bytes are not a well-formed transaction
    """
    data = bytes(data)
    try:
        tx = VersionedTransaction.from_bytes(data)
    except (BincodeError, ValueError) as e:
        raise TransactionDecodeError(f"invalid wire format: {e}") from e
    if bytes(tx) != data:
        raise TransactionDecodeError("trailing or non-canonical bytes in transaction")

    check_message(tx.message)
    required = tx.message.header.num_required_signatures
    if len(tx.signatures) != required:
        raise TransactionDecodeError(f"{len(tx.signatures)} signatures but message requires {required}")
    return tx


def check_message(message: AnyMessage) -> None:
    """Raise TransactionDecodeError for header or index inconsistencies."""
    header = message.header
    keys = message.account_keys
    required = header.num_required_signatures
    if required == 0:
        raise TransactionDecodeError("message requires no signatures")
    if required > len(keys):
        raise TransactionDecodeError("more required signatures than account keys")
    if header.num_readonly_signed_accounts >= required:
        raise TransactionDecodeError("fee payer cannot be read-only")
    if header.num_readonly_unsigned_accounts > len(keys) - required:
        raise TransactionDecodeError("read-only unsigned count exceeds unsigned keys")
    if len({bytes(key) for key in keys}) != len(keys):
        raise TransactionDecodeError("duplicate account keys")

    total = len(keys) + loaded_key_count(message)
    for ix in message.instructions:
        if ix.program_id_index >= total or any(i >= total for i in ix.accounts):
            raise TransactionDecodeError("instruction account index out of range")


def loaded_key_count(message: AnyMessage) -> int:
    if not isinstance(message, MessageV0):
        return 0
    return sum(len(lookup.writable_indexes) + len(lookup.readonly_indexes)
               for lookup in message.address_table_lookups)


def is_writable_index(message: AnyMessage, index: int) -> bool:
    """Writability of a static key as declared by the header."""
    header = message.header
    required = header.num_required_signatures
    if index < required:
        return index < required - header.num_readonly_signed_accounts
    return index < len(message.account_keys) - header.num_readonly_unsigned_accounts


def message_bytes(tx: VersionedTransaction) -> bytes:
    """The bytes every signature of ``tx`` signs."""
    return to_bytes_versioned(tx.message)


def signer_keys(message: AnyMessage) -> List[Pubkey]:
    return list(message.account_keys[:message.header.num_required_signatures])


def signed_slots(tx: VersionedTransaction) -> List[int]:
    return [i for i, signature in enumerate(tx.signatures) if bytes(signature) != EMPTY_SIGNATURE]


def missing_signers(tx: VersionedTransaction) -> List[Pubkey]:
    signed = set(signed_slots(tx))
    return [key for i, key in enumerate(signer_keys(tx.message)) if i not in signed]


def unsigned_transaction(message: AnyMessage) -> VersionedTransaction:
    """A transaction for ``message`` with every signature slot empty."""
    slots = [Signature.default()] * message.header.num_required_signatures
    return VersionedTransaction.populate(message, slots)


def with_signature(tx: VersionedTransaction, pubkey: Pubkey, signature: Signature) -> VersionedTransaction:
    """Return a copy of ``tx`` with ``signature`` placed in ``pubkey``'s slot."""
    keys = signer_keys(tx.message)
    if pubkey not in keys:
        raise ValueError("key is not a required signer of this transaction")
    slots = list(tx.signatures)
    slots[keys.index(pubkey)] = signature
    return VersionedTransaction.populate(tx.message, slots)


def _decompile(message: AnyMessage) -> List[Instruction]:
    keys = message.account_keys
    required = message.header.num_required_signatures
    return [
        Instruction(
            keys[ix.program_id_index],
            bytes(ix.data),
            [AccountMeta(keys[i], i < required, is_writable_index(message, i)) for i in ix.accounts],
        )
        for ix in message.instructions
    ]


def _recompile_with_lookups(message: MessageV0, fee_payer: Pubkey, blockhash: Hash) -> MessageV0:
    # Keys loaded from lookup tables cannot be decompiled without the tables,
    # so only the static keys are reordered, in the order the compiler uses.
    keys = message.account_keys
    static = len(keys)
    required = message.header.num_required_signatures

    metas = {bytes(fee_payer): (True, True)}
    for ix in message.instructions:
        refs = [(ix.program_id_index, False, False)]
        refs += [(i, i < required, is_writable_index(message, i)) for i in ix.accounts]
        for index, signer, writable in refs:
            if index >= static:
                continue
            key = bytes(keys[index])
            old = metas.get(key, (False, False))
            metas[key] = (old[0] or signer, old[1] or writable)

    payer = bytes(fee_payer)
    ordered = [payer] + sorted(
        (key for key in metas if key != payer),
        key=lambda k: (not metas[k][0], not metas[k][1], k),
    )
    position = {key: i for i, key in enumerate(ordered)}

    def remap(index: int) -> int:
        if index < static:
            return position[bytes(keys[index])]
        return len(ordered) + (index - static)

    header = MessageHeader(
        sum(1 for k in ordered if metas[k][0]),
        sum(1 for k in ordered if metas[k][0] and not metas[k][1]),
        sum(1 for k in ordered if not metas[k][0] and not metas[k][1]),
    )
    instructions = [
        CompiledInstruction(remap(ix.program_id_index), bytes(ix.data), bytes(remap(i) for i in ix.accounts))
        for ix in message.instructions
    ]
    return MessageV0(header, [Pubkey(k) for k in ordered], blockhash, instructions,
                     list(message.address_table_lookups))


def rewrite_fee_payer_and_blockhash(tx: VersionedTransaction, fee_payer: Pubkey,
                                    blockhash: Hash) -> VersionedTransaction:
    """
    Recompile ``tx`` with a new fee payer and recent blockhash, unsigned.

    Account keys are ordered fee payer first, then writable signers, read-only
    signers, writable and read-only non-signers, each group by key bytes.
    Static keys no instruction references are dropped, which removes a
    placeholder fee payer. The result is serialized and decoded again so it is
    exactly what a wallet will see.
    """
    message = tx.message
    if isinstance(message, MessageV0):
        if message.address_table_lookups:
            rebuilt = _recompile_with_lookups(message, fee_payer, blockhash)
        else:
            rebuilt = MessageV0.try_compile(fee_payer, _decompile(message), [], blockhash)
    else:
        rebuilt = Message.new_with_blockhash(_decompile(message), fee_payer, blockhash)
    return decode_transaction(bytes(unsigned_transaction(rebuilt)))
