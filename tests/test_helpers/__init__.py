"""
Helpers shared by the Solana Actions SDK tests.
"""
from .transactions import (
    FakeSigner, FakeBlockchain, address, build_message, build_transaction, sign_with,
    TEST_BLOCKHASH, STALE_BLOCKHASH, SYSTEM_PROGRAM, TEST_SIGNATURE,
)
from .transport import FakeTransport

__all__ = [
    "FakeSigner",
    "FakeBlockchain",
    "FakeTransport",
    "address",
    "build_message",
    "build_transaction",
    "sign_with",
    "TEST_BLOCKHASH",
    "STALE_BLOCKHASH",
    "SYSTEM_PROGRAM",
    "TEST_SIGNATURE",
]
