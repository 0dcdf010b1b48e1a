"""
Pytest fixtures for the Solana Actions SDK tests.
"""
import base64
import time

import pytest
from solders.keypair import Keypair

from solana_actions_sdk.config import ClientConfig
from solana_actions_sdk.transaction.trust import TransactionTrustClassifier
from tests.test_helpers import FakeBlockchain, build_transaction

TEST_ORIGIN = "https://actions.example.com"
TEST_ACTION_URL = f"{TEST_ORIGIN}/api/actions/donate"
TEST_ICON = "https://cdn.example.com/icon.png"
TEST_RPC_URL = "https://rpc.example.com"


# Make time.sleep instantaneous so polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture
def config():
    return ClientConfig(rpc_url=TEST_RPC_URL, retry_count=0, confirm_timeout=5.0)


@pytest.fixture
def user():
    return Keypair()


@pytest.fixture
def stranger():
    return Keypair()


@pytest.fixture
def recipient():
    return Keypair()


@pytest.fixture
def blockchain():
    return FakeBlockchain()


@pytest.fixture
def classifier(blockchain):
    return TransactionTrustClassifier(blockchain)


@pytest.fixture
def action_payload():
    """A typical GET response with two linked actions"""
    return {
        "type": "action",
        "icon": TEST_ICON,
        "title": "Donate",
        "description": "Support the project",
        "label": "Donate",
        "links": {
            "actions": [
                {"href": "/api/actions/donate?amount=1", "label": "1 SOL"},
                {
                    "href": "/api/actions/donate?amount={amount}",
                    "label": "Custom",
                    "parameters": [
                        {"name": "amount", "label": "Amount", "type": "number", "required": True,
                         "min": "0.1", "max": 10},
                    ],
                },
            ]
        },
    }


@pytest.fixture
def unsigned_tx_b64(user, recipient):
    """Base64 of an unsigned transfer from the user"""
    tx = build_transaction([user.pubkey()], recipient.pubkey())
    return base64.b64encode(bytes(tx)).decode("ascii")
