"""
Solana Actions SDK - client-side protocol engine for Solana Actions and blinks.
"""
from .version import __version__
from .exceptions import (
    ActionsError, ValidationError, InvalidPatternError, TransactionDecodeError,
    TransactionRejectedError, MalformedTransactionError, MaliciousTransactionError,
    ConfirmationError, UserRejectedError, CrossOriginCallbackRejected, TransportError,
    BlockchainError, ChainStateError, ChainCancelledError, RejectReason,
)
from .config import ClientConfig, ACTIONS_CORS_HEADERS, with_cors_headers
from .models import (
    Action, CompletedAction, LinkedAction, ActionParameter, ParameterOption, ParameterType,
    PostResponsePayload, PostNextActionLink, InlineNextActionLink, RuleEntry, ActionsJson,
)
from .routing import (
    match, resolve, ResolvedRoute, RuleTable, RuleTableHandle, unwrap_action_url, origin_of,
)
from .validation import ActionResponseValidator, validate_get, validate_next, validate_post
from .transaction import (
    decode_transaction, TransactionTrustClassifier, TransactionSignatureState, TrustVerdict, Rejection,
)
from .chain import ActionChainController, ChainSession, ChainState
from .client import ActionsClient
from .rpc import SolanaRpcClient

__all__ = [
    "__version__",
    # Errors
    "ActionsError",
    "ValidationError",
    "InvalidPatternError",
    "TransactionDecodeError",
    "TransactionRejectedError",
    "MalformedTransactionError",
    "MaliciousTransactionError",
    "ConfirmationError",
    "UserRejectedError",
    "CrossOriginCallbackRejected",
    "TransportError",
    "BlockchainError",
    "ChainStateError",
    "ChainCancelledError",
    "RejectReason",
    # Configuration
    "ClientConfig",
    "ACTIONS_CORS_HEADERS",
    "with_cors_headers",
    # Models
    "Action",
    "CompletedAction",
    "LinkedAction",
    "ActionParameter",
    "ParameterOption",
    "ParameterType",
    "PostResponsePayload",
    "PostNextActionLink",
    "InlineNextActionLink",
    "RuleEntry",
    "ActionsJson",
    # Routing
    "match",
    "resolve",
    "ResolvedRoute",
    "RuleTable",
    "RuleTableHandle",
    "unwrap_action_url",
    "origin_of",
    # Validation
    "ActionResponseValidator",
    "validate_get",
    "validate_next",
    "validate_post",
    # Transactions
    "decode_transaction",
    "TransactionTrustClassifier",
    "TransactionSignatureState",
    "TrustVerdict",
    "Rejection",
    # Chaining
    "ActionChainController",
    "ChainSession",
    "ChainState",
    # Collaborators
    "ActionsClient",
    "SolanaRpcClient",
]
