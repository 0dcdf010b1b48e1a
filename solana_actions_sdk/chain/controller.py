"""
Action chaining state machine.

One controller drives one user's interaction with an Action: picking a
LinkedAction, getting a signable transaction, waiting for the wallet and the
cluster, and moving on to the next Action of the chain.

    AWAITING_ACTION -> AWAITING_SIGNATURE -> AWAITING_CONFIRMATION
        -> RESOLVING -> AWAITING_ACTION | COMPLETED

Signing and confirmation run as one ``asyncio`` task that ``cancel()`` can
abort. Nothing is retried automatically.
"""
import asyncio
import inspect
import logging
import urllib.parse
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from ..exceptions import (
    ActionsError, ChainCancelledError, ChainStateError, CrossOriginCallbackRejected,
)
from ..interfaces import ActionsTransport, BlockchainClient, Signer
from ..models import (
    Action, CompletedAction, InlineNextActionLink, LinkedAction, PostNextActionLink,
    PostResponsePayload,
)
from ..routing.blink import origin_of
from ..transaction.trust import Rejection, TransactionTrustClassifier, TrustVerdict
from ..validation import Payload, normalize_action, validate_get, validate_next, validate_post

AnyAction = Union[Action, CompletedAction]


class ChainState(str, Enum):
    AWAITING_ACTION = "awaitingAction"
    AWAITING_SIGNATURE = "awaitingSignature"
    AWAITING_CONFIRMATION = "awaitingConfirmation"
    RESOLVING = "resolving"
    COMPLETED = "completed"


@dataclass
class ChainSession:
    """
    Per-interaction state, owned by exactly one controller.

    Attributes:
        current_action: Action currently displayed
        last_account: Account the user acts as
        origin: Origin of the initial Action request
        action_url: URL the current action was obtained from
        last_signature: Signature of the last confirmed transaction
        last_message: Message of the last POST response
        warning: Display-only warning, e.g. a refused cross-origin callback
    """
    current_action: AnyAction
    last_account: str
    origin: str
    action_url: str
    last_signature: Optional[str] = None
    last_message: Optional[str] = None
    warning: Optional[str] = None


@dataclass(frozen=True)
class PendingTransaction:
    """A classified transaction waiting for the wallet"""
    linked_action: LinkedAction
    href: str
    payload: PostResponsePayload
    verdict: TrustVerdict


async def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    """Call a collaborator that may be sync or async without blocking the loop."""
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ActionChainController:
    """
    Drives one chain of Actions for one account.

    Args:
        action: Validated Action the chain starts from
        account: Base58 public key of the user
        action_url: URL the Action was fetched from
        transport: HTTP collaborator
        classifier: Trust classifier for returned transactions
        signer: Wallet collaborator
        blockchain: Cluster collaborator used to submit and confirm
        logger: Optional logger instance
    """

    def __init__(
        self,
        action: Action,
        account: str,
        action_url: str,
        transport: ActionsTransport,
        classifier: TransactionTrustClassifier,
        signer: Signer,
        blockchain: BlockchainClient,
        logger: Optional[logging.Logger] = None
    ):
        if not isinstance(action, Action):
            raise ChainStateError("a chain must start from an Action of type 'action'")
        self.session = ChainSession(
            current_action=action,
            last_account=account,
            origin=origin_of(action_url),
            action_url=action_url,
        )
        self.transport = transport
        self.classifier = classifier
        self.signer = signer
        self.blockchain = blockchain
        self.logger = logger or logging.getLogger(__name__)

        self._state = ChainState.AWAITING_ACTION
        self._pending: Optional[PendingTransaction] = None
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self.last_error: Optional[Exception] = None

    @classmethod
    async def start(
        cls,
        url: str,
        account: str,
        transport: ActionsTransport,
        classifier: TransactionTrustClassifier,
        signer: Signer,
        blockchain: BlockchainClient,
        logger: Optional[logging.Logger] = None
    ) -> "ActionChainController":
        """GET the Action at ``url`` and start a chain from it."""
        body = await _invoke(transport.get_action, url)
        action = validate_get(body, url)
        return cls(action, account, url, transport, classifier, signer, blockchain, logger=logger)

    @property
    def state(self) -> ChainState:
        return self._state

    @property
    def current_action(self) -> AnyAction:
        return self.session.current_action

    @property
    def pending(self) -> Optional[PendingTransaction]:
        return self._pending

    def _transition(self, state: ChainState) -> None:
        if state != self._state:
            self.logger.info("Chain %s -> %s", self._state.value, state.value)
        self._state = state

    def _require(self, *states: ChainState) -> None:
        if self._state not in states:
            wanted = ", ".join(s.value for s in states)
            raise ChainStateError(f"chain is {self._state.value}, expected {wanted}")

    def _reset(self, error: Optional[Exception] = None) -> None:
        """Back to AWAITING_ACTION with the same Action, dropping any pending transaction."""
        self._pending = None
        self.last_error = error
        self._transition(ChainState.AWAITING_ACTION)

    async def select(self, linked_action: LinkedAction,
                     values: Optional[Mapping[str, Any]] = None) -> TrustVerdict:
        """
        Request a transaction for one of the current Action's LinkedActions.

        Args:
            linked_action: LinkedAction of the current Action
            values: Parameter values for the LinkedAction

        Returns:
            The verdict for the returned transaction

        Raises:
            ChainStateError: If the chain cannot accept a selection now
            ValidationError: If the parameters or the POST response are invalid
            TransactionRejectedError: If the transaction must not be signed
            TransportError: If the POST fails
        """
        self._require(ChainState.AWAITING_ACTION)
        action = self.session.current_action
        if action.disabled:
            raise ChainStateError("the current action is disabled")
        if linked_action not in action.linked_actions:
            raise ChainStateError("linked action does not belong to the current action")

        href = urllib.parse.urljoin(self.session.action_url, linked_action.build_href(values))
        body = await _invoke(self.transport.post_action, href, self.session.last_account)
        return await self.accept_post_response(linked_action, body, href=href)

    async def accept_post_response(self, linked_action: LinkedAction, payload: Payload,
                                   href: Optional[str] = None) -> TrustVerdict:
        """
        Validate and classify a POST response obtained by the caller.

        Raises:
            ValidationError: If the payload is malformed
            TransactionRejectedError: If the transaction must not be signed
        """
        self._require(ChainState.AWAITING_ACTION)
        post = validate_post(payload)
        classification = await _invoke(
            self.classifier.classify, post.transaction, self.session.last_account
        )
        if isinstance(classification, Rejection):
            error = classification.to_error()
            self.last_error = error
            raise error

        self._pending = PendingTransaction(
            linked_action=linked_action,
            href=href or urllib.parse.urljoin(self.session.action_url, linked_action.href),
            payload=post,
            verdict=classification,
        )
        self.session.warning = None
        self._transition(ChainState.AWAITING_SIGNATURE)
        return classification

    async def _sign_and_confirm(self, pending: PendingTransaction) -> str:
        signed = await _invoke(self.signer.sign, pending.verdict.to_bytes(), self.session.last_account)
        self._transition(ChainState.AWAITING_CONFIRMATION)
        return await _invoke(self.blockchain.submit_and_confirm, signed)

    async def submit(self) -> AnyAction:
        """
        Have the wallet sign the pending transaction, submit it, and advance.

        Returns:
            The Action now current (a CompletedAction once the chain ends)

        Raises:
            UserRejectedError: If the wallet declined; the chain is back at AWAITING_ACTION
            ConfirmationError: If the transaction failed on-chain; same recovery
            ChainCancelledError: If ``cancel()`` aborted the submission
            CrossOriginCallbackRejected: If the next link points at another origin
        """
        self._require(ChainState.AWAITING_SIGNATURE)
        pending = self._pending
        self._cancel_requested = False
        self._task = asyncio.ensure_future(self._sign_and_confirm(pending))
        try:
            signature = await self._task
        except asyncio.CancelledError:
            if self._cancel_requested:
                raise ChainCancelledError("submission cancelled")
            self._reset()
            raise
        except Exception as e:
            self.logger.warning("Submission failed: %s", e)
            self._reset(e)
            raise
        finally:
            self._task = None

        if self._cancel_requested:
            # cancel() ran after the task finished but before this coroutine resumed
            self.logger.info("Ignoring confirmed transaction %s…; chain was cancelled", signature[:6])
            raise ChainCancelledError("submission cancelled")

        self._transition(ChainState.RESOLVING)
        return await self._resolve(pending, signature)

    def cancel(self) -> bool:
        """
        Abort a pending signature or confirmation.

        The transaction awaiting signature is discarded. A transaction already
        handed to the cluster may still land; its outcome is ignored and the
        pending ``submit()`` raises ChainCancelledError.

        Returns:
            True if something was cancelled
        """
        if self._state not in (ChainState.AWAITING_SIGNATURE, ChainState.AWAITING_CONFIRMATION):
            return False
        self._cancel_requested = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._reset()
        return True

    def _adopt(self, action: AnyAction, url: str) -> AnyAction:
        self.session.current_action = action
        self.session.action_url = url
        if isinstance(action, CompletedAction):
            self._transition(ChainState.COMPLETED)
        else:
            self._transition(ChainState.AWAITING_ACTION)
        return action

    async def _resolve(self, pending: PendingTransaction, signature: str) -> AnyAction:
        self.session.last_signature = signature
        self.session.last_message = pending.payload.message
        self._pending = None
        next_link = pending.payload.next

        if next_link is None:
            completed = self.session.current_action.as_completed(pending.payload.message)
            return self._adopt(completed, self.session.action_url)

        if isinstance(next_link, InlineNextActionLink):
            action = next_link.action
            if isinstance(action, Action):
                action = normalize_action(action, self.session.action_url)
            return self._adopt(action, self.session.action_url)

        if isinstance(next_link, PostNextActionLink):
            href = urllib.parse.urljoin(pending.href, next_link.href)
            expected = origin_of(pending.href)
            if origin_of(href) != expected:
                error = CrossOriginCallbackRejected(href, expected, signature=signature)
                self.logger.warning("%s", error)
                self.session.warning = str(error)
                self._reset(error)
                raise error
            try:
                body = await _invoke(
                    self.transport.post_next_action, href, self.session.last_account, signature
                )
                action = validate_next(body, href)
            except ActionsError as e:
                self.logger.warning("Next action from %s failed: %s", href, e)
                self._reset(e)
                raise
            return self._adopt(action, href)

        raise TypeError(f"Unknown next action link: {next_link!r}")
