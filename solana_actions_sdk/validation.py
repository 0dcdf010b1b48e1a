"""
Validation of Action API responses.

Turns the loosely typed JSON of GET, POST and chained responses into the strict
models of ``models.py``. Every failure surfaces as ``ValidationError`` with the
dotted path of the offending field.
"""
import json
import logging
import urllib.parse
from typing import Any, Mapping, Optional, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .models import (
    Action, ActionLinks, AnyAction, CompletedAction, LinkedAction, PostResponsePayload,
)

logger = logging.getLogger(__name__)

_any_action = TypeAdapter(AnyAction)

Payload = Union[str, bytes, Mapping[str, Any]]


def _load(payload: Payload) -> Mapping[str, Any]:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise ValidationError("body", f"not valid JSON: {e}")
    if not isinstance(payload, Mapping):
        raise ValidationError("body", "must be a JSON object")
    return payload


_UNION_TAGS = ("action", "completed", "post", "inline")
_UNION_FIELDS = ("next", "action")


def _location(loc) -> list:
    # Tagged unions insert the tag after the union position; it is noise for users
    parts = []
    for i, part in enumerate(loc):
        is_tag = part in _UNION_TAGS and (i == 0 or loc[i - 1] in _UNION_FIELDS)
        if not is_tag:
            parts.append(str(part))
    return parts


def _from_pydantic(error: PydanticValidationError) -> ValidationError:
    first = error.errors()[0]
    location = _location(first["loc"])
    if first["type"] in ("union_tag_invalid", "union_tag_not_found"):
        location.append("type")
    reason = first["msg"]
    if reason.startswith("Value error, "):
        reason = reason[len("Value error, "):]
    return ValidationError(".".join(location) or "body", reason)


def normalize_action(action: Action, request_url: str) -> Action:
    """
    Resolve relative hrefs and synthesize the default LinkedAction.

    Args:
        action: Parsed Action
        request_url: URL the Action came from
    """
    linked = action.linked_actions
    if not linked:
        default = LinkedAction(href=request_url, label=action.label, parameters=[])
        logger.debug("Synthesized default linked action for %s", request_url)
        return action.model_copy(update={"links": ActionLinks(actions=[default])})

    resolved = []
    for item in linked:
        href = urllib.parse.urljoin(request_url, item.href) if request_url else item.href
        resolved.append(item if href == item.href else item.model_copy(update={"href": href}))
    return action.model_copy(update={"links": ActionLinks(actions=resolved)})


def _validate_any(payload: Payload, request_url: str) -> Union[Action, CompletedAction]:
    data = _load(payload)
    if "type" not in data:
        raise ValidationError("type", "is required")
    try:
        action = _any_action.validate_python(data)
    except PydanticValidationError as e:
        raise _from_pydantic(e)
    if isinstance(action, Action):
        return normalize_action(action, request_url)
    return action


def validate_get(payload: Payload, request_url: str) -> Action:
    """
    Validate the response to an Action GET.

    Args:
        payload: Response body (JSON text or parsed object)
        request_url: URL the Action was fetched from

    Returns:
        Action with at least one LinkedAction

    Raises:
        ValidationError: If the payload is malformed or is not of type ``action``
    """
    data = _load(payload)
    if data.get("type") == "completed":
        raise ValidationError("type", "a GET response must be of type 'action', not 'completed'")
    action = _validate_any(data, request_url)
    if not isinstance(action, Action):
        raise ValidationError("type", "must be 'action'")
    return action


def validate_next(payload: Payload, request_url: str) -> Union[Action, CompletedAction]:
    """
    Validate a chained Action, where ``completed`` is allowed.

    Args:
        payload: Inline action or callback response body
        request_url: URL used for relative hrefs and the default LinkedAction
    """
    return _validate_any(payload, request_url)


def validate_post(payload: Payload) -> PostResponsePayload:
    """
    Validate the response to an Action POST.

    Returns:
        PostResponsePayload with the decoded transaction bytes

    Raises:
        ValidationError: If the transaction is not valid base64 or a link is malformed
    """
    data = _load(payload)
    if "transaction" not in data:
        raise ValidationError("transaction", "is required")
    try:
        return PostResponsePayload.model_validate(data)
    except PydanticValidationError as e:
        raise _from_pydantic(e)


class ActionResponseValidator:
    """
    Validator bound to the URL an interaction started from.

    Thin convenience over the module functions for callers that validate
    several responses of one interaction.
    """

    def __init__(self, request_url: str):
        self.request_url = request_url

    def validate_get(self, payload: Payload) -> Action:
        return validate_get(payload, self.request_url)

    def validate_next(self, payload: Payload, request_url: Optional[str] = None) -> Union[Action, CompletedAction]:
        return validate_next(payload, request_url or self.request_url)

    def validate_post(self, payload: Payload) -> PostResponsePayload:
        return validate_post(payload)
