"""
Data models for the Solana Actions SDK.

Wire payloads are parsed into these models at the validation boundary; nothing
past ``validation.py`` sees raw JSON.
"""
import re
import base64
import binascii
import urllib.parse
from enum import Enum
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

import base58
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import ValidationError

IMAGE_EXTENSIONS = (".svg", ".png", ".webp")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ParameterType(str, Enum):
    """Input widget types an ActionParameter may declare."""
    TEXT = "text"
    EMAIL = "email"
    URL = "url"
    NUMBER = "number"
    DATE = "date"
    DATETIME_LOCAL = "datetime-local"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TEXTAREA = "textarea"
    SELECT = "select"


OPTION_TYPES = frozenset({ParameterType.SELECT, ParameterType.CHECKBOX, ParameterType.RADIO})
DATE_TYPES = frozenset({ParameterType.DATE, ParameterType.DATETIME_LOCAL})


def is_valid_pubkey(value: str) -> bool:
    """Check that a string is a base58-encoded 32-byte public key."""
    try:
        return len(base58.b58decode(value)) == 32
    except ValueError:
        return False


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RuleEntry(_Model):
    """One actions.json rule mapping a site path to an Action API path"""
    path_pattern: str = Field(..., alias="pathPattern", min_length=1)
    api_path: str = Field(..., alias="apiPath", min_length=1)


class ActionsJson(_Model):
    """The actions.json document served at a domain root"""
    rules: List[RuleEntry]


class ParameterOption(_Model):
    """A selectable option of a select, radio or checkbox parameter"""
    label: str
    value: str
    selected: bool = False


class ActionParameter(_Model):
    """
    A user input a LinkedAction needs before it can be posted.

    ``min``/``max`` arrive as string or number; numeric strings are normalized
    to float, anything else (dates) stays a string.
    """
    type: ParameterType = ParameterType.TEXT
    name: str = Field(..., min_length=1)
    label: Optional[str] = None
    required: bool = False
    pattern: Optional[str] = None
    pattern_description: Optional[str] = Field(None, alias="patternDescription")
    min: Optional[Union[float, str]] = None
    max: Optional[Union[float, str]] = None
    options: List[ParameterOption] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, ParameterType):
            return value
        try:
            return ParameterType(value)
        except ValueError:
            return ParameterType.TEXT

    @field_validator("min", "max", mode="before")
    @classmethod
    def _normalize_bound(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError("min/max must be a string or a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return value
        raise ValueError("min/max must be a string or a number")

    @model_validator(mode="after")
    def _check_cross_fields(self) -> "ActionParameter":
        if self.pattern is not None:
            if not self.pattern_description:
                raise ValueError(
                    f"parameter '{self.name}' sets pattern without patternDescription"
                )
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"parameter '{self.name}' pattern does not compile: {e}")
        if self.type in OPTION_TYPES and not self.options:
            raise ValueError(
                f"parameter '{self.name}' of type {self.type.value} requires options"
            )
        if self.type == ParameterType.NUMBER:
            for bound in (self.min, self.max):
                if isinstance(bound, str):
                    raise ValueError(f"parameter '{self.name}' has non-numeric bound {bound!r}")
        return self

    def check_value(self, raw: Any) -> str:
        """
        Validate a user-supplied value and render it for URL substitution.

        Args:
            raw: Value from the input widget (list allowed for checkbox)

        Returns:
            Value as a string

        Raises:
            ValidationError: If the value violates the parameter constraints
        """
        if isinstance(raw, (list, tuple)):
            if self.type != ParameterType.CHECKBOX:
                raise ValidationError(self.name, "only checkbox parameters accept several values")
            values = [str(v) for v in raw]
        else:
            values = [str(raw)]

        if self.type in OPTION_TYPES:
            allowed = {option.value for option in self.options}
            for value in values:
                if value not in allowed:
                    raise ValidationError(self.name, f"{value!r} is not one of the options")
        text = ",".join(values)

        if self.pattern is not None and not re.fullmatch(self.pattern, text):
            raise ValidationError(self.name, self.pattern_description or "does not match pattern")

        if self.type == ParameterType.NUMBER:
            try:
                number = float(text)
            except ValueError:
                raise ValidationError(self.name, f"{text!r} is not a number")
            if isinstance(self.min, float) and number < self.min:
                raise ValidationError(self.name, f"must be at least {self.min:g}")
            if isinstance(self.max, float) and number > self.max:
                raise ValidationError(self.name, f"must be at most {self.max:g}")
        elif self.type in DATE_TYPES:
            # ISO dates and datetimes compare correctly as strings
            if isinstance(self.min, str) and text < self.min:
                raise ValidationError(self.name, f"must not be before {self.min}")
            if isinstance(self.max, str) and text > self.max:
                raise ValidationError(self.name, f"must not be after {self.max}")
        elif self.type not in OPTION_TYPES:
            if isinstance(self.min, float) and len(text) < self.min:
                raise ValidationError(self.name, f"must be at least {self.min:g} characters")
            if isinstance(self.max, float) and len(text) > self.max:
                raise ValidationError(self.name, f"must be at most {self.max:g} characters")

        if self.type == ParameterType.EMAIL and not _EMAIL_RE.match(text):
            raise ValidationError(self.name, "is not an email address")
        if self.type == ParameterType.URL:
            parsed = urllib.parse.urlparse(text)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValidationError(self.name, "is not an http(s) URL")
        return text


class LinkedAction(_Model):
    """A button of an Action, optionally collecting parameters"""
    href: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    parameters: List[ActionParameter] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "LinkedAction":
        seen = set()
        for parameter in self.parameters:
            if parameter.name in seen:
                raise ValueError(f"duplicate parameter name '{parameter.name}'")
            seen.add(parameter.name)
        return self

    def build_href(self, values: Optional[Mapping[str, Any]] = None) -> str:
        """
        Fill ``{name}`` placeholders in the href with user input.

        Args:
            values: Parameter values keyed by parameter name

        Returns:
            The href with every placeholder substituted

        Raises:
            ValidationError: If a value is missing or violates its parameter
        """
        values = values or {}
        href = self.href
        for parameter in self.parameters:
            raw = values.get(parameter.name)
            if raw is None or raw == "" or raw == []:
                if parameter.required:
                    raise ValidationError(parameter.name, "is required")
                text = ""
            else:
                text = parameter.check_value(raw)
            href = href.replace("{" + parameter.name + "}", urllib.parse.quote(text, safe=""))
        return href


class ActionLinks(_Model):
    actions: List[LinkedAction] = Field(default_factory=list)


class ActionError(_Model):
    """Error message an Action API attaches for display"""
    message: str


class _ActionBase(_Model):
    icon: str
    title: str
    description: str
    label: str = Field(..., min_length=1)
    disabled: bool = False
    links: Optional[ActionLinks] = None
    error: Optional[ActionError] = None

    @field_validator("icon")
    @classmethod
    def _check_icon(cls, value: str) -> str:
        parsed = urllib.parse.urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("icon must be an absolute http(s) URL")
        if not parsed.path.lower().endswith(IMAGE_EXTENSIONS):
            raise ValueError("icon must be an svg, png or webp image")
        return value

    @property
    def linked_actions(self) -> List[LinkedAction]:
        return list(self.links.actions) if self.links else []


class Action(_ActionBase):
    """An interactive Action offering one or more LinkedActions"""
    type: Literal["action"] = "action"

    def as_completed(self, message: Optional[str] = None) -> "CompletedAction":
        """
        Turn this Action into the terminal completed Action of a chain.

        Args:
            message: Optional message from the POST response shown as description
        """
        return CompletedAction(
            icon=self.icon,
            title=self.title,
            description=message or self.description,
            label=self.label,
            disabled=True,
        )


class CompletedAction(_ActionBase):
    """Terminal state of an action chain; offers no further actions"""
    type: Literal["completed"] = "completed"

    @model_validator(mode="after")
    def _check_no_actions(self) -> "CompletedAction":
        if self.links is not None and self.links.actions:
            raise ValueError("completed actions must not carry links.actions")
        return self


AnyAction = Annotated[Union[Action, CompletedAction], Field(discriminator="type")]


class PostNextActionLink(_Model):
    """Chained action fetched by POSTing the confirmed signature to href"""
    type: Literal["post"] = "post"
    href: str = Field(..., min_length=1)


class InlineNextActionLink(_Model):
    """Chained action embedded directly in the POST response"""
    type: Literal["inline"] = "inline"
    action: AnyAction


NextActionLink = Annotated[
    Union[PostNextActionLink, InlineNextActionLink], Field(discriminator="type")
]


class PostResponseLinks(_Model):
    next: Optional[NextActionLink] = None


class PostResponsePayload(_Model):
    """
    Response to an Action POST.

    ``transaction`` holds the decoded transaction bytes; on the wire it is
    base64. ``next`` absent means this is the last action of the chain.
    """
    transaction: bytes
    message: Optional[str] = None
    links: Optional[PostResponseLinks] = None

    @field_validator("transaction", mode="before")
    @classmethod
    def _decode_transaction(cls, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        if not isinstance(value, str):
            raise ValueError("transaction must be a base64 string")
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("transaction is not valid base64")
        if not decoded:
            raise ValueError("transaction is empty")
        return decoded

    @property
    def next(self) -> Optional[Union[PostNextActionLink, InlineNextActionLink]]:
        return self.links.next if self.links else None


class ActionPostRequest(_Model):
    """Body of the POST asking an Action API for a transaction"""
    account: str

    @field_validator("account")
    @classmethod
    def _check_account(cls, value: str) -> str:
        if not is_valid_pubkey(value):
            raise ValueError("account must be a base58 public key")
        return value


class NextActionPostRequest(ActionPostRequest):
    """Body of the POST to a chained callback after confirmation"""
    signature: str

    @field_validator("signature")
    @classmethod
    def _check_signature(cls, value: str) -> str:
        try:
            decoded = base58.b58decode(value)
        except ValueError:
            raise ValueError("signature must be base58")
        if len(decoded) != 64:
            raise ValueError("signature must decode to 64 bytes")
        return value
