"""
actions.json rule resolution.

Maps an incoming site path onto the Action API endpoint declared for it. A rule
table is an immutable snapshot; reloading actions.json swaps the whole snapshot
through a ``RuleTableHandle`` so concurrent resolutions never see a half-updated
table.
"""
import json
import logging
import threading
import urllib.parse
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvalidPatternError, ValidationError
from ..models import ActionsJson, RuleEntry
from .blink import is_absolute_url, origin_of
from .pattern import GLOB, SINGLE, UNSUPPORTED, match, split_segments, validate_pattern, wildcard_count

logger = logging.getLogger(__name__)

QueryInput = Union[None, str, Mapping[str, str], Sequence[Tuple[str, str]]]


@dataclass(frozen=True)
class ResolvedRoute:
    """
    Destination of a resolved request.

    Attributes:
        api_path: Root-relative path or absolute URL of the Action API, without query
        query: Query parameters in order, request parameters merged last
    """
    api_path: str
    query: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        if not self.query:
            return self.api_path
        return f"{self.api_path}?{urllib.parse.urlencode(list(self.query.items()))}"


def _parse_query(query: QueryInput) -> Dict[str, str]:
    if not query:
        return {}
    if isinstance(query, str):
        return dict(urllib.parse.parse_qsl(query.lstrip("?"), keep_blank_values=True))
    if isinstance(query, Mapping):
        return {str(k): str(v) for k, v in query.items()}
    return {str(k): str(v) for k, v in query}


def _is_root_relative_or_absolute(value: str) -> bool:
    if urllib.parse.urlparse(value).scheme:
        return is_absolute_url(value)
    return value.startswith("/") and not value.startswith("//")


def validate_rule(rule: RuleEntry) -> None:
    """
    Check one rule for configuration errors.

    Patterns using the unsupported ``?`` operator are kept (they never match)
    but logged.

    Raises:
        InvalidPatternError: If either side of the rule is unusable
    """
    for value in (rule.path_pattern, rule.api_path):
        if not _is_root_relative_or_absolute(value):
            raise InvalidPatternError(value, "must be an absolute URL or start with '/'")

    pattern_path = urllib.parse.urlparse(rule.path_pattern).path or "/"
    problems = validate_pattern(rule.path_pattern)
    fatal = [p for p in problems if "'?'" not in p]
    if fatal:
        raise InvalidPatternError(rule.path_pattern, "; ".join(fatal))
    if len(fatal) != len(problems):
        logger.warning("Rule pattern %s uses unsupported '?' operator and will never match",
                       rule.path_pattern)

    api_path = urllib.parse.urlparse(rule.api_path).path or "/"
    api_problems = [p for p in validate_pattern(api_path) if "'?'" not in p]
    if api_problems:
        raise InvalidPatternError(rule.api_path, "; ".join(api_problems))
    if wildcard_count(api_path) > wildcard_count(pattern_path):
        raise InvalidPatternError(
            rule.api_path, "apiPath uses more wildcards than pathPattern"
        )


def _substitute(api_path: str, captures: Sequence[str]) -> str:
    segments = []
    remaining = iter(captures)
    for segment in split_segments(api_path):
        if segment in (SINGLE, GLOB):
            value = next(remaining, "")
            if segment == GLOB and not value:
                continue
            segments.append(value)
        else:
            segments.append(segment)
    path = "/".join(segments)
    return path or "/"


def _build_route(api_path: str, captures: Sequence[str], request_query: Dict[str, str]) -> ResolvedRoute:
    destination = urllib.parse.urlparse(api_path)
    path = _substitute(destination.path or "/", captures)
    if destination.scheme:
        base = f"{destination.scheme}://{destination.netloc}{path}"
    else:
        base = path

    query = _parse_query(destination.query)
    query.update(request_query)
    return ResolvedRoute(api_path=base, query=query)


def _rule_pattern_path(rule: RuleEntry, request_origin: str) -> Optional[str]:
    if UNSUPPORTED in rule.path_pattern:
        return None
    pattern = urllib.parse.urlparse(rule.path_pattern)
    if not pattern.scheme:
        return rule.path_pattern
    # Absolute patterns only apply to absolute requests on the same origin
    if not request_origin or origin_of(rule.path_pattern) != request_origin:
        return None
    return pattern.path or "/"


def resolve(rules: Iterable[RuleEntry], request_path: str,
            request_query: QueryInput = None) -> Optional[ResolvedRoute]:
    """
    Resolve a request against rules in order; the first match wins.

    Args:
        rules: Rule entries in configured order
        request_path: Request path or absolute URL, optionally with a query string
        request_query: Extra query parameters; these win over the path's own query

    Returns:
        ResolvedRoute, or None when no rule maps this path
    """
    request = urllib.parse.urlparse(request_path)
    request_origin = origin_of(request_path)
    path = request.path or "/"

    query = _parse_query(request.query)
    query.update(_parse_query(request_query))

    for rule in rules:
        pattern_path = _rule_pattern_path(rule, request_origin)
        if pattern_path is None:
            continue
        result = match(pattern_path, path)
        if result.matched:
            route = _build_route(rule.api_path, result.captures, query)
            logger.debug("Resolved %s via %s to %s", path, rule.path_pattern, route.api_path)
            return route
    return None


class RuleTable:
    """Validated, immutable, ordered actions.json rule table"""

    def __init__(self, rules: Iterable[RuleEntry] = ()):
        rules = tuple(rules)
        for rule in rules:
            validate_rule(rule)
        self._rules: Tuple[RuleEntry, ...] = rules

    @classmethod
    def from_json(cls, document: Union[str, bytes, Mapping]) -> "RuleTable":
        """
        Build a table from an actions.json document.

        Args:
            document: JSON text or an already-parsed mapping

        Raises:
            ValidationError: If the document is not a valid actions.json
            InvalidPatternError: If a rule is unusable
        """
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except ValueError as e:
                raise ValidationError("actions.json", f"not valid JSON: {e}")
        try:
            parsed = ActionsJson.model_validate(document)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "actions.json"
            raise ValidationError(location, first["msg"])
        return cls(parsed.rules)

    @property
    def rules(self) -> Tuple[RuleEntry, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[RuleEntry]:
        return iter(self._rules)

    def resolve(self, request_path: str, request_query: QueryInput = None) -> Optional[ResolvedRoute]:
        return resolve(self._rules, request_path, request_query)


class RuleTableHandle:
    """
    Atomically swappable reference to the current rule table.

    Readers take one snapshot per resolution; writers replace the snapshot
    as a whole.
    """

    def __init__(self, table: Optional[RuleTable] = None):
        self._table = table if table is not None else RuleTable()
        self._lock = threading.RLock()

    @property
    def current(self) -> RuleTable:
        return self._table

    def swap(self, table: RuleTable) -> RuleTable:
        """
        Replace the current table.

        Returns:
            The table that was replaced
        """
        with self._lock:
            previous, self._table = self._table, table
        logger.info("Swapped rule table (%d rules -> %d rules)", len(previous), len(table))
        return previous

    def load(self, document: Union[str, bytes, Mapping]) -> RuleTable:
        """Validate an actions.json document and swap it in."""
        table = RuleTable.from_json(document)
        self.swap(table)
        return table

    def resolve(self, request_path: str, request_query: QueryInput = None) -> Optional[ResolvedRoute]:
        table = self._table
        return table.resolve(request_path, request_query)
