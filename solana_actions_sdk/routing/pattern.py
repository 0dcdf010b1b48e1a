"""
Path pattern matching for actions.json rules.

Patterns are ``/``-separated. ``*`` matches exactly one non-empty segment and
``**`` matches the rest of the path (zero or more characters, separators
included). ``**`` may only appear as the final segment. ``?`` is not a
supported operator: patterns containing it never match.
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from ..exceptions import InvalidPatternError

SINGLE = "*"
GLOB = "**"
UNSUPPORTED = "?"


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of matching one path against one pattern.

    Attributes:
        matched: Whether the path matched
        captures: Wildcard captures in pattern order
    """
    matched: bool
    captures: Tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = MatchResult(False)


def split_segments(path: str) -> List[str]:
    return path.split("/")


def validate_pattern(pattern: str) -> List[str]:
    """
    Collect the problems that make a pattern unusable in a rule table.

    Args:
        pattern: Path pattern to check

    Returns:
        Human-readable problems; empty when the pattern is valid
    """
    problems = []
    if UNSUPPORTED in pattern:
        problems.append("'?' is not a supported operator")
    segments = split_segments(pattern)
    for index, segment in enumerate(segments):
        if segment == GLOB:
            if index != len(segments) - 1:
                problems.append("'**' must be the final segment")
        elif segment != SINGLE and SINGLE in segment:
            problems.append(f"wildcard inside segment {segment!r}")
    return problems


def _check_structure(pattern: str) -> List[str]:
    segments = split_segments(pattern)
    for index, segment in enumerate(segments):
        if segment == GLOB and index != len(segments) - 1:
            raise InvalidPatternError(pattern, "'**' must be the final segment")
        if segment not in (SINGLE, GLOB) and SINGLE in segment:
            raise InvalidPatternError(pattern, f"wildcard inside segment {segment!r}")
    return segments


def wildcard_count(pattern: str) -> int:
    """Number of ``*``/``**`` operators in a pattern."""
    return sum(1 for segment in split_segments(pattern) if segment in (SINGLE, GLOB))


def match(pattern: str, path: str) -> MatchResult:
    """
    Match a path against a pattern.

    Args:
        pattern: Rule path pattern
        path: Request path (no query string)

    Returns:
        MatchResult with the captures of every wildcard

    Raises:
        InvalidPatternError: If the pattern is structurally invalid
    """
    if UNSUPPORTED in pattern:
        return NO_MATCH

    pattern_segments = _check_structure(pattern)
    path_segments = split_segments(path)

    has_glob = pattern_segments[-1] == GLOB
    fixed = pattern_segments[:-1] if has_glob else pattern_segments

    if has_glob:
        if len(path_segments) < len(fixed):
            return NO_MATCH
    elif len(path_segments) != len(fixed):
        return NO_MATCH

    captures = []
    for expected, actual in zip(fixed, path_segments):
        if expected == SINGLE:
            if not actual:
                return NO_MATCH
            captures.append(actual)
        elif expected != actual:
            return NO_MATCH

    if has_glob:
        captures.append("/".join(path_segments[len(fixed):]))

    return MatchResult(True, tuple(captures))
