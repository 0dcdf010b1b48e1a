"""
Routing module for the Solana Actions SDK.

Resolves site paths to Action API endpoints using the rules of a domain's
actions.json, and unwraps blink / ``solana-action:`` URLs.
"""
from .pattern import MatchResult, match, validate_pattern, wildcard_count
from .resolver import ResolvedRoute, RuleTable, RuleTableHandle, resolve, validate_rule
from .blink import origin_of, unwrap_action_url, is_absolute_url

__all__ = [
    'MatchResult',
    'match',
    'validate_pattern',
    'wildcard_count',
    'ResolvedRoute',
    'RuleTable',
    'RuleTableHandle',
    'resolve',
    'validate_rule',
    'origin_of',
    'unwrap_action_url',
    'is_absolute_url',
]
