"""
Helpers for Action URLs as they appear in the wild.

An Action can be referenced directly by its https URL, by a
``solana-action:<url>`` URL, or through a blink/interstitial URL that carries
the Action URL in its ``action`` query parameter.
"""
import urllib.parse

from ..exceptions import ValidationError

ACTION_SCHEME = "solana-action"
ACTION_QUERY_PARAM = "action"
_MAX_UNWRAP_DEPTH = 4


def origin_of(url: str) -> str:
    """
    Return ``scheme://host[:port]`` for an absolute URL, lower-cased.

    Default ports are dropped so ``https://a.com:443`` and ``https://a.com``
    share an origin. Returns an empty string for relative URLs.
    """
    parsed = urllib.parse.urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return ""
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port
    if port is None or (scheme, port) in (("https", 443), ("http", 80)):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def is_absolute_url(value: str) -> bool:
    parsed = urllib.parse.urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_action_reference(value: str) -> bool:
    value = value.strip()
    return value.lower().startswith(ACTION_SCHEME + ":") or is_absolute_url(value)


def unwrap_action_url(url: str) -> str:
    """
    Find the Action API URL referenced by a URL.

    Args:
        url: ``solana-action:`` URL, blink URL with ``?action=``, or plain
             https Action URL

    Returns:
        The absolute http(s) Action API URL

    Raises:
        ValidationError: If no Action URL can be found
    """
    current = url.strip()
    for _ in range(_MAX_UNWRAP_DEPTH):
        if current.lower().startswith(ACTION_SCHEME + ":"):
            current = urllib.parse.unquote(current[len(ACTION_SCHEME) + 1:])
            continue

        if not is_absolute_url(current):
            raise ValidationError("url", f"not an Action URL: {url}")

        params = urllib.parse.parse_qs(urllib.parse.urlparse(current).query)
        wrapped = params.get(ACTION_QUERY_PARAM)
        # `action` may also be an ordinary parameter of the Action API itself
        if not wrapped or not _is_action_reference(wrapped[0]):
            return current
        current = wrapped[0].strip()
    raise ValidationError("url", f"too many nested action URLs in {url}")
