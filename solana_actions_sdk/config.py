"""
Configuration for the Solana Actions SDK.

Holds client settings (read from the environment when not given explicitly)
and the protocol header constants Action API servers must send.
"""
import os
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .version import USER_AGENT

logger = logging.getLogger(__name__)

# Headers every Action API response, including actions.json, must carry
ACTIONS_CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Content-Encoding, Accept-Encoding",
}

ACTION_VERSION_HEADER = "X-Action-Version"
BLOCKCHAIN_IDS_HEADER = "X-Blockchain-Ids"
ACTION_VERSION = "2.4"
SOLANA_MAINNET_BLOCKCHAIN_ID = "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"


def with_cors_headers(headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Merge the required Actions CORS headers into a response header mapping.

    Args:
        headers: Existing response headers (optional)

    Returns:
        New header dict; the CORS values win over any existing ones
    """
    merged = dict(headers or {})
    merged.update(ACTIONS_CORS_HEADERS)
    return merged


def validate_https_url(name: str, url: str) -> str:
    """
    Require https for a remote URL, allowing plain http only for local hosts.

    Raises:
        ValueError: If the URL is not https and not local
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1")
    if parsed.scheme != "https" and not (is_local and parsed.scheme == "http"):
        raise ValueError(f"{name} must use https:// for security (got: {parsed.scheme}://)")
    return url


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings shared by the HTTP transport and the RPC client.

    Attributes:
        rpc_url: Solana JSON-RPC endpoint
        timeout: HTTP timeout in seconds
        retry_count: Retries for idempotent HTTP requests
        commitment: Commitment level used for blockhash and confirmation
        confirm_timeout: Seconds to wait for a signature to confirm
        poll_interval: Seconds between signature status polls
        user_agent: User-Agent header sent to Action APIs
    """
    rpc_url: str = DEFAULT_RPC_URL
    timeout: int = 30
    retry_count: int = 3
    commitment: str = "confirmed"
    confirm_timeout: float = 60.0
    poll_interval: float = 0.5
    user_agent: str = USER_AGENT

    def __post_init__(self):
        validate_https_url("rpc_url", self.rpc_url)
        if self.commitment not in ("processed", "confirmed", "finalized"):
            raise ValueError(f"Unknown commitment level: {self.commitment}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.retry_count < 0:
            raise ValueError("retry_count must not be negative")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Build a config from SOLANA_ACTIONS_* environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        return cls(
            rpc_url=os.environ.get("SOLANA_ACTIONS_RPC_URL") or DEFAULT_RPC_URL,
            timeout=_env_int("SOLANA_ACTIONS_TIMEOUT", 30),
            retry_count=_env_int("SOLANA_ACTIONS_RETRY_COUNT", 3),
            commitment=os.environ.get("SOLANA_ACTIONS_COMMITMENT") or "confirmed",
            confirm_timeout=_env_float("SOLANA_ACTIONS_CONFIRM_TIMEOUT", 60.0),
        )
