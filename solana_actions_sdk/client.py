"""
ActionsClient - HTTP transport for Solana Action APIs.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import (
    ACTIONS_CORS_HEADERS, ACTION_VERSION, ACTION_VERSION_HEADER, ClientConfig, validate_https_url,
)
from .exceptions import TransportError
from .models import ActionPostRequest, NextActionPostRequest
from .routing.blink import origin_of


class ActionsClient:
    """
    Client for talking to Action APIs over HTTPS.

    This client handles:
    1. Fetching a domain's actions.json
    2. GETting Actions and POSTing for transactions
    3. POSTing confirmed signatures to chained callbacks
    4. Checking that an endpoint sends the Actions CORS headers

    Responses are returned as decoded JSON; validation is the caller's job.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ActionsClient

        Args:
            config: Client settings (defaults to ClientConfig.from_env())
            session: Pre-configured requests session (optional)
            logger: Optional logger instance to use for debug/info logging
        """
        self.config = config or ClientConfig.from_env()
        self.timeout = self.config.timeout
        self.logger = logger or logging.getLogger(__name__)

        if session is None:
            session = requests.Session()
            # Only idempotent requests are retried; a repeated POST could
            # hand out a second transaction
            retries = Retry(
                total=self.config.retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET", "OPTIONS"],
                raise_on_status=False,
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session
        self.session.headers.update({
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "User-Agent": self.config.user_agent,
            ACTION_VERSION_HEADER: ACTION_VERSION,
        })

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        validate_https_url("url", url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            self.logger.error("%s %s failed: %s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}") from e
        return response

    def _json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = self._request(method, url, **kwargs)
        if response.status_code >= 400:
            message = self._error_message(response)
            self.logger.warning("%s %s returned %d: %s", method, url, response.status_code, message)
            raise TransportError(message, status_code=response.status_code)

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            self.logger.warning("Unexpected Content-Type from %s: %s", url, content_type)
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {url}: {e}", status_code=response.status_code) from e
        if not isinstance(data, dict):
            raise TransportError(f"Expected a JSON object from {url}", status_code=response.status_code)
        return data

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        # Action APIs report errors as {"message": "..."}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return f"HTTP {response.status_code}"

    def get_actions_json(self, origin: str) -> Dict[str, Any]:
        """
        Fetch the actions.json document of a domain.

        Args:
            origin: Any URL on the domain; only its origin is used

        Returns:
            Decoded actions.json
        """
        root = origin_of(origin)
        if not root:
            raise TransportError(f"Not an absolute URL: {origin}")
        self.logger.debug("Fetching actions.json from %s", root)
        return self._json("GET", f"{root}/actions.json")

    def get_action(self, url: str) -> Dict[str, Any]:
        """GET an Action."""
        self.logger.debug("Fetching action %s", url)
        return self._json("GET", url)

    def post_action(self, href: str, account: str) -> Dict[str, Any]:
        """
        POST the user's account to a LinkedAction href.

        Raises:
            ValueError: If the account is not a base58 public key
            TransportError: If the request fails
        """
        body = ActionPostRequest(account=account)
        self.logger.debug("Posting action %s for %s…", href, account[:6])
        return self._json("POST", href, json=body.model_dump())

    def post_next_action(self, href: str, account: str, signature: str) -> Dict[str, Any]:
        """POST a confirmed signature to a chained callback."""
        body = NextActionPostRequest(account=account, signature=signature)
        self.logger.debug("Posting callback %s for signature %s…", href, signature[:6])
        return self._json("POST", href, json=body.model_dump())

    def check_cors(self, url: str) -> List[str]:
        """
        Send an OPTIONS request and report missing Actions CORS headers.

        Returns:
            Names of headers that are missing or differ; empty when compliant
        """
        response = self._request("OPTIONS", url)
        problems = []
        for name, expected in ACTIONS_CORS_HEADERS.items():
            actual = response.headers.get(name)
            if actual is None:
                problems.append(name)
                continue
            if name == "Access-Control-Allow-Origin":
                if actual.strip() != expected:
                    problems.append(name)
            else:
                have = {v.strip().lower() for v in actual.split(",")}
                want = {v.strip().lower() for v in expected.split(",")}
                if not want <= have:
                    problems.append(name)
        if problems:
            self.logger.warning("%s is missing CORS headers: %s", url, ", ".join(problems))
        return problems

    def close(self) -> None:
        self.session.close()
