"""
Management API Client - HTTP access to the Auth0 Management API v2.

Wraps a requests.Session with bearer authentication, JSON helpers and
uniform error reporting. Resource managers for log streams and hooks hang
off the client, so a single client handle is passed explicitly to every
resource operation.
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_USER_AGENT, ManagementConfig
from management.hook import HookManager
from management.log_stream import LogStreamManager

logger = logging.getLogger(__name__)


class ManagementError(Exception):
    """Error returned by the management API (any non-2xx response)."""

    def __init__(self, status_code: int, message: str, error: str = ""):
        self.status_code = status_code
        self.message = message
        self.error = error
        prefix = f"{status_code} {error}" if error else f"{status_code}"
        super().__init__(f"{prefix}: {message}")

    @classmethod
    def from_response(cls, response: requests.Response) -> "ManagementError":
        """
        Build an error from a failed HTTP response.

        The API reports failures as ``{"statusCode", "error", "message"}``;
        anything else falls back to the raw response text.
        """
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or (response.text or "")[:200]
        return cls(
            status_code=response.status_code,
            message=message or str(response.reason or ""),
            error=body.get("error", ""),
        )


def is_not_found(exc: BaseException) -> bool:
    """Check whether an exception is the API's not-found signal."""
    return (
        isinstance(exc, ManagementError)
        and exc.status_code == HTTPStatus.NOT_FOUND
    )


class ManagementClient:
    """
    Client for the management API.

    Authenticates either with a static API token or, when only client
    credentials are configured, with a token obtained through the
    client-credentials grant on first use.
    """

    def __init__(
        self,
        domain: str,
        api_token: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        audience: Optional[str] = None,
        timeout: int = 30,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        if domain.startswith("http://") or domain.startswith("https://"):
            self.base_url = domain.rstrip("/")
        else:
            self.base_url = f"https://{domain.rstrip('/')}"
        self.domain = domain
        self.audience = audience or f"{self.base_url}/api/v2/"
        self.timeout = timeout
        self._token = api_token or None
        self._client_id = client_id
        self._client_secret = client_secret

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": user_agent,
            }
        )

        self.log_streams = LogStreamManager(self)
        self.hooks = HookManager(self)

    @classmethod
    def from_config(cls, config: ManagementConfig) -> "ManagementClient":
        """Build a client from a ManagementConfig."""
        return cls(
            domain=config.domain,
            api_token=config.api_token,
            client_id=config.client_id,
            client_secret=config.client_secret,
            audience=config.audience,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_token(self) -> str:
        """Return the bearer token, fetching one with client credentials if needed."""
        if self._token:
            return self._token

        if not (self._client_id and self._client_secret):
            raise ValueError(
                "No API token configured and no client credentials to obtain one"
            )

        url = self._url("oauth/token")
        logger.debug(f"Requesting management API token from {url}")
        response = self.session.request(
            "POST",
            url,
            json={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "audience": self.audience,
            },
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            error = ManagementError.from_response(response)
            logger.error(f"Token request failed: {error}")
            raise error

        self._token = response.json()["access_token"]
        return self._token

    def request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform an API request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the tenant base URL
            json_body: Optional JSON payload
            params: Optional query string parameters

        Returns:
            The decoded JSON response, or None for empty responses.

        Raises:
            ManagementError: On non-2xx responses
            requests.RequestException: On connection-level failures
        """
        url = self._url(path)
        headers = {"Authorization": f"Bearer {self._get_token()}"}
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json=json_body,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise

        if response.status_code >= 400:
            error = ManagementError.from_response(response)
            if error.status_code == HTTPStatus.NOT_FOUND:
                logger.debug(f"{method} {url} -> 404")
            else:
                logger.error(f"{method} {url} -> {error}")
            raise error

        if not response.content:
            return None
        return response.json()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, data: Any = None) -> Any:
        return self.request("POST", path, json_body=data)

    def patch(self, path: str, data: Any = None) -> Any:
        return self.request("PATCH", path, json_body=data)

    def delete(self, path: str, data: Any = None) -> Any:
        return self.request("DELETE", path, json_body=data)
