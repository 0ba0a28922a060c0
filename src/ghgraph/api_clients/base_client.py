"""
Base API Client for the GitHub REST API.

Performs one request/response round trip per call over a shared
httpx.AsyncClient, builds the authentication headers, decodes JSON bodies and
follows Link-header pagination for list endpoints.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..logging_utils import format_error_log, sanitize_for_logging
from ..utils.config_manager import ClientConfig
from .network_error_handler import NetworkError, classify_network_error

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


class APIClientError(Exception):
    """Base exception for GitHub API client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StatusError(APIClientError):
    """Response status outside [200, 299] and not 304."""

    def __init__(self, status_code: int, path: str, detail: str = ""):
        message = f"HTTP {status_code} for {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, status_code)
        self.path = path
        self.detail = detail


class AuthenticationError(StatusError):
    """Credentials missing, invalid or lacking permission (401/403)."""

    pass


class NotFoundError(StatusError):
    """The requested object or ref does not exist (404)."""

    pass


class RefConflictError(APIClientError):
    """The branch moved away from the commit a mutation was built on."""

    def __init__(
        self,
        branch: str,
        expected_sha: Optional[str],
        actual_sha: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        if actual_sha:
            message = (
                f"Branch '{branch}' is at {actual_sha}, expected {expected_sha}"
            )
        else:
            message = f"Branch '{branch}' rejected update from {expected_sha}"
        super().__init__(message, status_code)
        self.branch = branch
        self.expected_sha = expected_sha
        self.actual_sha = actual_sha


class TruncatedTreeError(APIClientError):
    """The remote cut a recursive tree listing short.

    Resubmitting such a listing as a complete tree would delete every entry
    the remote left out.
    """

    def __init__(self, tree_ish: str, entries: int):
        super().__init__(
            f"Tree listing for {tree_ish} is truncated ({entries} entries returned)"
        )
        self.tree_ish = tree_ish
        self.entries = entries


class PathExistsError(APIClientError):
    """A move target already exists on the branch."""

    def __init__(self, branch: str, path: str):
        super().__init__(f"{path} already exists on {branch}")
        self.branch = branch
        self.path = path


class GitHubAPIClient:
    """Async transport for the GitHub REST API."""

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            config: Client configuration (API root, credentials, timeout)
            transport: Optional httpx transport, used to plug in a test double
        """
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        assert self.config.api_config is not None
        return self.config.api_config.api_url.rstrip("/")

    @property
    def username(self) -> Optional[str]:
        assert self.config.auth_config is not None
        return self.config.auth_config.username

    def _build_headers(self) -> Dict[str, str]:
        """Build the default request headers, including token auth."""
        assert self.config.api_config is not None
        assert self.config.auth_config is not None

        headers = {
            "Accept": JSON_MEDIA_TYPE,
            "Content-Type": "application/json;charset=UTF-8",
            "X-GitHub-Api-Version": self.config.api_config.api_version,
        }
        if self.config.auth_config.token:
            headers["Authorization"] = f"Bearer {self.config.auth_config.token}"
        return headers

    def _build_auth(self) -> Optional[httpx.BasicAuth]:
        """Basic auth is only used when no token is configured."""
        auth_config = self.config.auth_config
        assert auth_config is not None
        if auth_config.token or not auth_config.username:
            return None
        return httpx.BasicAuth(auth_config.username, auth_config.password or "")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            assert self.config.api_config is not None
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._build_headers(),
                auth=self._build_auth(),
                timeout=self.config.api_config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        raw: bool = False,
    ) -> httpx.Response:
        """Send one request and raise on a non-success status.

        Raises:
            StatusError: If the status is outside [200, 299] and not 304
            NetworkError: If no response was received
        """
        headers = {"Accept": RAW_MEDIA_TYPE} if raw else None
        logger.debug(
            f"{method} {path} params={params} body={sanitize_for_logging(body)}"
        )

        try:
            response = await self._get_client().request(
                method, path, json=body, params=params, headers=headers
            )
        except httpx.RequestError as e:
            error = classify_network_error(e, path)
            logger.warning(
                format_error_log("API-HTTP-001", str(error), method=method)
            )
            raise error from e

        self._raise_for_status(response, path)
        return response

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        status = response.status_code
        if 200 <= status < 300 or status == 304:
            return

        detail = self._extract_error_detail(response)
        logger.debug(
            format_error_log(
                "API-HTTP-002", "Request failed", status=status, path=path
            )
        )
        if status in (401, 403):
            raise AuthenticationError(status, path, detail)
        if status == 404:
            raise NotFoundError(status, path, detail)
        raise StatusError(status, path, detail)

    def _extract_error_detail(self, response: httpx.Response) -> str:
        """Extract the error message GitHub puts in the JSON body."""
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                return str(error_data.get("message", ""))
            return ""
        except ValueError:
            return response.text[:200]

    @staticmethod
    def _parse_body(response: httpx.Response, raw: bool) -> Any:
        if raw:
            return response.text
        if not response.content:
            # 204 No Content and 304 Not Modified carry no body
            return True
        return response.json()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        raw: bool = False,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform one request and return the decoded body.

        Args:
            method: HTTP method (GET, POST, PATCH, PUT, DELETE)
            path: Path relative to the API root, or an absolute URL
            body: JSON-serializable request body
            raw: Return the response text instead of decoding JSON
            params: Query parameters

        Returns:
            Decoded JSON value, raw text, or True for an empty success body
        """
        response = await self._send(method, path, body=body, params=params, raw=raw)
        return self._parse_body(response, raw)

    async def request_with_headers(
        self,
        method: str,
        path: str,
        body: Any = None,
        raw: bool = False,
        params: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Any, httpx.Headers]:
        """Like request(), also returning the response headers."""
        response = await self._send(method, path, body=body, params=params, raw=raw)
        return self._parse_body(response, raw), response.headers

    async def request_all_pages(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Any]:
        """
        Fetch every page of a list endpoint.

        GitHub pagination uses the Link header:
        <https://api.github.com/...&page=2>; rel="next", <...&page=5>; rel="last"

        The rel="next" URL already carries the query string, so params are
        only sent with the first request.

        Returns:
            Concatenated items of all pages
        """
        assert self.config.api_config is not None
        query: Optional[Dict[str, Any]] = {
            "per_page": self.config.api_config.per_page,
            **(params or {}),
        }
        results: List[Any] = []
        next_path: Optional[str] = path

        while next_path:
            response = await self._send("GET", next_path, params=query)
            page = self._parse_body(response, raw=False)
            if isinstance(page, list):
                results.extend(page)
            else:
                results.append(page)

            next_path = response.links.get("next", {}).get("url")
            query = None

        return results


__all__ = [
    "APIClientError",
    "AuthenticationError",
    "GitHubAPIClient",
    "NetworkError",
    "NotFoundError",
    "PathExistsError",
    "RefConflictError",
    "StatusError",
    "TruncatedTreeError",
]
