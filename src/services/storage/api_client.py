"""
Asynchronous HTTP client for the recordings server.

Uses ``httpx.AsyncClient`` so every request is a suspension point on the
application's event loop.
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class APIError(Exception):
    """API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "parse".
    ``status_code`` is set for "http" errors.
    """

    def __init__(
        self,
        message: str,
        category: str = "network",
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)


def _error_detail(response: httpx.Response) -> str:
    """Pull the server's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("error") or body.get("detail")
        if detail:
            return str(detail)
    return response.text or f"HTTP {response.status_code}"


class RecordingsAPIClient:
    """Thin asynchronous wrapper around httpx for the recordings endpoints.

    All methods return parsed JSON or raise ``APIError``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Origin of the recordings server.
            timeout: Request timeout in seconds; None disables it.
            transport: Optional transport override (tests, ASGI apps).
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout, transport=transport
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with categorized error handling.

        Args:
            method: HTTP method name ("get", "post", "delete").
            path: API endpoint path (e.g. "/api/recordings").
            **kwargs: Passed through to httpx (files, params, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = await getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                f"Recordings server is not reachable at {self._base_url}",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError("Request timed out", category="timeout") from None
        except httpx.HTTPStatusError as exc:
            raise APIError(
                _error_detail(exc.response),
                category="http",
                status_code=exc.response.status_code,
            ) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- recordings --

    async def list_recordings(self) -> list[dict]:
        resp = await self._request("get", "/api/recordings")
        try:
            return resp.json()
        except ValueError as exc:
            raise APIError(f"Invalid JSON in recordings list: {exc}", category="parse") from None

    async def upload_recording(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        field: str = "video",
    ) -> httpx.Response:
        """Upload one capture as a single-field multipart body."""
        return await self._request(
            "post",
            "/api/recordings",
            files={field: (filename, data, content_type)},
        )

    async def delete_recording(self, recording_id: str | int) -> None:
        await self._request("delete", f"/api/recordings/{recording_id}")

    # -- static assets --

    def asset_url(self, filepath: str) -> str:
        """Absolute URL of a stored recording (playback and download)."""
        return f"{self._base_url}/{filepath.lstrip('/')}"

    async def aclose(self) -> None:
        await self._client.aclose()
