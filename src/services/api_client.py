"""API Client - shared HTTP transport for the videovote backend."""

import logging
from typing import Any, Optional

import httpx

from services.errors import ApiError, TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 30.0

_UNDECODABLE = object()


class ApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` bound to ``<api_url>/api/v1``.

    Successful responses are decoded to JSON (``None`` for an empty body).
    Non-2xx responses raise ``ApiError`` with the decoded body so callers can
    classify them; network and decode failures raise ``TransportError``.
    Nothing is retried.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            api_url: Backend origin, e.g. http://localhost:8080
            timeout: Transport timeout in seconds
            transport: Optional custom transport (tests use httpx.MockTransport)
        """
        self.api_url = api_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=f"{self.api_url}{API_PREFIX}",
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Raises:
            ApiError: If the backend answered with a non-2xx status
            TransportError: If the request failed or the body is not JSON
        """
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug(f"{method} {path}")
        try:
            response = await self.client.request(
                method,
                path,
                headers=headers,
                json=json,
                params=params,
                data=data,
                files=files,
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError() from e

        body = self._decode(response)
        if response.is_success:
            if body is _UNDECODABLE:
                raise TransportError("Respuesta inválida del servidor.", status=response.status_code)
            return body

        logger.warning(f"{method} {path} returned {response.status_code}")
        raise ApiError(response.status_code, None if body is _UNDECODABLE else body)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # Plain-text error bodies are still useful as the literal message
            if not response.is_success:
                return response.text
            return _UNDECODABLE

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

