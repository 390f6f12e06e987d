import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import Credential, DEFAULT_TIMEOUT
from ..errors import ApiError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Status code and decoded JSON body (``None`` when the body is not JSON)."""

    method: str
    path: str
    status_code: int
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> "ApiResponse":
        if not self.ok:
            detail = self.body.get("message") if isinstance(self.body, dict) else None
            raise ApiError(self.method, self.path, self.status_code, detail or self.text[:200] or None)
        return self


class GrafanaClient:
    """
    Async client for the Grafana HTTP API of a single instance.

    Every request carries the instance's bearer token and is bounded by
    ``timeout`` seconds end to end. The underlying connection pool is shared
    by all concurrent tasks of a run.
    """

    def __init__(self,
                 credential: Credential,
                 timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = credential.host
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {credential.api_key}",
                "Accept": "application/json",
                "User-Agent": "grafana-migrator",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "GrafanaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, json: Optional[Any] = None) -> ApiResponse:
        """Send one request; raise TransportError on connection or timeout failure."""
        method = method.upper()
        try:
            if json is None:
                resp = await self._client.request(method, path)
            else:
                resp = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as err:
            raise TransportError(method, f"{self.base_url}{path}", f"timed out ({err})") from err
        except httpx.TransportError as err:
            raise TransportError(method, f"{self.base_url}{path}", str(err) or type(err).__name__) from err

        try:
            body = resp.json()
        except ValueError:
            body = None

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return ApiResponse(method=method, path=path, status_code=resp.status_code,
                           body=body, text=resp.text)

    async def get(self, path: str) -> ApiResponse:
        return await self.request("GET", path)


__all__ = ["ApiResponse", "GrafanaClient"]
