"""HTTP client for the document-sharing backend."""
import logging
from typing import Any, Dict, Optional

import httpx

from docshare.errors import NetworkError, Unauthenticated

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Thin wrapper around httpx.AsyncClient that knows about the session.

    Authenticated calls read the token from the session at call time and fail
    locally with `Unauthenticated` before any request is built when no token
    is held. Every transport failure or non-success status becomes a
    `NetworkError` carrying the status code when there is one.
    """

    def __init__(
        self,
        session,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def _get_headers(self, auth: bool) -> Dict[str, str]:
        """Get headers with authentication if the call requires it."""
        headers = {}
        if auth:
            token = self.session.token
            if not token:
                raise Unauthenticated()
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(self, method: str, path: str, *, auth: bool = True, **kwargs: Any) -> httpx.Response:
        headers = self._get_headers(auth)
        headers.update(kwargs.pop("headers", None) or {})
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out: {e}")
            raise NetworkError(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(f"Request to {path} failed: {e}") from e

        if response.status_code == 401 and auth:
            logger.warning(f"{method} {path} rejected the session token")
            raise Unauthenticated("Session expired or token rejected")
        if response.status_code >= 400:
            logger.error(f"{method} {path} returned status {response.status_code}")
            raise NetworkError(
                f"Backend returned status {response.status_code}",
                status=response.status_code,
            )
        return response

    async def get_json(self, path: str, *, auth: bool = True, **kwargs: Any) -> Any:
        response = await self.request("GET", path, auth=auth, **kwargs)
        return _json_or_none(response)

    async def send_json(self, method: str, path: str, payload: Any = None, *, auth: bool = True) -> Any:
        response = await self.request(method, path, auth=auth, json=payload)
        return _json_or_none(response)

    async def aclose(self) -> None:
        await self._http.aclose()


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        # Some endpoints answer with a plain text confirmation
        return {"message": response.text}
