"""
Gateway Transport - Async HTTP client for the ledger gateway.

Two calls only: submit an invocation and check a transaction's status.
Failures are surfaced immediately as TransportError; nothing is retried
here and semantic errors in the JSON body are returned untouched.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from ..errors import RequestEncodingError, TransportError
from ..models import GatewayContext

STATUS_PATH_TEMPLATE = "/_services/transactions/{reference_id}"
DEFAULT_TIMEOUT = 30.0


class GatewayTransport:
    def __init__(
        self,
        context: GatewayContext,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.context = context
        self._client = httpx.AsyncClient(
            base_url=context.url,
            headers=dict(context.headers),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def submit(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST an encoded invocation to ``{url}{path}``."""
        logger.debug("gateway.submit path={}", path)
        return await self._request("POST", path, json=body)

    async def check_status(self, reference_id: str) -> dict[str, Any]:
        """GET the status of a transaction by its server reference id."""
        path = STATUS_PATH_TEMPLATE.format(reference_id=reference_id)
        return await self._request("GET", path)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            request = self._client.build_request(method, path, **kwargs)
        except (TypeError, ValueError) as exc:
            raise RequestEncodingError(f"{method} {path} body cannot be encoded: {exc}") from exc

        try:
            response = await self._client.send(request)
            data = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise TransportError(
                f"{method} {path} returned {type(data).__name__}, expected a JSON object"
            )
        return data
