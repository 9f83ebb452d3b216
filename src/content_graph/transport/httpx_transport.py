"""HTTP transport for the content delivery and preview APIs."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from content_graph.config import ClientConfiguration
from content_graph.errors import ApiError, RateLimitError, UnparseableResponseError

logger = logging.getLogger(__name__)

RATE_LIMIT_RESET_HEADER = "X-Contentful-RateLimit-Reset"


class HttpxTransport:
    def __init__(
        self,
        config: ClientConfiguration,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            headers={"Authorization": f"Bearer {config.access_token}"},
            timeout=config.timeout,
            transport=transport,
        )

    async def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        logger.info("GET %s %s", path or "/", params or {})
        response = await self._client.get(path, params=params)
        if response.status_code >= 400:
            raise _error_for(response)
        try:
            return response.json()
        except ValueError as exc:
            raise UnparseableResponseError(
                f"Response for {path!r} is not valid JSON", data=response.text
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _error_for(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = None
    request_id = response.headers.get("X-Contentful-Request-Id")
    if response.status_code == 429:
        reset = response.headers.get(RATE_LIMIT_RESET_HEADER)
        time_before_reset = int(reset) if reset is not None and reset.isdigit() else None
        error = RateLimitError.from_response(response.status_code, body, time_before_reset=time_before_reset)
    else:
        error = ApiError.from_response(response.status_code, body)
    if error.request_id is None and request_id:
        error.request_id = request_id
    logger.error("Request failed: %s", error)
    return error
