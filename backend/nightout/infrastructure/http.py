"""
Thin JSON-over-HTTP base for the third-party APIs.

Each call either uses the injected client (tests pass one backed by
httpx.MockTransport) or opens a short-lived one with the configured timeout.
Non-2xx responses raise httpx.HTTPStatusError and bodies that are not a JSON
object raise httpx.DecodingError, so callers only ever catch httpx.HTTPError.
"""

from typing import Any, Optional

import httpx

from nightout.core.config import get_settings
from nightout.core.metrics import record_upstream


class JSONAPIClient:
    provider: str = "upstream"
    base_url: str = ""

    def __init__(self, http: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._http = http
        self._timeout = timeout if timeout is not None else get_settings().HTTP_TIMEOUT_SECONDS

    async def get_json(self, path: str, params: dict[str, Any]) -> dict:
        url = f"{self.base_url}{path}"
        try:
            if self._http is not None:
                response = await self._http.get(url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params)
            response.raise_for_status()
            try:
                body = response.json()
            except ValueError as e:
                raise httpx.DecodingError(f"{self.provider} returned a non-JSON body", request=response.request) from e
            if not isinstance(body, dict):
                raise httpx.DecodingError(f"{self.provider} returned a non-object body", request=response.request)
        except httpx.HTTPError:
            record_upstream(self.provider, ok=False)
            raise
        record_upstream(self.provider, ok=True)
        return body
