"""
SeatGeek Platform API client.
"""

from typing import Optional

import httpx

from nightout.core.config import get_settings
from nightout.infrastructure.http import JSONAPIClient


class SeatGeekClient(JSONAPIClient):
    provider = "seatgeek"
    base_url = "https://api.seatgeek.com/2"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(http=http, timeout=timeout)
        settings = get_settings()
        self.client_id = client_id if client_id is not None else settings.SEATGEEK_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else settings.SEATGEEK_CLIENT_SECRET
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id)

    async def search_events(
        self,
        latitude: float,
        longitude: float,
        radius_miles: int = 50,
        per_page: int = 100,
    ) -> list[dict]:
        params = {
            "client_id": self.client_id,
            "lat": str(latitude),
            "lon": str(longitude),
            "range": f"{radius_miles}mi",
            "per_page": str(per_page),
            "sort": "datetime_local.asc",
        }
        if self.client_secret:
            params["client_secret"] = self.client_secret
        data = await self.get_json("/events", params)
        return data.get("events") or []
