"""
Ticketmaster Discovery API v2 client (events and attractions).
"""

from typing import Optional

import httpx

from nightout.core.config import get_settings
from nightout.infrastructure.http import JSONAPIClient


def pick_image(images: Optional[list[dict]]) -> Optional[str]:
    """Prefer a mid-sized image (300-800px wide), else the first one."""
    if not images:
        return None
    for image in images:
        if 300 <= (image.get("width") or 0) <= 800:
            return image.get("url")
    return images[0].get("url")


class TicketmasterClient(JSONAPIClient):
    provider = "ticketmaster"
    base_url = "https://app.ticketmaster.com/discovery/v2"

    def __init__(
        self,
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(http=http, timeout=timeout)
        self.api_key = api_key if api_key is not None else get_settings().TICKETMASTER_API_KEY

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search_events(
        self,
        latitude: float,
        longitude: float,
        radius_miles: int = 50,
        size: int = 100,
    ) -> list[dict]:
        data = await self.get_json(
            "/events.json",
            {
                "apikey": self.api_key,
                "latlong": f"{latitude},{longitude}",
                "radius": str(radius_miles),
                "unit": "miles",
                "size": str(size),
                "sort": "date,asc",
            },
        )
        return (data.get("_embedded") or {}).get("events") or []

    async def search_attractions(
        self,
        keyword: str,
        classification: str,
        size: int = 20,
        sort: Optional[str] = "relevance,desc",
    ) -> list[dict]:
        params = {
            "apikey": self.api_key,
            "keyword": keyword,
            "classificationName": classification,
            "size": str(size),
        }
        if sort:
            params["sort"] = sort
        data = await self.get_json("/attractions.json", params)
        return (data.get("_embedded") or {}).get("attractions") or []
