"""
Google Places (legacy Nearby Search) client.
"""

from typing import Optional

import httpx

from nightout.core.config import get_settings
from nightout.core.logging import get_logger
from nightout.infrastructure.http import JSONAPIClient

logger = get_logger(__name__)

OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GooglePlacesClient(JSONAPIClient):
    provider = "google_places"
    base_url = "https://maps.googleapis.com/maps/api/place"

    def __init__(
        self,
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(http=http, timeout=timeout)
        self.api_key = api_key if api_key is not None else get_settings().GOOGLE_PLACES_API_KEY

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        return (
            f"{self.base_url}/photo?maxwidth={max_width}"
            f"&photo_reference={photo_reference}&key={self.api_key}"
        )

    async def nearby_search(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        place_type: Optional[str] = None,
    ) -> list[dict]:
        params = {
            "location": f"{latitude},{longitude}",
            "radius": str(int(radius_meters)),
            "key": self.api_key,
        }
        if place_type:
            params["type"] = place_type
        data = await self.get_json("/nearbysearch/json", params)

        status = data.get("status")
        if status not in OK_STATUSES:
            logger.error("google_places_error", status=status, place_type=place_type)
            return []
        return data.get("results") or []
