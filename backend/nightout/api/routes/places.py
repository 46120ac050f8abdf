from fastapi import APIRouter, Query

from nightout.schemas.discovery import PlaceListResponse
from nightout.services import places_service

router = APIRouter(prefix="/places", tags=["Discovery"])


@router.get("/nearby", response_model=PlaceListResponse)
async def nearby(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_miles: float = Query(5, gt=0, le=100),
):
    """Highly rated restaurants, bars, cafes and attractions around a point."""
    places = await places_service.nearby_places(latitude, longitude, radius_miles)
    return PlaceListResponse(items=places)
