"""
Artist and sports team discovery, used during onboarding.
"""

from fastapi import APIRouter, Query

from nightout.schemas.discovery import ArtistListResponse, TeamListResponse
from nightout.services import artist_service

router = APIRouter(prefix="/artists", tags=["Discovery"])


@router.get("/popular", response_model=ArtistListResponse)
async def popular_artists():
    return ArtistListResponse(items=await artist_service.popular_artists())


@router.get("/search", response_model=ArtistListResponse)
async def search_artists(q: str = Query(..., min_length=1, max_length=100)):
    return ArtistListResponse(items=await artist_service.search_artists(q))


@router.get("/sports/popular", response_model=TeamListResponse)
async def popular_teams():
    return TeamListResponse(items=await artist_service.popular_teams())


@router.get("/sports/search", response_model=TeamListResponse)
async def search_teams(q: str = Query(..., min_length=1, max_length=100)):
    return TeamListResponse(items=await artist_service.search_teams(q))
