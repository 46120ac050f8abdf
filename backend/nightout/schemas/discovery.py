"""
Schemas for artist / team search and nearby places.
"""

from typing import Optional

from pydantic import BaseModel

from nightout.models.event import EventCategory


class Artist(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    genres: list[str] = []
    upcoming_events: int = 0


class SportsTeam(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    sport: str
    league: str
    upcoming_events: int = 0


class Place(BaseModel):
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    rating: Optional[float] = None
    price_level: Optional[int] = None
    thumbnail_url: Optional[str] = None
    category: EventCategory
    types: list[str] = []
    is_open: Optional[bool] = None


class ArtistListResponse(BaseModel):
    items: list[Artist]


class TeamListResponse(BaseModel):
    items: list[SportsTeam]


class PlaceListResponse(BaseModel):
    items: list[Place]
