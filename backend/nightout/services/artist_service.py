"""
Artist and sports team discovery backed by Ticketmaster attractions.

Without an API key, or when Ticketmaster fails, a built-in list filtered by
name is returned instead. The "popular" lists cost one upstream call per
name, so they are cached for REDIS_CACHE_TTL seconds (Redis, or in process
when Redis is off).
"""

import asyncio
from typing import Optional

import httpx

from nightout.core.logging import get_logger
from nightout.infrastructure.ticketmaster import TicketmasterClient, pick_image
from nightout.schemas.discovery import Artist, SportsTeam
from nightout.services.cache_service import discovery_key, get_cached, set_cached

logger = get_logger(__name__)

POPULAR_ARTIST_NAMES = [
    "Taylor Swift", "Beyoncé", "Drake", "Bad Bunny", "The Weeknd",
    "Ed Sheeran", "Coldplay", "Billie Eilish", "Harry Styles", "Dua Lipa",
    "Kendrick Lamar", "Bruno Mars", "SZA", "Morgan Wallen", "Post Malone",
    "Travis Scott", "Doja Cat", "Olivia Rodrigo", "Adele", "Rihanna",
    "Ariana Grande", "J. Cole", "Lady Gaga", "Kanye West",
]

FALLBACK_GENRES = ["Pop", "Hip-Hop", "R&B", "Rock", "Country", "Latin"]

POPULAR_TEAMS = [
    ("Dallas Cowboys", "NFL"),
    ("New England Patriots", "NFL"),
    ("Kansas City Chiefs", "NFL"),
    ("Green Bay Packers", "NFL"),
    ("San Francisco 49ers", "NFL"),
    ("Los Angeles Lakers", "NBA"),
    ("Golden State Warriors", "NBA"),
    ("Boston Celtics", "NBA"),
    ("Chicago Bulls", "NBA"),
    ("Miami Heat", "NBA"),
    ("New York Yankees", "MLB"),
    ("Los Angeles Dodgers", "MLB"),
    ("Boston Red Sox", "MLB"),
    ("Chicago Cubs", "MLB"),
    ("Toronto Maple Leafs", "NHL"),
    ("Montreal Canadiens", "NHL"),
    ("New York Rangers", "NHL"),
    ("Boston Bruins", "NHL"),
]
POPULAR_TEAMS_LOOKUP_LIMIT = 16

LEAGUE_SPORTS = {
    "NFL": "Football",
    "NBA": "Basketball",
    "MLB": "Baseball",
    "NHL": "Hockey",
    "MLS": "Soccer",
    "NCAA Football": "Football",
    "NCAA Basketball": "Basketball",
}

POPULAR_ARTISTS_KEY = discovery_key("popular_artists")
POPULAR_TEAMS_KEY = discovery_key("popular_teams")


def sport_for_league(league: str) -> str:
    return LEAGUE_SPORTS.get(league, "Sports")


def fallback_artists(query: Optional[str] = None) -> list[Artist]:
    artists = [
        Artist(
            id=f"popular-{i}",
            name=name,
            genres=[FALLBACK_GENRES[i % len(FALLBACK_GENRES)]] if query is not None else [],
        )
        for i, name in enumerate(POPULAR_ARTIST_NAMES)
    ]
    if query is None:
        return artists
    q = query.lower()
    return [a for a in artists if q in a.name.lower()]


def fallback_teams(query: Optional[str] = None) -> list[SportsTeam]:
    teams = POPULAR_TEAMS
    if query is not None:
        q = query.lower()
        teams = [t for t in teams if q in t[0].lower()]
    return [
        SportsTeam(id=f"team-{i}", name=name, sport=sport_for_league(league), league=league)
        for i, (name, league) in enumerate(teams)
    ]


def artist_from_attraction(attraction: dict) -> Artist:
    genres = []
    for classification in attraction.get("classifications") or []:
        name = (classification.get("genre") or {}).get("name") or (
            classification.get("subGenre") or {}
        ).get("name")
        if name and name not in genres:
            genres.append(name)
    return Artist(
        id=attraction["id"],
        name=attraction["name"],
        image_url=pick_image(attraction.get("images")),
        genres=genres,
        upcoming_events=(attraction.get("upcomingEvents") or {}).get("_total") or 0,
    )


def team_from_attraction(attraction: dict, league: Optional[str] = None) -> SportsTeam:
    if league is None:
        classification = (attraction.get("classifications") or [{}])[0]
        league = (
            (classification.get("subGenre") or {}).get("name")
            or (classification.get("genre") or {}).get("name")
            or "Sports"
        )
    return SportsTeam(
        id=attraction["id"],
        name=attraction["name"],
        image_url=pick_image(attraction.get("images")),
        sport=sport_for_league(league),
        league=league,
        upcoming_events=(attraction.get("upcomingEvents") or {}).get("_total") or 0,
    )


async def search_artists(query: str, client: Optional[TicketmasterClient] = None) -> list[Artist]:
    client = client or TicketmasterClient()
    if not client.configured:
        return fallback_artists(query)

    try:
        attractions = await client.search_attractions(query, "music")
    except httpx.HTTPError as e:
        logger.error("artist_search_failed", query=query, error=str(e))
        return fallback_artists(query)
    return [artist_from_attraction(a) for a in attractions]


async def search_teams(query: str, client: Optional[TicketmasterClient] = None) -> list[SportsTeam]:
    client = client or TicketmasterClient()
    if not client.configured:
        return fallback_teams(query)

    try:
        attractions = await client.search_attractions(query, "sports")
    except httpx.HTTPError as e:
        logger.error("team_search_failed", query=query, error=str(e))
        return fallback_teams(query)
    return [team_from_attraction(a) for a in attractions]


async def _first_attraction(client: TicketmasterClient, name: str, classification: str) -> Optional[dict]:
    try:
        attractions = await client.search_attractions(name, classification, size=1, sort=None)
    except httpx.HTTPError as e:
        logger.warning("popular_lookup_failed", name=name, error=str(e))
        return None
    return attractions[0] if attractions else None


async def popular_artists(client: Optional[TicketmasterClient] = None) -> list[Artist]:
    client = client or TicketmasterClient()
    if not client.configured:
        return fallback_artists()

    cached = await get_cached(POPULAR_ARTISTS_KEY)
    if cached:
        return [Artist(**a) for a in cached]

    found = await asyncio.gather(
        *(_first_attraction(client, name, "music") for name in POPULAR_ARTIST_NAMES)
    )
    artists = [artist_from_attraction(a) for a in found if a is not None]
    if not artists:
        return fallback_artists()

    await set_cached(POPULAR_ARTISTS_KEY, [a.model_dump() for a in artists])
    return artists


async def popular_teams(client: Optional[TicketmasterClient] = None) -> list[SportsTeam]:
    client = client or TicketmasterClient()
    if not client.configured:
        return fallback_teams()

    cached = await get_cached(POPULAR_TEAMS_KEY)
    if cached:
        return [SportsTeam(**t) for t in cached]

    candidates = POPULAR_TEAMS[:POPULAR_TEAMS_LOOKUP_LIMIT]
    found = await asyncio.gather(
        *(_first_attraction(client, name, "sports") for name, _ in candidates)
    )
    teams = [
        team_from_attraction(attraction, league)
        for attraction, (_, league) in zip(found, candidates)
        if attraction is not None
    ]
    if not teams:
        return fallback_teams()

    await set_cached(POPULAR_TEAMS_KEY, [t.model_dump() for t in teams])
    return teams
