"""
Artist, team and places discovery without network access.
"""

import httpx
import pytest

from nightout.infrastructure.google_places import GooglePlacesClient
from nightout.infrastructure.ticketmaster import TicketmasterClient
from nightout.models.event import EventCategory
from nightout.services.artist_service import (
    POPULAR_ARTIST_NAMES,
    POPULAR_TEAMS,
    fallback_teams,
    popular_artists,
    popular_teams,
    search_artists,
    search_teams,
    team_from_attraction,
)
from nightout.services import cache_service
from nightout.services.cache_service import clear_local_cache, get_cached, set_cached
from nightout.services.places_service import category_for_types, nearby_places


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def html_page(request):
    return httpx.Response(200, text="<html><body>Bad Gateway</body></html>")


@pytest.fixture(autouse=True)
def empty_local_cache():
    clear_local_cache()
    yield
    clear_local_cache()


class TestFallbacks:
    @pytest.mark.asyncio
    async def test_popular_without_key(self):
        client = TicketmasterClient(api_key="")
        artists = await popular_artists(client)
        teams = await popular_teams(client)
        assert [a.name for a in artists] == POPULAR_ARTIST_NAMES
        assert len(teams) == len(POPULAR_TEAMS)

    @pytest.mark.asyncio
    async def test_search_filters_builtin_list(self):
        client = TicketmasterClient(api_key="")
        artists = await search_artists("swift", client)
        assert [a.name for a in artists] == ["Taylor Swift"]
        assert artists[0].genres

        teams = await search_teams("boston", client)
        assert {t.name for t in teams} == {"Boston Celtics", "Boston Red Sox", "Boston Bruins"}

    def test_team_sport_from_league(self):
        bruins = [t for t in fallback_teams("bruins")][0]
        assert (bruins.league, bruins.sport) == ("NHL", "Hockey")

    @pytest.mark.asyncio
    async def test_search_falls_back_on_upstream_error(self):
        def handler(request):
            return httpx.Response(500)

        async with mock_http(handler) as http:
            artists = await search_artists("adele", TicketmasterClient(api_key="key", http=http))
        assert [a.name for a in artists] == ["Adele"]

    @pytest.mark.asyncio
    async def test_search_falls_back_on_html_body(self):
        async with mock_http(html_page) as http:
            client = TicketmasterClient(api_key="key", http=http)
            artists = await search_artists("taylor", client)
            teams = await search_teams("celtics", client)

        assert [a.name for a in artists] == ["Taylor Swift"]
        assert [t.name for t in teams] == ["Boston Celtics"]

    @pytest.mark.asyncio
    async def test_popular_falls_back_on_html_body(self):
        async with mock_http(html_page) as http:
            client = TicketmasterClient(api_key="key", http=http)
            artists = await popular_artists(client)
            teams = await popular_teams(client)

        assert [a.name for a in artists] == POPULAR_ARTIST_NAMES
        assert len(teams) == len(POPULAR_TEAMS)


class TestTicketmasterAttractions:
    @pytest.mark.asyncio
    async def test_search_maps_attractions(self):
        def handler(request):
            assert request.url.params["classificationName"] == "music"
            assert request.url.params["keyword"] == "radiohead"
            return httpx.Response(
                200,
                json={
                    "_embedded": {
                        "attractions": [
                            {
                                "id": "K8v",
                                "name": "Radiohead",
                                "images": [{"url": "https://img.example.com/r.jpg", "width": 640}],
                                "classifications": [
                                    {"genre": {"name": "Rock"}},
                                    {"genre": {"name": "Rock"}},
                                ],
                                "upcomingEvents": {"_total": 7},
                            }
                        ]
                    }
                },
            )

        async with mock_http(handler) as http:
            artists = await search_artists("radiohead", TicketmasterClient(api_key="key", http=http))

        assert len(artists) == 1
        assert artists[0].id == "K8v"
        assert artists[0].genres == ["Rock"]
        assert artists[0].upcoming_events == 7
        assert artists[0].image_url == "https://img.example.com/r.jpg"

    def test_team_league_from_subgenre(self):
        team = team_from_attraction(
            {"id": "T1", "name": "Chicago Bulls", "classifications": [{"subGenre": {"name": "NBA"}}]}
        )
        assert (team.league, team.sport) == ("NBA", "Basketball")


class TestPlaces:
    @pytest.mark.parametrize(
        "types,expected",
        [
            (["bar", "point_of_interest"], EventCategory.BAR),
            (["cafe", "bar"], EventCategory.RESTAURANT),
            (["museum"], EventCategory.ARTS),
            (["park"], EventCategory.FESTIVAL),
            (["laundry"], EventCategory.OTHER),
        ],
    )
    def test_category_for_types(self, types, expected):
        assert category_for_types(types) == expected

    @pytest.mark.asyncio
    async def test_no_key_returns_nothing(self):
        assert await nearby_places(40.7, -74.0, client=GooglePlacesClient(api_key="")) == []

    @pytest.mark.asyncio
    async def test_html_body_returns_nothing(self):
        async with mock_http(html_page) as http:
            places = await nearby_places(40.7, -74.0, client=GooglePlacesClient(api_key="key", http=http))
        assert places == []

    @pytest.mark.asyncio
    async def test_malformed_results_are_skipped(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [
                        "junk",
                        {"place_id": "no-geometry", "name": "Ghost Bar", "rating": 4.8},
                        {
                            "place_id": "ok",
                            "name": "Late Lounge",
                            "rating": 4.4,
                            "types": ["night_club"],
                            "geometry": {"location": {"lat": 40.7, "lng": -74.0}},
                        },
                    ],
                },
            )

        async with mock_http(handler) as http:
            places = await nearby_places(40.7, -74.0, client=GooglePlacesClient(api_key="key", http=http))

        assert [p.id for p in places] == ["ok"]

    @pytest.mark.asyncio
    async def test_dedupes_filters_and_sorts(self):
        def handler(request):
            place_type = request.url.params["type"]
            results = [
                {
                    "place_id": "shared",
                    "name": "Corner Spot",
                    "vicinity": "1 Main St",
                    "rating": 4.5,
                    "types": ["bar"],
                    "geometry": {"location": {"lat": 40.7, "lng": -74.0}},
                    "photos": [{"photo_reference": "ref1"}],
                }
            ]
            if place_type == "museum":
                results.append(
                    {
                        "place_id": "museum",
                        "name": "Art House",
                        "vicinity": "2 Main St",
                        "rating": 4.9,
                        "types": ["museum"],
                        "geometry": {"location": {"lat": 40.71, "lng": -74.01}},
                    }
                )
            if place_type == "cafe":
                results.append(
                    {
                        "place_id": "meh",
                        "name": "Meh Cafe",
                        "rating": 3.2,
                        "types": ["cafe"],
                        "geometry": {"location": {"lat": 40.72, "lng": -74.02}},
                    }
                )
            return httpx.Response(200, json={"status": "OK", "results": results})

        async with mock_http(handler) as http:
            places = await nearby_places(40.7, -74.0, client=GooglePlacesClient(api_key="key", http=http))

        assert [p.id for p in places] == ["museum", "shared"]
        assert places[0].category == EventCategory.ARTS
        assert places[0].thumbnail_url is None
        assert "photo_reference=ref1" in places[1].thumbnail_url
        assert places[1].address == "1 Main St"


class TestLocalCache:
    @pytest.mark.asyncio
    async def test_popular_artists_cached_without_redis(self):
        calls = []

        def handler(request):
            keyword = request.url.params["keyword"]
            calls.append(keyword)
            return httpx.Response(
                200,
                json={"_embedded": {"attractions": [{"id": f"id-{keyword}", "name": keyword}]}},
            )

        async with mock_http(handler) as http:
            client = TicketmasterClient(api_key="key", http=http)
            first = await popular_artists(client)
            lookups = len(calls)
            second = await popular_artists(client)

        assert lookups == len(POPULAR_ARTIST_NAMES)
        assert len(calls) == lookups
        assert [a.name for a in second] == [a.name for a in first]

    @pytest.mark.asyncio
    async def test_entries_expire(self, monkeypatch):
        clock = [1000.0]
        monkeypatch.setattr(cache_service, "monotonic", lambda: clock[0])

        await set_cached("discovery:test", {"names": ["Adele"]}, ttl=60)
        assert await get_cached("discovery:test") == {"names": ["Adele"]}

        clock[0] += 61
        assert await get_cached("discovery:test") is None

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_when_full(self, monkeypatch):
        monkeypatch.setattr(cache_service, "LOCAL_CACHE_MAX_ENTRIES", 2)

        await set_cached("discovery:a", 1)
        await set_cached("discovery:b", 2)
        await set_cached("discovery:c", 3)

        assert await get_cached("discovery:a") is None
        assert await get_cached("discovery:c") == 3
