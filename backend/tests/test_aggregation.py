"""
Unit tests for third-party event normalization. No database required.
"""

from datetime import datetime, timezone

import httpx
import pytest
from prometheus_client import REGISTRY

from nightout.infrastructure.seatgeek import SeatGeekClient
from nightout.infrastructure.ticketmaster import TicketmasterClient, pick_image
from nightout.infrastructure.http import JSONAPIClient
from nightout.jobs import aggregation
from nightout.jobs.aggregation import (
    fetch_seatgeek,
    fetch_ticketmaster,
    map_seatgeek_category,
    map_ticketmaster_category,
    normalize_seatgeek_event,
    normalize_ticketmaster_event,
    parse_timestamp,
    run_aggregation,
)
from nightout.models.event import EventCategory, EventSource


def ticketmaster_event(**overrides) -> dict:
    event = {
        "id": "tm-1",
        "name": "Arena Show",
        "url": "https://tickets.example.com/tm-1",
        "dates": {"start": {"dateTime": "2030-05-01T23:30:00Z"}},
        "classifications": [{"segment": {"name": "Music"}, "genre": {"name": "Rock"}}],
        "images": [
            {"url": "https://img.example.com/small.jpg", "width": 100},
            {"url": "https://img.example.com/medium.jpg", "width": 640},
        ],
        "priceRanges": [{"min": 35.0, "max": 120.0, "currency": "USD"}],
        "_embedded": {
            "venues": [
                {
                    "name": "Big Arena",
                    "address": {"line1": "4 Penn Plaza"},
                    "city": {"name": "New York"},
                    "state": {"stateCode": "NY"},
                    "postalCode": "10001",
                    "location": {"latitude": "40.7505", "longitude": "-73.9934"},
                }
            ]
        },
    }
    event.update(overrides)
    return event


def seatgeek_event(**overrides) -> dict:
    event = {
        "id": 9001,
        "title": "Knicks vs Celtics",
        "type": "nba",
        "datetime_utc": "2030-03-10T00:00:00",
        "url": "https://seatgeek.example.com/9001",
        "venue": {
            "name": "Garden",
            "address": "4 Penn Plaza",
            "city": "New York",
            "state": "NY",
            "postal_code": "10001",
            "location": {"lat": 40.7505, "lon": -73.9934},
        },
        "performers": [
            {"name": "New York Knicks", "image": "https://img.example.com/knicks.jpg"},
            {"name": "Boston Celtics"},
        ],
        "stats": {"lowest_price": 80, "highest_price": 900},
    }
    event.update(overrides)
    return event


class TestCategoryMapping:
    @pytest.mark.parametrize(
        "segment,genre,expected",
        [
            ("Music", "Rock", EventCategory.CONCERT),
            ("Sports", "Basketball", EventCategory.SPORTS),
            ("Arts & Theatre", "Comedy", EventCategory.COMEDY),
            ("Arts & Theatre", "Musical", EventCategory.THEATER),
            ("Film", "Drama", EventCategory.ARTS),
            ("Miscellaneous", "Fair", EventCategory.OTHER),
        ],
    )
    def test_ticketmaster_segments(self, segment, genre, expected):
        classifications = [{"segment": {"name": segment}, "genre": {"name": genre}}]
        assert map_ticketmaster_category(classifications) == expected

    def test_ticketmaster_without_classifications(self):
        assert map_ticketmaster_category(None) == EventCategory.OTHER
        assert map_ticketmaster_category([]) == EventCategory.OTHER

    @pytest.mark.parametrize(
        "event_type,expected",
        [
            ("concert", EventCategory.CONCERT),
            ("music_festival", EventCategory.CONCERT),
            ("nba", EventCategory.OTHER),
            ("basketball", EventCategory.SPORTS),
            ("broadway_tickets_national", EventCategory.THEATER),
            ("comedy", EventCategory.COMEDY),
            ("", EventCategory.OTHER),
        ],
    )
    def test_seatgeek_types(self, event_type, expected):
        assert map_seatgeek_category(event_type) == expected


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2030-05-01T23:30:00Z") == datetime(2030, 5, 1, 23, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2030-05-01T20:00:00").tzinfo == timezone.utc


class TestTicketmasterNormalization:
    def test_full_event(self):
        data = normalize_ticketmaster_event(ticketmaster_event())

        assert data.external_id == "tm-1"
        assert data.source == EventSource.TICKETMASTER
        assert data.category == EventCategory.CONCERT
        assert data.subcategory == "Rock"
        assert data.venue_address == "4 Penn Plaza, New York, NY, 10001"
        assert data.latitude == pytest.approx(40.7505)
        assert data.thumbnail_url == "https://img.example.com/medium.jpg"
        assert len(data.images) == 2
        assert data.price_range.min == 35.0
        assert data.relevance_tags == ["Rock"]

    def test_local_date_only(self):
        data = normalize_ticketmaster_event(
            ticketmaster_event(dates={"start": {"localDate": "2030-05-01"}})
        )
        assert data.start_time == datetime(2030, 5, 1, tzinfo=timezone.utc)

    def test_without_coordinates_is_skipped(self):
        event = ticketmaster_event()
        del event["_embedded"]["venues"][0]["location"]
        assert normalize_ticketmaster_event(event) is None
        assert normalize_ticketmaster_event(ticketmaster_event(_embedded={})) is None


class TestSeatGeekNormalization:
    def test_full_event(self):
        data = normalize_seatgeek_event(seatgeek_event(type="basketball"))

        assert data.external_id == "9001"
        assert data.source == EventSource.SEATGEEK
        assert data.category == EventCategory.SPORTS
        assert data.thumbnail_url == "https://img.example.com/knicks.jpg"
        assert data.images == ["https://img.example.com/knicks.jpg"]
        assert data.relevance_tags == ["New York Knicks", "Boston Celtics"]
        assert data.start_time.tzinfo == timezone.utc
        assert data.price_range.max == 900

    def test_missing_prices(self):
        data = normalize_seatgeek_event(seatgeek_event(stats={"lowest_price": None}))
        assert data.price_range is None

    def test_without_coordinates_is_skipped(self):
        assert normalize_seatgeek_event(seatgeek_event(venue={"name": "Nowhere"})) is None


def test_pick_image_prefers_mid_size():
    assert pick_image(None) is None
    assert pick_image([{"url": "a", "width": 1200}]) == "a"
    assert pick_image([{"url": "a", "width": 1200}, {"url": "b", "width": 500}]) == "b"


class TestFetchers:
    @pytest.mark.asyncio
    async def test_unconfigured_sources_are_skipped(self):
        assert await fetch_ticketmaster(40.7, -74.0, client=TicketmasterClient(api_key="")) == 0
        assert await fetch_seatgeek(40.7, -74.0, client=SeatGeekClient(client_id="")) == 0

    @pytest.mark.asyncio
    async def test_upstream_failure_stores_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"fault": "unavailable"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = TicketmasterClient(api_key="key", http=http)
            assert await fetch_ticketmaster(40.7, -74.0, client=client) == 0

    @pytest.mark.asyncio
    async def test_html_body_stores_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html><body>Service Unavailable</body></html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            assert await fetch_ticketmaster(
                40.7, -74.0, client=TicketmasterClient(api_key="key", http=http)
            ) == 0
            assert await fetch_seatgeek(
                40.7, -74.0, client=SeatGeekClient(client_id="id", http=http)
            ) == 0

    @pytest.mark.asyncio
    async def test_non_object_events_are_dropped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"events": ["not-an-event", 42]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = SeatGeekClient(client_id="id", http=http)
            assert await fetch_seatgeek(40.7, -74.0, client=client) == 0


class ExampleAPI(JSONAPIClient):
    provider = "example"
    base_url = "https://api.example.com"


def upstream_errors(provider: str) -> float:
    return REGISTRY.get_sample_value(
        "upstream_requests_total", {"provider": provider, "result": "error"}
    ) or 0.0


class TestJSONAPIClient:
    @pytest.mark.asyncio
    async def test_non_json_body_is_an_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        before = upstream_errors("example")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(httpx.DecodingError):
                await ExampleAPI(http=http).get_json("/events", {})

        assert upstream_errors("example") == before + 1

    @pytest.mark.asyncio
    async def test_json_array_body_is_an_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(httpx.HTTPError):
                await ExampleAPI(http=http).get_json("/events", {})


class TestRunAggregation:
    @pytest.mark.asyncio
    async def test_html_upstreams_do_not_abort_the_run(self, monkeypatch):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<!doctype html><title>Bad Gateway</title>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            monkeypatch.setattr(
                aggregation, "TicketmasterClient", lambda: TicketmasterClient(api_key="key", http=http)
            )
            monkeypatch.setattr(
                aggregation, "SeatGeekClient", lambda: SeatGeekClient(client_id="id", http=http)
            )
            monkeypatch.setattr(aggregation.settings, "AGGREGATION_CITY_DELAY_SECONDS", 0)

            total = await run_aggregation(
                locations=[
                    {"name": "New York", "lat": 40.7128, "lng": -74.0060},
                    {"name": "Chicago", "lat": 41.8781, "lng": -87.6298},
                ]
            )

        assert total == 0

    @pytest.mark.asyncio
    async def test_one_failing_source_keeps_the_other(self, monkeypatch):
        async def stored_three(*args, **kwargs):
            return 3

        async def broken(*args, **kwargs):
            raise RuntimeError("unexpected payload")

        monkeypatch.setattr(aggregation, "fetch_ticketmaster", stored_three)
        monkeypatch.setattr(aggregation, "fetch_seatgeek", broken)
        monkeypatch.setattr(aggregation.settings, "AGGREGATION_CITY_DELAY_SECONDS", 0)

        total = await run_aggregation(locations=[{"name": "Seattle", "lat": 47.6062, "lng": -122.3321}])

        assert total == 3
