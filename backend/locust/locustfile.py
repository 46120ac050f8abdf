"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags rsvp         # Same event, many RSVPs
  locust -f locustfile.py --tags feed         # Radius feeds and listings
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Set RATE_LIMIT_ENABLED=false on the server unless you are load testing the
limiter itself.
"""

import random
import string
from locust import HttpUser, task, between, tag, events

# Shared state
EVENT_IDS = []
HOT_EVENT_ID = None

PASSWORD = "Loadtest12345"

CITIES = [
    (40.7128, -74.0060),
    (34.0522, -118.2437),
    (41.8781, -87.6298),
    (47.6062, -122.3321),
]


def random_email():
    return f"load_{random.randint(100000, 999999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


def register(client):
    """Register a throwaway user; returns auth headers or {}."""
    resp = client.post("/api/v1/auth/register", json={
        "email": random_email(),
        "username": random_username(),
        "display_name": "Load Tester",
        "password": PASSWORD,
    })
    if resp.status_code == 201:
        return {"Authorization": f"Bearer {resp.json()['tokens']['access_token']}"}
    return {}


def remember_events(resp):
    if resp.status_code != 200:
        return
    for event in resp.json().get("items", []):
        if event["id"] not in EVENT_IDS:
            EVENT_IDS.append(event["id"])


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print("Events come from the aggregation job; run it before load testing.")
    print("="*60)


class RSVPUser(HttpUser):
    """
    TEST 1: Concurrency - many users RSVP to the same event

    Run: locust -f locustfile.py --tags rsvp -u 100 -r 50 --run-time 30s

    After test, verify one row per user:
      SELECT user_id, COUNT(*) FROM rsvps GROUP BY user_id HAVING COUNT(*) > 1;
    Should be empty
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = register(self.client)

        if not HOT_EVENT_ID:
            resp = self.client.get("/api/v1/events/trending")
            if resp.status_code == 200 and resp.json():
                globals()["HOT_EVENT_ID"] = resp.json()[0]["id"]
            else:
                resp = self.client.get("/api/v1/events/?page=1&page_size=1")
                if resp.status_code == 200 and resp.json()["items"]:
                    globals()["HOT_EVENT_ID"] = resp.json()["items"][0]["id"]

    @tag("rsvp")
    @task
    def flip_rsvp(self):
        """Every user toggles between going and interested."""
        if not HOT_EVENT_ID or not self.headers:
            return

        with self.client.post(f"/api/v1/events/{HOT_EVENT_ID}/rsvp",
            json={"status": random.choice(["going", "interested"])},
            headers=self.headers,
            name="/api/v1/events/{id}/rsvp",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 429:
                resp.success()  # Expected with the write limiter on
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class FeedUser(HttpUser):
    """
    TEST 2: Throughput - PostGIS radius queries

    Run: locust -f locustfile.py --tags feed -u 100 -r 20 --run-time 60s

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = register(self.client)

    @tag("feed", "read")
    @task(10)
    def tonight_feed(self):
        lat, lng = random.choice(CITIES)
        self.client.get(f"/api/v1/events/tonight?latitude={lat}&longitude={lng}",
            headers=self.headers,
            name="/api/v1/events/tonight")

    @tag("feed", "read")
    @task(5)
    def radius_listing(self):
        lat, lng = random.choice(CITIES)
        radius = random.choice([5, 25, 50, 100])
        resp = self.client.get(
            f"/api/v1/events/?latitude={lat}&longitude={lng}&radius_miles={radius}&sort_by=distance",
            headers=self.headers,
            name="/api/v1/events/ [radius]")
        remember_events(resp)

    @tag("feed", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                headers=self.headers,
                name="/api/v1/events/{id}")

    @tag("feed")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register(self.client)

    def expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post("/api/v1/events/00000000-0000-0000-0000-000000000000/rsvp",
            json={"status": "going"},
            headers=self.headers,
            name="/api/v1/events/[missing]/rsvp",
            catch_response=True
        ) as resp:
            self.expect(resp, 404, 429)

    @tag("edge")
    @task
    def bad_rsvp_status(self):
        if not EVENT_IDS:
            return
        with self.client.post(f"/api/v1/events/{random.choice(EVENT_IDS)}/rsvp",
            json={"status": "maybe"},
            headers=self.headers,
            name="/api/v1/events/{id}/rsvp [bad]",
            catch_response=True
        ) as resp:
            self.expect(resp, 400, 429)

    @tag("edge")
    @task
    def radius_out_of_range(self):
        with self.client.get("/api/v1/events/?latitude=40.7&longitude=-74.0&radius_miles=500",
            name="/api/v1/events/ [bad radius]",
            catch_response=True
        ) as resp:
            self.expect(resp, 400)

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/auth/login",
            data="not json at all",
            catch_response=True
        ) as resp:
            self.expect(resp, 400, 429)

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.get("/api/v1/social/friends",
            catch_response=True
        ) as resp:
            self.expect(resp, 401)


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing feeds
      - Some RSVPs and bookmarks
      - Occasional friend search
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = register(self.client)
        lat, lng = random.choice(CITIES)
        if self.headers:
            self.client.patch("/api/v1/users/me/location",
                json={"latitude": lat, "longitude": lng},
                headers=self.headers)

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events/?page=1&page_size=20", headers=self.headers)
        remember_events(resp)

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                headers=self.headers,
                name="/api/v1/events/{id}")

    @task(10)
    def rsvp(self):
        if EVENT_IDS and self.headers:
            self.client.post(f"/api/v1/events/{random.choice(EVENT_IDS)}/rsvp",
                json={"status": random.choice(["going", "interested"])},
                headers=self.headers,
                name="/api/v1/events/{id}/rsvp")

    @task(5)
    def bookmark(self):
        if EVENT_IDS and self.headers:
            self.client.post("/api/v1/bookmarks",
                json={"event_id": random.choice(EVENT_IDS)},
                headers=self.headers)

    @task(3)
    def search_users(self):
        if self.headers:
            self.client.get(f"/api/v1/users/search?q={random.choice(string.ascii_lowercase)}",
                headers=self.headers,
                name="/api/v1/users/search")
