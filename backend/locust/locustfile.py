"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags contention   # Many players, one small game
  locust -f locustfile.py --tags browse       # Category listings (cache)
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

Tokens are minted locally, so SECRET_KEY must match the server's.
"""

import random
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

from signups.core.security import create_access_token

# Shared state
GAME_IDS = []
CONTENTION_GAME_ID = None
CATEGORIES = ["basketball", "soccer", "volleyball", "ultimate"]


def random_principal():
    return f"load_{random.randint(10000, 99999)}@test.com"


def auth_headers(principal: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


def game_payload(category: str, num_teams: int, team_size: int) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=random.randint(1, 30))
    return {
        "name": f"Load Game {random.randint(1, 10000)}",
        "category": category,
        "location": "Load Test Gym",
        "start_time": start.isoformat(),
        "duration_mins": 60,
        "num_teams": num_teams,
        "team_size": team_size,
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: contention game is created by the first ContentionUser")
    print("=" * 60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - every user joins and drops the same 2x5 game

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After the run, GET /api/v1/games/{id}: roster size must be <= 10 and
    nobody may appear twice. 409s are bounded retries giving up, not bugs.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = auth_headers(random_principal())

        if not CONTENTION_GAME_ID:
            resp = self.client.post(
                "/api/v1/games/",
                json=game_payload("basketball", num_teams=2, team_size=5),
                headers=self.headers,
            )
            if resp.status_code == 201:
                globals()["CONTENTION_GAME_ID"] = resp.json()["id"]
                print(f"\nCreated contention game {CONTENTION_GAME_ID} (capacity 10)\n")

    def _membership(self, action: str):
        if not CONTENTION_GAME_ID:
            return
        with self.client.post(
            f"/api/v1/games/{CONTENTION_GAME_ID}/{action}",
            headers=self.headers,
            name=f"/api/v1/games/{{id}}/{action}",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("contention")
    @task(3)
    def join(self):
        self._membership("join")

    @tag("contention")
    @task(2)
    def drop(self):
        self._membership("drop")


class BrowseUser(HttpUser):
    """
    TEST 2: Browse - category listing cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
      2. Without Redis (REDIS_ENABLED=false), run again

    Compare average and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def list_category(self):
        category = random.choice(CATEGORIES)
        resp = self.client.get(
            "/api/v1/games/",
            params={"category": category, "max_results": 20},
            name="/api/v1/games/?category=[cached]",
        )
        if resp.status_code == 200:
            for game in resp.json().get("games", []):
                if game["id"] not in GAME_IDS:
                    GAME_IDS.append(game["id"])

    @tag("browse")
    @task(3)
    def get_game_detail(self):
        if GAME_IDS:
            self.client.get(f"/api/v1/games/{random.choice(GAME_IDS)}", name="/api/v1/games/{id}")

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - bad input must map to proper status codes

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = auth_headers(random_principal())

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_game(self):
        with self.client.post("/api/v1/games/no-such-game/join",
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def malformed_game_id(self):
        with self.client.post("/api/v1/games/bad!id/join",
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def missing_category(self):
        with self.client.get("/api/v1/games/", catch_response=True) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def zero_team_size(self):
        with self.client.post("/api/v1/games/",
                              json=game_payload("soccer", num_teams=2, team_size=0),
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/games/no-such-game/join", catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

      - Mostly browsing
      - Some joins and drops
      - Rare creates
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = auth_headers(random_principal())
        self.joined = []

    @task(50)
    def browse(self):
        resp = self.client.get("/api/v1/games/", params={"category": random.choice(CATEGORIES)})
        if resp.status_code == 200:
            for game in resp.json().get("games", []):
                if game["id"] not in GAME_IDS:
                    GAME_IDS.append(game["id"])

    @task(20)
    def view_game(self):
        if GAME_IDS:
            self.client.get(f"/api/v1/games/{random.choice(GAME_IDS)}", name="/api/v1/games/{id}")

    @task(10)
    def join_game(self):
        if GAME_IDS:
            game_id = random.choice(GAME_IDS)
            resp = self.client.post(f"/api/v1/games/{game_id}/join",
                                    headers=self.headers, name="/api/v1/games/{id}/join")
            if resp.status_code == 200:
                self.joined.append(game_id)

    @task(5)
    def drop_game(self):
        if self.joined:
            game_id = self.joined.pop(random.randrange(len(self.joined)))
            self.client.post(f"/api/v1/games/{game_id}/drop",
                             headers=self.headers, name="/api/v1/games/{id}/drop")

    @task(3)
    def create_game(self):
        resp = self.client.post(
            "/api/v1/games/",
            json=game_payload(random.choice(CATEGORIES), num_teams=2, team_size=random.randint(3, 11)),
            headers=self.headers,
        )
        if resp.status_code == 201:
            GAME_IDS.append(resp.json()["id"])
