"""Shared fixtures for the TrainerRoad bridge tests."""

import os
import tempfile
from typing import Callable, Dict, List, Tuple

import httpx
import pytest

from trainerroad_bridge.api.middleware.rate_limit import limiter
from trainerroad_bridge.config import Settings
from trainerroad_bridge.db.adapters import SQLiteStore
from trainerroad_bridge.db.repositories.session_repository import SessionRepository


# Rate limits are exercised separately; keep them out of route tests
limiter.enabled = False


BASE_URL = "https://www.trainerroad.com"

LOGIN_PAGE_HTML = """
<html><body>
<form action="/app/login" method="post">
  <input name="__RequestVerificationToken" type="hidden" value="tok-123-abc" />
  <input name="Username" type="text" />
  <input name="Password" type="password" />
</form>
</body></html>
"""

REJECTED_LOGIN_HTML = """
<html><body>
<div class="validation-summary-errors" data-valmsg-summary="true">
  <ul><li>The user name or password provided is incorrect.</li></ul>
</div>
<input name="__RequestVerificationToken" type="hidden" value="tok-456" />
</body></html>
"""

AUTH_COOKIES = "SharedTrainerRoadAuth=auth-value; ASP.NET_SessionId=sess-1"


def make_activity(activity_id: int, started: str, **overrides) -> dict:
    """Build a TrainerRoad activity payload."""
    payload = {
        "Id": activity_id,
        "Guid": f"guid-{activity_id}",
        "WorkoutId": 1000 + activity_id,
        "Name": f"Ride {activity_id}",
        "Duration": 3600,
        "Started": started,
        "Processed": started,
        "ExpectedTss": 60,
        "Tss": 58,
        "ExpectedKj": 700,
        "Kj": 690,
        "IntensityFactor": 0.75,
        "ExpectedIntensityFactor": 0.76,
        "IsCutShort": False,
        "HasGpsData": False,
        "IsIndoorSwim": False,
        "IsExternal": False,
        "CanEstimateTss": True,
        "SurveyOptionText": "Moderate",
        "ClassificationType": 1,
        "OpenType": 0,
        "Type": 1,
        "Source": None,
        "Progression": {"Id": 3, "Delta": 0.2, "Level": 4.1},
    }
    payload.update(overrides)
    return payload


def make_workout(workout_id: int, **overrides) -> dict:
    """Build a TrainerRoad catalog workout payload."""
    payload = {
        "Id": workout_id,
        "MemberId": -1,
        "WorkoutName": f"Workout {workout_id}",
        "Duration": 60,
        "WorkoutDescription": "<p>Sweet spot intervals</p>",
        "GoalDescription": "<p>Build endurance</p>",
        "Tss": 70,
        "Kj": 720,
        "IntensityFactor": 82,
        "AverageFtpPercent": 75,
        "PicUrl": "https://example.test/pic.png",
        "IsOutside": False,
        "WorkoutTypeId": 1,
        "WorkoutLabelId": 2,
        "Progression": {"Id": 5, "Text": "Sweet Spot"},
        "ProgressionId": 5,
        "ProgressionLevel": 3.4,
    }
    payload.update(overrides)
    return payload


class FakeUpstream:
    """Scripted TrainerRoad stand-in for httpx.MockTransport.

    Routes map (METHOD, path) to a factory returning a fresh httpx.Response.
    Every request is recorded for assertions.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, factory: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method.upper(), path)] = factory

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        factory = self.routes.get((request.method, request.url.path))
        if factory is None:
            return httpx.Response(404, text="not found")
        return factory(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def script_login(self, post_factory: Callable[[httpx.Request], httpx.Response]) -> None:
        """Serve the login page and answer the credentials POST with ``post_factory``."""
        self.add(
            "GET",
            "/app/login",
            lambda request: httpx.Response(
                200,
                text=LOGIN_PAGE_HTML,
                headers=[
                    ("set-cookie", "__RequestVerificationToken_cookie=anti-1; path=/; HttpOnly"),
                    ("set-cookie", "ASP.NET_SessionId=pre-login; path=/"),
                ],
            ),
        )
        self.add("POST", "/app/login", post_factory)


def successful_login_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        302,
        headers=[
            ("location", "/app/home"),
            ("set-cookie", "SharedTrainerRoadAuth=auth-value; path=/; secure; HttpOnly"),
            ("set-cookie", "ASP.NET_SessionId=post-login; path=/"),
        ],
    )


def rejected_login_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text=REJECTED_LOGIN_HTML)


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults and no environment surprises."""
    return Settings(
        trainerroad_base_url=BASE_URL,
        supabase_jwt_secret="test-jwt-secret-with-enough-length-123",
        cookie_encryption_key="",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def store(temp_db_path) -> SQLiteStore:
    """SQLite store with the schema created."""
    sqlite_store = SQLiteStore(db_path=temp_db_path)
    sqlite_store.initialize()
    return sqlite_store


@pytest.fixture
def sessions(store) -> SessionRepository:
    """Plaintext session repository over the temporary store."""
    return SessionRepository(store)
