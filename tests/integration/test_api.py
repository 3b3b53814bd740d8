"""Integration tests for API endpoints."""

import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.domain.models.actor import User, UserRole
from src.persistence.database import init_database
from src.persistence.repositories.user_repo import UserRepository

CLIENT = {"X-User-Id": "client-1", "X-User-Role": "client"}
INTERPRETER = {"X-User-Id": "interp-1", "X-User-Role": "interpreter"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}

SLOT = "2030-01-09T10:00:00Z"


@pytest.fixture
def test_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
async def app_with_test_db(test_db_path):
    """Create app with an initialized test database and seeded users."""
    from src.core import config

    # Override database path
    original_path = config.settings.database_path
    config.settings.database_path = test_db_path

    await init_database(test_db_path)
    users = UserRepository(str(test_db_path))
    for user_id, role in (
        ("client-1", UserRole.CLIENT),
        ("interp-1", UserRole.INTERPRETER),
        ("admin-1", UserRole.ADMIN),
    ):
        await users.create(
            User(id=user_id, role=role, email=f"{user_id}@example.com", name=user_id)
        )

    # Import app after overriding settings
    from src.main import app

    yield app

    # Restore original path
    config.settings.database_path = original_path


@pytest.fixture
async def client(app_with_test_db):
    transport = ASGITransport(app=app_with_test_db)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register_active_interpreter(client: AsyncClient) -> dict:
    """Register interp-1, approve it and mark it available."""
    response = await client.post(
        "/interpreters",
        headers=INTERPRETER,
        json={
            "user_id": "interp-1",
            "languages": [
                {"language": "en", "proficiency_level": "native"},
                {"language": "es", "proficiency_level": "fluent"},
            ],
            "rate_structure": {"hourly_rate": "60.00"},
            "weekly_schedule": [
                {"day_of_week": day, "start_time": "00:00", "end_time": "23:59"}
                for day in range(7)
            ],
        },
    )
    assert response.status_code == 201
    interpreter = response.json()
    assert interpreter["status"] == "pending_approval"

    response = await client.put(
        f"/interpreters/{interpreter['id']}/status",
        headers=ADMIN,
        json={"status": "active"},
    )
    assert response.status_code == 200
    assert response.json()["is_verified"] is True

    response = await client.put(
        f"/interpreters/{interpreter['id']}/availability",
        headers=INTERPRETER,
        json={"status": "available"},
    )
    assert response.status_code == 200
    return response.json()


async def book(client: AsyncClient, **overrides) -> dict:
    body = {
        "client_id": "client-1",
        "session_type": "video",
        "source_language": "en",
        "target_language": "es",
        "scheduled_start": SLOT,
        "estimated_duration": 60,
    }
    body.update(overrides)
    response = await client.post("/sessions", headers=CLIENT, json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Root endpoint returns basic info."""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Interpreter Booking Engine"
    assert data["status"] == "running"


@pytest.mark.asyncio
async def test_health_endpoint(client):
    """Health endpoint returns system status."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["pricing_version"] == "2024-01"
    assert "database" in data["components"]


@pytest.mark.asyncio
async def test_liveness_endpoint(client):
    """Liveness check returns alive status."""
    response = await client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_readiness_endpoint(client):
    """Readiness check verifies the database."""
    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    response = await client.get("/health/live", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_session_lifecycle(client):
    """Register, match, book, confirm, run, complete and rate a session."""
    interpreter = await register_active_interpreter(client)

    response = await client.post(
        "/interpreters/match",
        json={
            "source_language": "en",
            "target_language": "es",
            "session_type": "video",
            "scheduled_start": SLOT,
        },
    )
    assert response.status_code == 200
    assert [i["id"] for i in response.json()["interpreters"]] == [interpreter["id"]]

    session = await book(client)
    assert session["interpreter_id"] == interpreter["id"]
    assert session["status"] == "requested"
    assert session["total_cost"] == "60.00"

    # Only the interpreter confirms
    response = await client.post(
        f"/sessions/{session['id']}/status", headers=CLIENT, json={"status": "confirmed"}
    )
    assert response.status_code == 403
    assert response.json()["error"]["type"] == "ForbiddenError"

    for target in ("confirmed", "in_progress", "completed"):
        response = await client.post(
            f"/sessions/{session['id']}/status",
            headers=INTERPRETER,
            json={"status": target},
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == target

    response = await client.post(
        f"/sessions/{session['id']}/rating",
        headers=CLIENT,
        json={"overall": 5, "rater_role": "client", "comment": "Excellent"},
    )
    assert response.status_code == 200
    assert response.json()["client_rating"]["overall"] == 5

    response = await client.post(
        f"/sessions/{session['id']}/rating",
        headers=CLIENT,
        json={"overall": 4, "rater_role": "client"},
    )
    assert response.status_code == 422
    assert response.json()["error"]["type"] == "AlreadyRatedError"

    response = await client.get(f"/interpreters/{interpreter['id']}/statistics")
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_sessions"] == 1
    assert stats["total_ratings"] == 1
    assert stats["average_rating"] == 5.0


@pytest.mark.asyncio
async def test_illegal_transition_is_conflict(client):
    await register_active_interpreter(client)
    session = await book(client)

    response = await client.post(
        f"/sessions/{session['id']}/status",
        headers=INTERPRETER,
        json={"status": "completed"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["type"] == "IllegalTransitionError"


@pytest.mark.asyncio
async def test_double_booking_is_conflict(client):
    interpreter = await register_active_interpreter(client)
    session = await book(client)
    await client.post(
        f"/sessions/{session['id']}/status",
        headers=INTERPRETER,
        json={"status": "confirmed"},
    )

    response = await client.post(
        "/sessions",
        headers=CLIENT,
        json={
            "client_id": "client-1",
            "interpreter_id": interpreter["id"],
            "session_type": "video",
            "source_language": "en",
            "target_language": "es",
            "scheduled_start": "2030-01-09T10:30:00Z",
        },
    )

    assert response.status_code == 409
    assert response.json()["error"]["type"] == "SchedulingConflictError"


@pytest.mark.asyncio
async def test_reschedule_and_cancel(client):
    await register_active_interpreter(client)
    session = await book(client)

    response = await client.post(
        f"/sessions/{session['id']}/reschedule",
        headers=CLIENT,
        json={"new_start": "2030-01-10T10:00:00Z", "reason": "Travel"},
    )
    assert response.status_code == 200
    moved = response.json()
    assert moved["status"] == "confirmed"
    assert moved["rescheduled_count"] == 1

    response = await client.post(
        f"/sessions/{session['id']}/cancel",
        headers=CLIENT,
        json={"reason": "No longer needed", "category": "client_request"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = await client.get("/sessions/statistics", headers=CLIENT)
    assert response.json()["cancelled_sessions"] == 1


@pytest.mark.asyncio
async def test_missing_identity_headers(client):
    response = await client.get("/sessions/statistics")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_session(client):
    response = await client.get("/sessions/missing", headers=ADMIN)

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "SessionNotFoundError"


@pytest.mark.asyncio
async def test_no_interpreter_available(client):
    response = await client.post(
        "/sessions",
        headers=CLIENT,
        json={
            "client_id": "client-1",
            "session_type": "video",
            "source_language": "en",
            "target_language": "es",
            "scheduled_start": SLOT,
        },
    )

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "NoInterpreterAvailableError"


@pytest.mark.asyncio
async def test_client_cannot_mark_session_rescheduled(client):
    await register_active_interpreter(client)
    session = await book(client)
    await client.post(
        f"/sessions/{session['id']}/status",
        headers=INTERPRETER,
        json={"status": "confirmed"},
    )

    response = await client.post(
        f"/sessions/{session['id']}/status",
        headers=CLIENT,
        json={"status": "rescheduled"},
    )

    assert response.status_code == 403
    assert response.json()["error"]["type"] == "ForbiddenError"


@pytest.mark.asyncio
async def test_custom_rate_is_admin_only(client):
    await register_active_interpreter(client)
    body = {
        "client_id": "client-1",
        "session_type": "video",
        "source_language": "en",
        "target_language": "es",
        "scheduled_start": SLOT,
        "hourly_rate": "200.00",
    }

    response = await client.post("/sessions", headers=CLIENT, json=body)
    assert response.status_code == 403

    response = await client.post("/sessions", headers=ADMIN, json=body)
    assert response.status_code == 201
    assert float(response.json()["hourly_rate"]) == 200.0


@pytest.mark.asyncio
async def test_search_sessions(client):
    await register_active_interpreter(client)
    first = await book(client)
    second = await book(client, scheduled_start="2030-01-10T10:00:00Z")

    response = await client.post("/sessions/search", headers=CLIENT, json={"limit": 1})
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 2
    assert [s["id"] for s in page["sessions"]] == [second["id"]]

    response = await client.post(
        "/sessions/search",
        headers=INTERPRETER,
        json={"date_to": "2030-01-09T23:59:59Z"},
    )
    assert [s["id"] for s in response.json()["sessions"]] == [first["id"]]

    response = await client.post(
        "/sessions/search", headers=CLIENT, json={"client_id": "someone-else"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_search_interpreters(client):
    interpreter = await register_active_interpreter(client)

    response = await client.post("/interpreters/search", json={"languages": ["es"]})
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 1
    assert page["interpreters"][0]["id"] == interpreter["id"]

    response = await client.post(
        "/interpreters/search", json={"languages": ["de"], "max_rate": "100"}
    )
    assert response.json()["total"] == 0


class TestPricingEndpoints:
    @pytest.mark.asyncio
    async def test_quote(self, client):
        response = await client.post(
            "/pricing/quote",
            json={
                "word_count": 1000,
                "source_language": "en",
                "target_language": "es",
                "urgency_level": "rush",
                "content_type": "legal",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "common"
        assert data["total_cost"] == "288.00"

    @pytest.mark.asyncio
    async def test_invalid_quote(self, client):
        response = await client.post(
            "/pricing/quote",
            json={"word_count": 0, "source_language": "en", "target_language": "es"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_bulk_quote(self, client):
        response = await client.post(
            "/pricing/bulk",
            json={
                "requests": [
                    {"word_count": 1000, "source_language": "en", "target_language": "es"},
                    {"word_count": 10, "source_language": "en", "target_language": "he"},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["quotes"]) == 2
        assert data["total_cost"] == "145.00"

    @pytest.mark.asyncio
    async def test_language_pair(self, client):
        response = await client.get(
            "/pricing/language-pair", params={"source": "en", "target": "ko"}
        )

        assert response.status_code == 200
        assert response.json()["tier"] == "specialized"

    @pytest.mark.asyncio
    async def test_unknown_language_pair(self, client):
        response = await client.get(
            "/pricing/language-pair", params={"source": "en", "target": "zz"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_urgency_and_content_type(self, client):
        urgency = await client.get("/pricing/urgency/emergency")
        content = await client.get("/pricing/content-type/medical")

        assert urgency.json()["delivery_days"] == 1
        assert content.json()["multiplier"] == "1.8"
