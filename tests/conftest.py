"""
Shared test fixtures for the booking engine.

Every test that touches storage gets its own temporary SQLite database.
Services run against a controllable clock so notice windows and
"scheduled in the future" checks are deterministic.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from src.core.config import PolicyConfig, PricingConfig
from src.domain.models.actor import Actor, User, UserRole
from src.domain.models.interpreter import Interpreter
from src.domain.models.session import Session, SessionStatus
from src.persistence.database import init_database
from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.user_repo import UserRepository
from src.services.booking_service import BookingService
from src.services.interpreter_service import InterpreterService
from src.services.pricing_service import PricingService
from src.services.rating_service import RatingService
from tests.factories import ADMIN_ID, CLIENT_ID, FIXED_NOW, FakeClock, build_interpreter


@pytest.fixture
async def test_db():
    """Create and initialize test database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        await init_database(db_path)

        from src.core import config

        original_path = config.settings.database_path
        config.settings.database_path = db_path

        with patch("src.persistence.database.settings", config.settings):
            yield str(db_path)

        config.settings.database_path = original_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pricing():
    return PricingService(PricingConfig())


@pytest.fixture
def policy():
    return PolicyConfig()


@pytest.fixture
def user_repo(test_db):
    return UserRepository(test_db)


@pytest.fixture
def interpreter_repo(test_db):
    return InterpreterRepository(test_db)


@pytest.fixture
def session_repo(test_db):
    return SessionRepository(test_db)


@pytest.fixture
def booking_service(test_db, pricing, policy, clock):
    return BookingService(test_db, pricing=pricing, policy=policy, clock=clock)


@pytest.fixture
def rating_service(test_db, clock):
    return RatingService(test_db, clock=clock)


@pytest.fixture
def interpreter_service(test_db, pricing, policy, clock):
    return InterpreterService(test_db, pricing=pricing, policy=policy, clock=clock)


@pytest.fixture
def create_user(user_repo):
    async def _create(user_id: str, role: UserRole = UserRole.CLIENT) -> User:
        return await user_repo.create(
            User(
                id=user_id,
                role=role,
                email=f"{user_id}@example.com",
                name=user_id.replace("-", " ").title(),
                created_at=FIXED_NOW,
            )
        )

    return _create


@pytest.fixture
def create_interpreter(create_user, interpreter_repo):
    """Insert an interpreter user plus profile; keyword overrides go to the profile."""

    async def _create(user_id: str = "interp-user-1", **overrides) -> Interpreter:
        await create_user(user_id, UserRole.INTERPRETER)
        return await interpreter_repo.create(build_interpreter(user_id, **overrides))

    return _create


@pytest.fixture
async def client_user(create_user):
    return await create_user(CLIENT_ID)


@pytest.fixture
async def interpreter(create_interpreter):
    return await create_interpreter()


@pytest.fixture
def client_actor():
    return Actor(user_id=CLIENT_ID, role=UserRole.CLIENT)


@pytest.fixture
def admin_actor():
    return Actor(user_id=ADMIN_ID, role=UserRole.ADMIN)


@pytest.fixture
def interpreter_actor(interpreter):
    return Actor(user_id=interpreter.user_id, role=UserRole.INTERPRETER)


@pytest.fixture
def complete_session(booking_service, clock):
    """Drive a REQUESTED session through confirm, start and complete."""

    async def _complete(
        session: Session, actor: Actor, minutes: int = 60
    ) -> Session:
        await booking_service.transition_status(session.id, SessionStatus.CONFIRMED, actor)
        await booking_service.transition_status(
            session.id, SessionStatus.IN_PROGRESS, actor
        )
        clock.advance(minutes=minutes)
        return await booking_service.transition_status(
            session.id, SessionStatus.COMPLETED, actor
        )

    return _complete
