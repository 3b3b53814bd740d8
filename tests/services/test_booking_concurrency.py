"""Concurrent writers against the same interpreter and sessions."""

import asyncio
from datetime import timedelta

import pytest

from src.core.exceptions import SchedulingConflictError
from src.domain.models.session import RaterRole, RatingSubmission, SessionStatus
from tests.factories import SLOT_START, booking_request


@pytest.mark.asyncio
async def test_overlapping_confirms_admit_one(
    booking_service, client_user, interpreter, interpreter_actor
):
    first = await booking_service.create_session(booking_request())
    second = await booking_service.create_session(
        booking_request(
            interpreter_id=interpreter.id,
            scheduled_start=SLOT_START + timedelta(minutes=30),
        )
    )

    results = await asyncio.gather(
        booking_service.transition_status(
            first.id, SessionStatus.CONFIRMED, interpreter_actor
        ),
        booking_service.transition_status(
            second.id, SessionStatus.CONFIRMED, interpreter_actor
        ),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, SchedulingConflictError)]
    confirmed = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(confirmed) == 1
    assert confirmed[0].status == SessionStatus.CONFIRMED


@pytest.mark.asyncio
async def test_concurrent_client_ratings_all_counted(
    booking_service,
    rating_service,
    client_user,
    interpreter,
    interpreter_actor,
    client_actor,
    complete_session,
    interpreter_repo,
):
    sessions = []
    for hours in (0, 2, 4):
        session = await booking_service.create_session(
            booking_request(scheduled_start=SLOT_START + timedelta(hours=hours))
        )
        sessions.append(await complete_session(session, interpreter_actor))

    await asyncio.gather(
        *(
            rating_service.rate(
                session.id, RatingSubmission(overall=score), RaterRole.CLIENT, client_actor
            )
            for session, score in zip(sessions, (5, 4, 3))
        )
    )

    stored = await interpreter_repo.get(interpreter.id)
    assert stored.total_ratings == 3
    assert stored.average_rating == pytest.approx(4.0)
    assert stored.total_sessions_completed == 3
