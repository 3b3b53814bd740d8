"""Tests for role and ownership checks."""

import pytest

from src.core.exceptions import ForbiddenError
from src.domain.models.actor import Actor, UserRole
from src.domain.models.session import RaterRole, SessionFilter, SessionStatus
from src.services import permissions
from tests.factories import ADMIN_ID, CLIENT_ID, build_interpreter, build_session

INTERPRETER_USER = "interp-user-1"

CLIENT = Actor(user_id=CLIENT_ID, role=UserRole.CLIENT)
INTERPRETER = Actor(user_id=INTERPRETER_USER, role=UserRole.INTERPRETER)
ADMIN = Actor(user_id=ADMIN_ID, role=UserRole.ADMIN)
STRANGER = Actor(user_id="someone-else", role=UserRole.CLIENT)


class TestCheckTransition:
    @pytest.mark.parametrize(
        "target",
        [SessionStatus.CONFIRMED, SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED],
    )
    def test_interpreter_only_targets(self, target):
        session = build_session()

        permissions.check_transition(session, target, INTERPRETER, INTERPRETER_USER)
        with pytest.raises(ForbiddenError):
            permissions.check_transition(session, target, CLIENT, INTERPRETER_USER)

    def test_admin_bypasses(self):
        permissions.check_transition(
            build_session(), SessionStatus.COMPLETED, ADMIN, INTERPRETER_USER
        )

    def test_client_can_cancel_before_start(self):
        for status in (SessionStatus.REQUESTED, SessionStatus.CONFIRMED):
            permissions.check_cancel(
                build_session(status=status), CLIENT, INTERPRETER_USER
            )

    def test_client_cannot_cancel_running_session(self):
        session = build_session(status=SessionStatus.IN_PROGRESS)
        with pytest.raises(ForbiddenError):
            permissions.check_transition(
                session, SessionStatus.CANCELLED, CLIENT, INTERPRETER_USER
            )
        permissions.check_transition(
            session, SessionStatus.CANCELLED, INTERPRETER, INTERPRETER_USER
        )

    def test_cancel_gate_is_ownership_only(self):
        # Finished sessions are refused later by the eligibility rules
        for status in (SessionStatus.COMPLETED, SessionStatus.CANCELLED):
            permissions.check_cancel(
                build_session(status=status), CLIENT, INTERPRETER_USER
            )

    def test_other_client_cannot_cancel(self):
        with pytest.raises(ForbiddenError):
            permissions.check_cancel(build_session(), STRANGER, INTERPRETER_USER)

    def test_unassigned_session_has_no_interpreter(self):
        session = build_session(interpreter_id=None)
        with pytest.raises(ForbiddenError):
            permissions.check_transition(
                session, SessionStatus.CONFIRMED, INTERPRETER, None
            )

    def test_rescheduled_status_is_interpreter_only(self):
        session = build_session(status=SessionStatus.CONFIRMED)
        permissions.check_transition(
            session, SessionStatus.RESCHEDULED, INTERPRETER, INTERPRETER_USER
        )
        permissions.check_transition(
            session, SessionStatus.RESCHEDULED, ADMIN, INTERPRETER_USER
        )
        with pytest.raises(ForbiddenError):
            permissions.check_transition(
                session, SessionStatus.RESCHEDULED, CLIENT, INTERPRETER_USER
            )

    def test_reschedule_operation_open_to_participants(self):
        session = build_session(status=SessionStatus.CONFIRMED)
        permissions.check_reschedule(session, CLIENT, INTERPRETER_USER)
        permissions.check_reschedule(session, INTERPRETER, INTERPRETER_USER)
        with pytest.raises(ForbiddenError):
            permissions.check_reschedule(session, STRANGER, INTERPRETER_USER)


class TestCheckRate:
    def test_each_side_rates_as_itself(self):
        session = build_session(status=SessionStatus.COMPLETED)
        permissions.check_rate(session, RaterRole.CLIENT, CLIENT, INTERPRETER_USER)
        permissions.check_rate(
            session, RaterRole.INTERPRETER, INTERPRETER, INTERPRETER_USER
        )

    def test_cannot_rate_as_other_side(self):
        session = build_session(status=SessionStatus.COMPLETED)
        with pytest.raises(ForbiddenError):
            permissions.check_rate(
                session, RaterRole.INTERPRETER, CLIENT, INTERPRETER_USER
            )
        with pytest.raises(ForbiddenError):
            permissions.check_rate(session, RaterRole.CLIENT, INTERPRETER, INTERPRETER_USER)


def test_view_limited_to_participants():
    session = build_session()
    permissions.check_view_session(session, CLIENT, INTERPRETER_USER)
    permissions.check_view_session(session, ADMIN, INTERPRETER_USER)
    with pytest.raises(ForbiddenError):
        permissions.check_view_session(session, STRANGER, INTERPRETER_USER)


def test_profile_owner_or_admin():
    interpreter = build_interpreter(INTERPRETER_USER)
    permissions.check_profile_owner(interpreter, INTERPRETER)
    permissions.check_profile_owner(interpreter, ADMIN)
    with pytest.raises(ForbiddenError):
        permissions.check_profile_owner(interpreter, CLIENT)


def test_self_or_admin():
    permissions.check_self_or_admin(CLIENT_ID, CLIENT)
    permissions.check_self_or_admin(CLIENT_ID, ADMIN)
    with pytest.raises(ForbiddenError):
        permissions.check_self_or_admin(CLIENT_ID, STRANGER)


def test_admin_only():
    permissions.check_admin(ADMIN)
    with pytest.raises(ForbiddenError, match="Administrator"):
        permissions.check_admin(CLIENT)


def test_custom_rate_requires_admin():
    permissions.check_rate_override(ADMIN)
    for actor in (CLIENT, INTERPRETER, None):
        with pytest.raises(ForbiddenError, match="custom hourly rate"):
            permissions.check_rate_override(actor)


class TestRestrictSessionFilter:
    def test_admin_filter_unchanged(self):
        criteria = SessionFilter(client_id="anyone")

        assert permissions.restrict_session_filter(criteria, ADMIN, None) is criteria

    def test_client_pinned_to_own_bookings(self):
        scoped = permissions.restrict_session_filter(SessionFilter(), CLIENT, None)
        assert scoped.client_id == CLIENT_ID

        with pytest.raises(ForbiddenError, match="own bookings"):
            permissions.restrict_session_filter(
                SessionFilter(client_id="client-2"), CLIENT, None
            )

    def test_interpreter_pinned_to_assignments(self):
        scoped = permissions.restrict_session_filter(
            SessionFilter(), INTERPRETER, "interp-1"
        )
        assert scoped.interpreter_id == "interp-1"

        with pytest.raises(ForbiddenError, match="own assignments"):
            permissions.restrict_session_filter(
                SessionFilter(interpreter_id="interp-2"), INTERPRETER, "interp-1"
            )
        assert (
            permissions.restrict_session_filter(SessionFilter(), INTERPRETER, None)
            is None
        )
