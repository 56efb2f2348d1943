import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app import create_app
from config import TestConfig
from booking import availability, locks, state_machine
from booking.errors import CapacityExceededError, ScheduleConflictError
from models import db
from models.reservation import Reservation
from conftest import MONDAY, stored_count


@pytest.fixture
def file_app(tmp_path):
    class FileDbConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "concurrency.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        LOG_LEVEL = "WARNING"

    app = create_app(FileDbConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _race(app, calls):
    """Run (client_id, session_id) create calls at once; returns outcome per call."""
    barrier = threading.Barrier(len(calls))

    def attempt(call):
        client_id, session_id = call
        with app.app_context():
            barrier.wait()
            try:
                state_machine.create_reservation(client_id, session_id)
                return "ok"
            except CapacityExceededError:
                return "full"
            except ScheduleConflictError:
                return "conflict"

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(attempt, calls))


@pytest.mark.parametrize("extra", [1, 5])
def test_capacity_holds_under_concurrent_creates(file_app, extra):
    with file_app.app_context():
        session_id = availability.create_session(100, MONDAY, "10:00", "11:00", 3).id

    outcomes = _race(file_app, [(client_id, session_id) for client_id in range(1, 4 + extra)])

    assert outcomes.count("ok") == 3
    assert outcomes.count("full") == extra
    with file_app.app_context():
        active = Reservation.query.filter(
            Reservation.session_id == session_id, Reservation.status != "CANCELADA"
        ).count()
        assert active == 3
        assert stored_count(session_id) == 3
    assert locks.held_keys() == 0


def test_same_client_cannot_double_book_concurrently(file_app):
    with file_app.app_context():
        a = availability.create_session(100, MONDAY, "10:00", "11:00", 5).id
        b = availability.create_session(101, MONDAY, "10:30", "11:30", 5).id

    outcomes = _race(file_app, [(1, a), (1, b), (1, a), (1, b)])

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 3
    with file_app.app_context():
        assert stored_count(a) + stored_count(b) == 1
