import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from config import TestConfig
from models import db
from models.training_session import TrainingSession
from booking import availability

MONDAY = date(2030, 10, 21)
TUESDAY = date(2030, 10, 22)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_session(app):
    def _make(start="10:00", end="11:00", capacity=1, day=MONDAY, trainer_id=100):
        return availability.create_session(trainer_id, day, start, end, capacity)
    return _make


@pytest.fixture
def make_template(app):
    def _make(day_of_week="MON", start="10:00", end="11:00", capacity=None, trainer_id=100):
        return availability.create_template(trainer_id, day_of_week, start, end, capacity)
    return _make


def as_user(user_id, *roles):
    return {"X-User-Id": str(user_id), "X-User-Roles": ",".join(roles)}


def stored_count(session_id):
    return db.session.get(TrainingSession, session_id, populate_existing=True).confirmed_count
