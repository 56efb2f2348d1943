"""
Trainer-facing management of availability templates and sessions.
"""
import logging
import re
from datetime import date, datetime, time

from flask import current_app
from sqlalchemy import update

from models import db
from models.availability_template import AvailabilityTemplate, DAYS_OF_WEEK
from models.reservation import Reservation
from models.training_session import TrainingSession
from booking import locks
from booking.errors import NotFoundError, SessionInUseError, ValidationError

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_time(value, field: str = "time") -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    m = _HHMM.match((value or "").strip()) if isinstance(value, str) else None
    if not m:
        raise ValidationError(f"{field} must use HH:MM format")
    return time(int(m.group(1)), int(m.group(2)))


def parse_date(value, field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"{field} must use YYYY-MM-DD format")


def parse_day(value) -> str:
    day = (value or "").strip().upper() if isinstance(value, str) else ""
    if day not in DAYS_OF_WEEK:
        raise ValidationError("day_of_week must be one of " + ", ".join(DAYS_OF_WEEK))
    return day


def parse_capacity(value, field: str = "capacity") -> int:
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, bool) or capacity < 1:
        raise ValidationError(f"{field} must be at least 1")
    return capacity


def _check_window(start: time, end: time):
    if end <= start:
        raise ValidationError("end_time must be after start_time")


# ---------- templates ----------

def get_template(template_id: int) -> AvailabilityTemplate:
    template = db.session.get(AvailabilityTemplate, template_id)
    if template is None:
        raise NotFoundError("Availability template not found")
    return template


def list_templates(trainer_id: int | None = None):
    q = AvailabilityTemplate.query
    if trainer_id is not None:
        q = q.filter_by(trainer_id=trainer_id)
    templates = q.all()
    return sorted(templates, key=lambda t: (t.trainer_id, t.weekday, t.start_time))


def create_template(trainer_id: int, day_of_week, start_time, end_time, default_capacity=None) -> AvailabilityTemplate:
    start = parse_time(start_time, "start_time")
    end = parse_time(end_time, "end_time")
    _check_window(start, end)

    template = AvailabilityTemplate(
        trainer_id=trainer_id,
        day_of_week=parse_day(day_of_week),
        start_time=start,
        end_time=end,
        default_capacity=parse_capacity(default_capacity, "default_capacity") if default_capacity is not None else None,
    )
    db.session.add(template)
    db.session.commit()
    return template


def update_template(template_id: int, day_of_week=None, start_time=None, end_time=None, default_capacity=None) -> AvailabilityTemplate:
    """
    Changes time bounds or day of a template. Sessions already materialized
    keep the times they were created with.
    """
    template = get_template(template_id)

    start = parse_time(start_time, "start_time") if start_time is not None else template.start_time
    end = parse_time(end_time, "end_time") if end_time is not None else template.end_time
    _check_window(start, end)

    if day_of_week is not None:
        template.day_of_week = parse_day(day_of_week)
    if default_capacity is not None:
        template.default_capacity = parse_capacity(default_capacity, "default_capacity")
    template.start_time = start
    template.end_time = end
    db.session.commit()
    return template


def delete_template(template_id: int):
    template = get_template(template_id)
    # detach already materialized sessions; they stay bookable as ad hoc slots
    db.session.execute(
        update(TrainingSession)
        .where(TrainingSession.source_template_id == template.id)
        .values(source_template_id=None)
        .execution_options(synchronize_session=False)
    )
    db.session.delete(template)
    db.session.commit()


# ---------- sessions ----------

def get_session(session_id: int) -> TrainingSession:
    session = db.session.get(TrainingSession, session_id, populate_existing=True)
    if session is None:
        raise NotFoundError("Session not found")
    return session


def list_sessions(trainer_id: int | None = None, day: date | None = None, include_closed: bool = False,
                  from_date: date | None = None, available_only: bool = False):
    q = TrainingSession.query
    if not include_closed:
        q = q.filter_by(is_active=True)
    if trainer_id is not None:
        q = q.filter_by(trainer_id=trainer_id)
    if day is not None:
        q = q.filter_by(date=day)
    if from_date is not None:
        q = q.filter(TrainingSession.date >= from_date)
    if available_only:
        q = q.filter(TrainingSession.confirmed_count < TrainingSession.capacity)
    return q.order_by(TrainingSession.date.asc(), TrainingSession.start_time.asc()).all()



def create_session(trainer_id: int, day, start_time, end_time, capacity=None) -> TrainingSession:
    """Ad hoc session that does not come from a template."""
    start = parse_time(start_time, "start_time")
    end = parse_time(end_time, "end_time")
    _check_window(start, end)
    if capacity is None:
        capacity = current_app.config.get("DEFAULT_SESSION_CAPACITY", 1)

    session = TrainingSession(
        trainer_id=trainer_id,
        source_template_id=None,
        date=parse_date(day),
        start_time=start,
        end_time=end,
        capacity=parse_capacity(capacity),
        confirmed_count=0,
    )
    db.session.add(session)
    db.session.commit()
    return session


def update_session_capacity(session_id: int, capacity) -> TrainingSession:
    capacity = parse_capacity(capacity)
    get_session(session_id)

    with locks.hold(locks.session_key(session_id)):
        result = db.session.execute(
            update(TrainingSession)
            .where(TrainingSession.id == session_id, TrainingSession.confirmed_count <= capacity)
            .values(capacity=capacity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            session = get_session(session_id)
            raise SessionInUseError(
                f"Session already holds {session.confirmed_count} reservations",
                details={"confirmed_count": session.confirmed_count, "capacity": capacity},
            )
        db.session.commit()

    logger.info("session %s capacity set to %s", session_id, capacity)
    return get_session(session_id)


def withdraw_session(session_id: int) -> TrainingSession:
    """Soft-close an empty session so it can no longer be booked."""
    get_session(session_id)

    with locks.hold(locks.session_key(session_id)):
        result = db.session.execute(
            update(TrainingSession)
            .where(TrainingSession.id == session_id, TrainingSession.confirmed_count == 0)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise SessionInUseError("Cancel the session's reservations before withdrawing it")
        db.session.commit()

    logger.info("session %s withdrawn", session_id)
    return get_session(session_id)


def delete_session(session_id: int) -> bool:
    """
    Returns True when the row was removed. A session with cancelled
    reservations on record is soft-closed instead, keeping their history.
    """
    with locks.hold(locks.session_key(session_id)):
        session = get_session(session_id)
        if session.confirmed_count > 0:
            raise SessionInUseError("Cancel the session's reservations before deleting it")

        has_history = Reservation.query.filter_by(session_id=session_id).first() is not None
        if has_history:
            session.is_active = False
        else:
            db.session.delete(session)
        db.session.commit()

    logger.info("session %s %s", session_id, "closed" if has_history else "deleted")
    return not has_history
