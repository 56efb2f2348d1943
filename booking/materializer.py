"""
Expands availability templates into dated training sessions.

Materializing the same (template, date) twice hands back the session
created the first time. The unique (source_template_id, date) constraint
settles concurrent first calls: the loser rolls back and reads the
winner's row.
"""
import logging
from datetime import date, timedelta

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability_template import AvailabilityTemplate, DAYS_OF_WEEK
from models.training_session import TrainingSession
from booking import locks
from booking.errors import InvalidDateError

logger = logging.getLogger(__name__)


def _existing(template_id: int, day: date):
    return TrainingSession.query.filter_by(source_template_id=template_id, date=day).first()


def template_capacity(template: AvailabilityTemplate) -> int:
    if template.default_capacity:
        return template.default_capacity
    return int(current_app.config.get("DEFAULT_SESSION_CAPACITY", 1))


def _reopen(session: TrainingSession) -> TrainingSession:
    """Republishing a withdrawn date puts the (empty) session back on sale."""
    with locks.hold(locks.session_key(session.id)):
        result = db.session.execute(
            update(TrainingSession)
            .where(
                TrainingSession.id == session.id,
                TrainingSession.is_active.is_(False),
                TrainingSession.confirmed_count == 0,
            )
            .values(is_active=True)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

    if result.rowcount == 1:
        logger.info("reopened withdrawn session %s", session.id)
    return db.session.get(TrainingSession, session.id, populate_existing=True)


def materialize(template: AvailabilityTemplate, day: date) -> TrainingSession:
    if day.weekday() != template.weekday:
        raise InvalidDateError(
            f"{day.isoformat()} is a {DAYS_OF_WEEK[day.weekday()]}, template runs on {template.day_of_week}",
            details={"template_id": template.id, "date": day.isoformat()},
        )

    session = _existing(template.id, day)
    if session:
        if not session.is_active:
            return _reopen(session)
        return session

    session = TrainingSession(
        trainer_id=template.trainer_id,
        source_template_id=template.id,
        date=day,
        start_time=template.start_time,
        end_time=template.end_time,
        capacity=template_capacity(template),
        confirmed_count=0,
    )
    db.session.add(session)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        session = _existing(template.id, day)
        if session is None:
            raise
        logger.info("template %s on %s materialized concurrently, reusing session %s",
                    template.id, day, session.id)
        return session

    logger.info("materialized template %s on %s as session %s", template.id, day, session.id)
    return session


def materialize_range(template: AvailabilityTemplate, start_date: date, end_date: date):
    """Materialize every date in [start_date, end_date] falling on the template's weekday."""
    if end_date < start_date:
        raise InvalidDateError("end_date must not be before start_date")

    max_days = int(current_app.config.get("MATERIALIZE_MAX_DAYS", 62))
    if (end_date - start_date).days + 1 > max_days:
        raise InvalidDateError(f"Date range longer than {max_days} days")

    offset = (template.weekday - start_date.weekday()) % 7
    day = start_date + timedelta(days=offset)
    sessions = []
    while day <= end_date:
        sessions.append(materialize(template, day))
        day += timedelta(days=7)
    return sessions
