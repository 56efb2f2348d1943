"""
Session capacity ledger.

The only writer of ``TrainingSession.confirmed_count``. Both operations are
single conditional UPDATE statements, so the check and the increment (or
decrement) are one indivisible step in the database, whatever the caller's
locking looks like. Neither commits: they run inside the caller's
transaction so the counter moves together with the reservation row.
"""
import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import update

from models import db
from models.training_session import TrainingSession
from booking.errors import CapacityExceededError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class OccupancyToken:
    session_id: int
    token_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    released: bool = False


def try_occupy(session_id: int) -> OccupancyToken:
    result = db.session.execute(
        update(TrainingSession)
        .where(
            TrainingSession.id == session_id,
            TrainingSession.is_active.is_(True),
            TrainingSession.confirmed_count < TrainingSession.capacity,
        )
        .values(confirmed_count=TrainingSession.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        token = OccupancyToken(session_id=session_id)
        logger.debug("occupied session=%s token=%s", session_id, token.token_id)
        return token

    # Nothing matched: tell "full" apart from "missing/closed"
    session = db.session.get(TrainingSession, session_id, populate_existing=True)
    if session is None or not session.is_active:
        raise NotFoundError("Session not found")
    logger.info("session %s full (%s/%s)", session_id, session.confirmed_count, session.capacity)
    raise CapacityExceededError(
        "Session is full",
        details={"session_id": session_id, "capacity": session.capacity},
    )


def release(token: OccupancyToken) -> bool:
    """
    Give the token's unit back to its session. Returns False when the token
    was already released (double release is a no-op).
    """
    if token.released:
        return False

    db.session.execute(
        update(TrainingSession)
        .where(
            TrainingSession.id == token.session_id,
            TrainingSession.confirmed_count > 0,
        )
        .values(confirmed_count=TrainingSession.confirmed_count - 1)
        .execution_options(synchronize_session=False)
    )
    token.released = True
    logger.debug("released session=%s token=%s", token.session_id, token.token_id)
    return True


def abandon(token: OccupancyToken):
    """
    Mark a token released after its transaction was rolled back. The rollback
    already undid the increment, so nothing is written here.
    """
    if not token.released:
        token.released = True
        logger.warning("occupancy rolled back session=%s token=%s", token.session_id, token.token_id)


def occupancy(session_id: int) -> tuple[int, int]:
    """Returns (confirmed_count, capacity) as currently stored."""
    session = db.session.get(TrainingSession, session_id, populate_existing=True)
    if session is None:
        raise NotFoundError("Session not found")
    return session.confirmed_count, session.capacity
