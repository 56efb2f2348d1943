"""
Conflict validation run before a reservation is admitted.

Capacity goes first through the ledger (inside the caller's transaction),
then the client's own schedule is scanned for overlaps. A token taken in
step one is handed back if step two fails.
"""
import logging

from models import db
from models.reservation import Reservation, CANCELADA
from models.training_session import TrainingSession
from booking import ledger
from booking.errors import ScheduleConflictError

logger = logging.getLogger(__name__)


def windows_overlap(a_start, a_end, b_start, b_end) -> bool:
    # half-open [start, end): touching endpoints do not overlap
    return a_start < b_end and b_start < a_end


def find_overlapping(client_id: int, session: TrainingSession):
    """Client's non-cancelled reservations whose session overlaps ``session``."""
    return (
        db.session.query(Reservation)
        .join(TrainingSession, Reservation.session_id == TrainingSession.id)
        .filter(
            Reservation.client_id == client_id,
            Reservation.status != CANCELADA,
            TrainingSession.date == session.date,
            TrainingSession.start_time < session.end_time,
            TrainingSession.end_time > session.start_time,
        )
        .all()
    )


def check_overlap(client_id: int, session: TrainingSession):
    clashes = find_overlapping(client_id, session)
    if clashes:
        other = clashes[0]
        logger.info(
            "schedule conflict client=%s session=%s clashes with reservation=%s",
            client_id, session.id, other.id,
        )
        raise ScheduleConflictError(
            "Client already has a reservation overlapping this session",
            details={"reservation_id": other.id, "session_id": other.session_id},
        )


def validate(client_id: int, session: TrainingSession) -> ledger.OccupancyToken:
    """
    Runs both checks and returns the occupancy token the new reservation
    will hold. Raises CapacityExceededError or ScheduleConflictError.
    """
    token = ledger.try_occupy(session.id)
    try:
        check_overlap(client_id, session)
    except ScheduleConflictError:
        ledger.release(token)
        raise
    return token
