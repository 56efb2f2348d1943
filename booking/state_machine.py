"""
Reservation lifecycle.

    PENDIENTE --confirm--> CONFIRMADA
    PENDIENTE --cancel---> CANCELADA
    CONFIRMADA --cancel--> CANCELADA
    CANCELADA --cancel---> CANCELADA   (no-op)

Creation holds the client lock and the session lock for the whole
occupy -> overlap scan -> insert -> commit unit. The client's schedule row
is also locked in the database first, so workers in other processes
booking the same client wait for the commit. Status changes are
conditional UPDATEs on the stored status, so a racing transition loses
cleanly instead of overwriting.
"""
import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import update

from models import db
from models.reservation import Reservation, PENDIENTE, CONFIRMADA, CANCELADA, RESERVATION_STATUSES
from models.training_session import TrainingSession
from booking import ledger, locks, validator
from booking.errors import InvalidTransitionError, NotFoundError, ValidationError
from booking.signals import reservation_created, reservation_confirmed, reservation_cancelled

logger = logging.getLogger(__name__)

CREATE_STATUSES = (PENDIENTE, CONFIRMADA)

# (from, to) pairs allowed through update_reservation_status
TRANSITIONS = {
    (PENDIENTE, CONFIRMADA),
    (PENDIENTE, CANCELADA),
    (CONFIRMADA, CANCELADA),
}


def _notify(signal, reservation):
    try:
        signal.send(reservation)
    except Exception:
        # booking is already committed; a failing receiver must not undo it for the caller
        logger.exception("receiver failed for %s reservation=%s", signal.name, reservation.id)


def _get_reservation(reservation_id: int) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id, populate_existing=True)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


def _insert_reservation(client_id: int, session_id: int, status: str, token) -> Reservation:
    reservation = Reservation(
        client_id=client_id,
        session_id=session_id,
        status=status,
        occupancy_token=token.token_id,
    )
    db.session.add(reservation)
    db.session.flush()
    return reservation


def _default_status() -> str:
    return current_app.config.get("RESERVATION_DEFAULT_STATUS", PENDIENTE)


def _now() -> datetime:
    return datetime.now()


def _check_lead_time(session: TrainingSession):
    starts_at = datetime.combine(session.date, session.start_time)
    now = _now()
    if starts_at <= now:
        raise ValidationError("Cannot book past/started sessions")

    lead_hours = float(current_app.config.get("BOOKING_MIN_LEAD_HOURS", 2))
    if starts_at - now < timedelta(hours=lead_hours):
        raise ValidationError(
            f"Sessions must be booked at least {lead_hours:g} hours in advance",
            details={"session_id": session.id, "starts_at": starts_at.isoformat()},
        )


def create_reservation(client_id: int, session_id: int, status: str | None = None) -> Reservation:
    status = status or _default_status()
    if status not in CREATE_STATUSES:
        raise ValidationError("Reservation must start as PENDIENTE or CONFIRMADA")

    with locks.hold(locks.client_key(client_id), locks.session_key(session_id)):
        session = db.session.get(TrainingSession, session_id, populate_existing=True)
        if session is None or not session.is_active:
            raise NotFoundError("Session not found")
        _check_lead_time(session)

        try:
            locks.lock_client_schedule(client_id)
            token = validator.validate(client_id, session)
        except Exception:
            db.session.rollback()
            raise

        try:
            reservation = _insert_reservation(client_id, session_id, status, token)
            db.session.commit()
        except Exception:
            # the rollback drops the guarded increment together with the partial insert
            db.session.rollback()
            ledger.abandon(token)
            logger.warning("reservation write failed client=%s session=%s", client_id, session_id)
            raise

    logger.info("reservation %s created client=%s session=%s status=%s",
                reservation.id, client_id, session_id, status)
    _notify(reservation_created, reservation)
    return reservation


def _set_status(reservation_id: int, expected: tuple, new_status: str, **values) -> bool:
    result = db.session.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id, Reservation.status.in_(expected))
        .values(status=new_status, updated_at=datetime.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def confirm_reservation(reservation_id: int) -> Reservation:
    reservation = _get_reservation(reservation_id)

    with locks.hold(locks.session_key(reservation.session_id)):
        if not _set_status(reservation_id, (PENDIENTE,), CONFIRMADA):
            db.session.rollback()
            current = _get_reservation(reservation_id)
            raise InvalidTransitionError(
                f"Cannot confirm a reservation in status {current.status}",
                details={"from": current.status, "to": CONFIRMADA},
            )
        db.session.commit()

    reservation = _get_reservation(reservation_id)
    logger.info("reservation %s confirmed", reservation_id)
    _notify(reservation_confirmed, reservation)
    return reservation


def cancel_reservation(reservation_id: int) -> Reservation:
    """
    Cancel and give the seat back. Cancelling twice is a no-op so clients
    can retry safely.
    """
    reservation = _get_reservation(reservation_id)
    if reservation.status == CANCELADA:
        return reservation

    with locks.hold(locks.session_key(reservation.session_id)):
        token_id = reservation.occupancy_token
        if not _set_status(
            reservation_id,
            (PENDIENTE, CONFIRMADA),
            CANCELADA,
            cancelled_at=datetime.utcnow(),
            occupancy_token=None,
        ):
            # lost a race against another cancel
            db.session.rollback()
            return _get_reservation(reservation_id)

        if token_id is not None:
            ledger.release(ledger.OccupancyToken(session_id=reservation.session_id, token_id=token_id))
        db.session.commit()

    reservation = _get_reservation(reservation_id)
    logger.info("reservation %s cancelled", reservation_id)
    _notify(reservation_cancelled, reservation)
    return reservation


def update_reservation_status(reservation_id: int, new_status: str) -> Reservation:
    if new_status not in RESERVATION_STATUSES:
        raise ValidationError("Status must be PENDIENTE, CONFIRMADA or CANCELADA")

    reservation = _get_reservation(reservation_id)
    current = reservation.status

    if current == CANCELADA and new_status == CANCELADA:
        return reservation
    if (current, new_status) not in TRANSITIONS:
        raise InvalidTransitionError(
            f"Cannot change reservation from {current} to {new_status}",
            details={"from": current, "to": new_status},
        )

    if new_status == CONFIRMADA:
        return confirm_reservation(reservation_id)
    return cancel_reservation(reservation_id)


def get_reservation(reservation_id: int) -> Reservation:
    return _get_reservation(reservation_id)


def get_by_session_id(session_id: int):
    return (
        Reservation.query.filter_by(session_id=session_id)
        .order_by(Reservation.created_at.asc(), Reservation.id.asc())
        .all()
    )


def get_by_client_id(client_id: int, status: str | None = None):
    q = Reservation.query.filter_by(client_id=client_id)
    if status:
        if status not in RESERVATION_STATUSES:
            raise ValidationError("Unknown reservation status")
        q = q.filter_by(status=status)
    return q.order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()
