from flask import Blueprint, request, jsonify, g

from booking import state_machine
from booking.availability import get_session
from booking.errors import CapacityExceededError, ScheduleConflictError, NotFoundError, ValidationError
from models.reservation import CANCELADA
from security.rbac import has_role, is_self_or_admin, require_roles
from utils.auth_context import login_required
from utils.audit import log_event
from utils.roles import ADMIN, CLIENT
from routes.serializers import reservation_json

reservations_bp = Blueprint("reservations", __name__)


def _is_session_trainer(reservation) -> bool:
    session = reservation.training_session or get_session(reservation.session_id)
    return session.trainer_id == g.user.id


def _visible_reservation(reservation_id: int):
    """Reservation visible to its client, the session's trainer, or ADMIN."""
    reservation = state_machine.get_reservation(reservation_id)
    if not (is_self_or_admin(reservation.client_id) or _is_session_trainer(reservation)):
        raise NotFoundError("Reservation not found")
    return reservation


# ---------- CLIENTS: book a session (OVERBOOKING SAFE) ----------
@reservations_bp.post("/reservations")
@require_roles(CLIENT)
def create_reservation():
    data = request.get_json(silent=True) or {}
    session_id = data.get("session_id")
    if not session_id:
        return jsonify(error="session_id required"), 400

    client_id = data.get("client_id", g.user.id)
    try:
        client_id = int(client_id)
        session_id = int(session_id)
    except (TypeError, ValueError):
        raise ValidationError("client_id and session_id must be integers")

    if not is_self_or_admin(client_id):
        return jsonify(error="Forbidden"), 403

    status = (data.get("status") or "").strip().upper() or None

    try:
        reservation = state_machine.create_reservation(client_id, session_id, status)
    except (CapacityExceededError, ScheduleConflictError) as e:
        log_event("RESERVATION_REJECTED", entity="session", entity_id=session_id,
                  metadata={"client_id": client_id, "code": e.code})
        raise

    log_event("RESERVATION_CREATE", entity="reservation", entity_id=reservation.id,
              metadata={"session_id": session_id, "client_id": client_id})
    return jsonify(reservation_json(reservation)), 201


@reservations_bp.get("/reservations/<int:reservation_id>")
@login_required
def get_reservation(reservation_id: int):
    reservation = _visible_reservation(reservation_id)
    return jsonify(reservation_json(reservation, with_session=True)), 200


# ---------- TRAINER/ADMIN: status correction ----------
@reservations_bp.patch("/reservations/<int:reservation_id>")
@login_required
def update_reservation(reservation_id: int):
    data = request.get_json(silent=True) or {}
    status = (data.get("status") or "").strip().upper()
    if not status:
        return jsonify(error="status required"), 400

    reservation = _visible_reservation(reservation_id)
    # clients may only cancel their own reservation
    if status != CANCELADA and not (has_role(ADMIN) or _is_session_trainer(reservation)):
        return jsonify(error="Forbidden"), 403

    previous = reservation.status
    reservation = state_machine.update_reservation_status(reservation_id, status)
    log_event("RESERVATION_STATUS_UPDATE", entity="reservation", entity_id=reservation_id,
              metadata={"from": previous, "to": reservation.status})
    return jsonify(reservation_json(reservation)), 200


@reservations_bp.post("/reservations/<int:reservation_id>/confirm")
@login_required
def confirm_reservation(reservation_id: int):
    reservation = _visible_reservation(reservation_id)
    if not (has_role(ADMIN) or _is_session_trainer(reservation)):
        return jsonify(error="Forbidden"), 403

    reservation = state_machine.confirm_reservation(reservation_id)
    log_event("RESERVATION_CONFIRM", entity="reservation", entity_id=reservation_id)
    return jsonify(reservation_json(reservation)), 200


@reservations_bp.delete("/reservations/<int:reservation_id>")
@login_required
def cancel_reservation(reservation_id: int):
    _visible_reservation(reservation_id)
    reservation = state_machine.cancel_reservation(reservation_id)
    log_event("RESERVATION_CANCEL", entity="reservation", entity_id=reservation_id)
    return jsonify(reservation_json(reservation)), 200


# ---------- CLIENTS: my reservations ----------
@reservations_bp.get("/clients/<int:client_id>/reservations")
@login_required
def client_reservations(client_id: int):
    if not is_self_or_admin(client_id):
        return jsonify(error="Forbidden"), 403

    # optional: status filter
    status = request.args.get("status")
    rows = state_machine.get_by_client_id(client_id, status)
    return jsonify([reservation_json(r, with_session=True) for r in rows]), 200
