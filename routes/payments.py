from flask import Blueprint, request, jsonify

from booking import payments, state_machine
from booking.errors import NotFoundError, ValidationError
from security.rbac import require_roles, is_self_or_admin
from utils.auth_context import login_required
from utils.audit import log_event
from utils.roles import ADMIN
from routes.serializers import payment_json

payments_bp = Blueprint("payments", __name__)


@payments_bp.post("/payments")
@login_required
def record_payment():
    data = request.get_json(silent=True) or {}
    reservation_id = data.get("reservation_id")
    if not reservation_id or data.get("amount") is None or not data.get("method"):
        return jsonify(error="reservation_id, amount, method are required"), 400

    try:
        reservation_id = int(reservation_id)
    except (TypeError, ValueError):
        raise ValidationError("reservation_id must be an integer")

    reservation = state_machine.get_reservation(reservation_id)
    if not is_self_or_admin(reservation.client_id):
        raise NotFoundError("Reservation not found")

    payment = payments.record_payment(
        reservation.id,
        data["amount"],
        data["method"],
        data.get("status") or "PENDIENTE",
    )
    log_event("PAYMENT_RECORD", entity="payment", entity_id=payment.id,
              metadata={"reservation_id": reservation.id, "amount": str(payment.amount)})
    return jsonify(payment_json(payment)), 201


@payments_bp.post("/payments/<int:payment_id>/complete")
@require_roles(ADMIN)
def complete_payment(payment_id: int):
    payment = payments.complete_payment(payment_id)
    log_event("PAYMENT_COMPLETE", entity="payment", entity_id=payment_id)
    return jsonify(payment_json(payment)), 200


@payments_bp.get("/reservations/<int:reservation_id>/payments")
@login_required
def reservation_payments(reservation_id: int):
    reservation = state_machine.get_reservation(reservation_id)
    if not is_self_or_admin(reservation.client_id):
        raise NotFoundError("Reservation not found")
    return jsonify([payment_json(p) for p in payments.list_payments(reservation_id)]), 200
