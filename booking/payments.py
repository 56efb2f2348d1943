"""
Payment ledger rows attached to reservations. No gateway is involved; the
only booking rule applied is that the reservation exists and is still live.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from models import db
from models.payment import Payment, PAYMENT_METHODS, PAYMENT_STATUSES
from models.reservation import Reservation, CANCELADA
from booking.errors import InvalidTransitionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _parse_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be positive")
    return amount.quantize(Decimal("0.01"))


def record_payment(reservation_id: int, amount, method: str, status: str = "PENDIENTE") -> Payment:
    method = (method or "").strip().upper()
    if method not in PAYMENT_METHODS:
        raise ValidationError("method must be TARJETA or EFECTIVO")
    status = (status or "PENDIENTE").strip().upper()
    if status not in PAYMENT_STATUSES:
        raise ValidationError("status must be PENDIENTE or COMPLETADO")
    amount = _parse_amount(amount)

    reservation = db.session.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    if reservation.status == CANCELADA:
        raise InvalidTransitionError("Cannot attach a payment to a cancelled reservation")

    payment = Payment(
        reservation_id=reservation.id,
        amount=amount,
        method=method,
        status=status,
        paid_at=datetime.utcnow() if status == "COMPLETADO" else None,
    )
    db.session.add(payment)
    db.session.commit()
    logger.info("payment %s recorded for reservation %s", payment.id, reservation.id)
    return payment


def get_payment(payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def complete_payment(payment_id: int) -> Payment:
    payment = get_payment(payment_id)
    if payment.status == "COMPLETADO":
        raise InvalidTransitionError("Payment already completed")
    payment.status = "COMPLETADO"
    payment.paid_at = datetime.utcnow()
    db.session.commit()
    return payment


def list_payments(reservation_id: int):
    if db.session.get(Reservation, reservation_id) is None:
        raise NotFoundError("Reservation not found")
    return Payment.query.filter_by(reservation_id=reservation_id).order_by(Payment.created_at.asc(), Payment.id.asc()).all()
