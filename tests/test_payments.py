from decimal import Decimal

import pytest

from booking import payments, state_machine
from booking.errors import InvalidTransitionError, NotFoundError, ValidationError


@pytest.fixture
def reservation(make_session):
    return state_machine.create_reservation(1, make_session().id, "CONFIRMADA")


def test_record_payment(reservation):
    payment = payments.record_payment(reservation.id, "45.5", "tarjeta")

    assert payment.amount == Decimal("45.50")
    assert payment.method == "TARJETA"
    assert payment.status == "PENDIENTE"
    assert payment.paid_at is None


def test_record_completed_payment_sets_paid_at(reservation):
    payment = payments.record_payment(reservation.id, 30, "EFECTIVO", "COMPLETADO")

    assert payment.paid_at is not None


@pytest.mark.parametrize("amount, method, status", [
    (0, "TARJETA", "PENDIENTE"),
    (-5, "TARJETA", "PENDIENTE"),
    ("abc", "TARJETA", "PENDIENTE"),
    (10, "BITCOIN", "PENDIENTE"),
    (10, "TARJETA", "REEMBOLSADO"),
])
def test_record_payment_validation(reservation, amount, method, status):
    with pytest.raises(ValidationError):
        payments.record_payment(reservation.id, amount, method, status)


def test_payment_needs_existing_live_reservation(reservation):
    with pytest.raises(NotFoundError):
        payments.record_payment(999, 10, "TARJETA")

    state_machine.cancel_reservation(reservation.id)
    with pytest.raises(InvalidTransitionError):
        payments.record_payment(reservation.id, 10, "TARJETA")


def test_complete_payment_once(reservation):
    payment = payments.record_payment(reservation.id, 10, "TARJETA")

    completed = payments.complete_payment(payment.id)
    assert completed.status == "COMPLETADO"
    assert completed.paid_at is not None

    with pytest.raises(InvalidTransitionError):
        payments.complete_payment(payment.id)


def test_list_payments(reservation):
    payments.record_payment(reservation.id, 10, "TARJETA")
    payments.record_payment(reservation.id, 5, "EFECTIVO")

    assert [p.method for p in payments.list_payments(reservation.id)] == ["TARJETA", "EFECTIVO"]
    with pytest.raises(NotFoundError):
        payments.list_payments(999)
