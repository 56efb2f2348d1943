from datetime import datetime
from models.db import db

PAYMENT_METHODS = ("TARJETA", "EFECTIVO")
PAYMENT_STATUSES = ("PENDIENTE", "COMPLETADO")


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey("reservations.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    method = db.Column(db.String(20), nullable=False)  # TARJETA, EFECTIVO
    status = db.Column(db.String(20), nullable=False, default="PENDIENTE")  # PENDIENTE, COMPLETADO

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)
