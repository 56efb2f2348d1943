from datetime import datetime
from models.db import db

PENDIENTE = "PENDIENTE"
CONFIRMADA = "CONFIRMADA"
CANCELADA = "CANCELADA"
RESERVATION_STATUSES = (PENDIENTE, CONFIRMADA, CANCELADA)


class Reservation(db.Model):
    __tablename__ = "reservations"

    id = db.Column(db.Integer, primary_key=True)

    client_id = db.Column(db.Integer, nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("training_sessions.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=PENDIENTE)
    # status values: PENDIENTE, CONFIRMADA, CANCELADA

    # set while the reservation holds one unit of session capacity
    occupancy_token = db.Column(db.String(36), nullable=True, unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    training_session = db.relationship("TrainingSession", lazy="joined")

    __table_args__ = (
        db.Index("ix_reservations_client_status", "client_id", "status"),
    )
