from datetime import datetime
from models.db import db


class ClientScheduleLock(db.Model):
    """
    One row per client. Booking transactions update it before scanning the
    client's schedule, so the row lock serializes them across processes.
    """
    __tablename__ = "client_schedule_locks"

    client_id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    version = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
