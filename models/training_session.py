from datetime import datetime
from models.db import db


class TrainingSession(db.Model):
    __tablename__ = "training_sessions"

    id = db.Column(db.Integer, primary_key=True)

    trainer_id = db.Column(db.Integer, nullable=False, index=True)
    source_template_id = db.Column(
        db.Integer,
        db.ForeignKey("availability_templates.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    capacity = db.Column(db.Integer, nullable=False, default=1)
    # only booking.ledger writes this column
    confirmed_count = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One materialized session per template instance
        db.UniqueConstraint("source_template_id", "date", name="uq_session_template_date"),
        db.CheckConstraint("capacity >= 1", name="ck_session_capacity_positive"),
        db.CheckConstraint("confirmed_count >= 0", name="ck_session_count_positive"),
        db.CheckConstraint("confirmed_count <= capacity", name="ck_session_count_lte_capacity"),
        db.CheckConstraint("start_time < end_time", name="ck_session_time_order"),
    )

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.confirmed_count, 0)
