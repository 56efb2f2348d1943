from datetime import datetime
from models.db import db

DAYS_OF_WEEK = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


class AvailabilityTemplate(db.Model):
    __tablename__ = "availability_templates"

    id = db.Column(db.Integer, primary_key=True)
    trainer_id = db.Column(db.Integer, nullable=False, index=True)

    day_of_week = db.Column(db.String(3), nullable=False)  # MON..SUN
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    # capacity given to sessions expanded from this template; falls back to DEFAULT_SESSION_CAPACITY
    default_capacity = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("start_time < end_time", name="ck_template_time_order"),
    )

    @property
    def weekday(self) -> int:
        return DAYS_OF_WEEK.index(self.day_of_week)
