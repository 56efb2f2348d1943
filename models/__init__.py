from .db import db
from .audit_log import AuditLog
from .availability_template import AvailabilityTemplate
from .training_session import TrainingSession
from .reservation import Reservation
from .payment import Payment
from .client_schedule_lock import ClientScheduleLock
