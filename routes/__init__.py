from .health import health_bp
from .availability import availability_bp
from .reservations import reservations_bp
from .payments import payments_bp
from .audit_logs import audit_bp
