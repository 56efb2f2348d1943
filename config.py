import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the code as trainerbook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "trainerbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Capacity for sessions whose template does not set one
    DEFAULT_SESSION_CAPACITY = int(os.getenv("DEFAULT_SESSION_CAPACITY", "1"))

    # Status new reservations start in when the caller does not pass one
    RESERVATION_DEFAULT_STATUS = os.getenv("RESERVATION_DEFAULT_STATUS", "PENDIENTE")

    # Minimum notice, in hours, between booking and session start
    BOOKING_MIN_LEAD_HOURS = float(os.getenv("BOOKING_MIN_LEAD_HOURS", "2"))

    # Longest date range a single materialize call may expand
    MATERIALIZE_MAX_DAYS = int(os.getenv("MATERIALIZE_MAX_DAYS", "62"))

    # Identity headers set by the upstream gateway after authentication
    USER_ID_HEADER = "X-User-Id"
    USER_ROLES_HEADER = "X-User-Roles"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    DEFAULT_SESSION_CAPACITY = 1
    RESERVATION_DEFAULT_STATUS = "PENDIENTE"
    LOG_LEVEL = "DEBUG"
