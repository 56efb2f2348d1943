from .errors import (
    BookingError,
    ValidationError,
    InvalidDateError,
    CapacityExceededError,
    ScheduleConflictError,
    InvalidTransitionError,
    NotFoundError,
    SessionInUseError,
)
from .ledger import OccupancyToken, try_occupy, release
from .materializer import materialize, materialize_range
from .validator import validate
from .state_machine import (
    create_reservation,
    confirm_reservation,
    cancel_reservation,
    update_reservation_status,
    get_reservation,
    get_by_session_id,
    get_by_client_id,
)
