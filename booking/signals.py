"""
Post-commit notifications for downstream collaborators (payments,
notifications). Receivers get the reservation as sender and must not
change booking state.
"""
from blinker import Namespace

_signals = Namespace()

reservation_created = _signals.signal("reservation-created")
reservation_confirmed = _signals.signal("reservation-confirmed")
reservation_cancelled = _signals.signal("reservation-cancelled")
