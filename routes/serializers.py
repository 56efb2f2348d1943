def _hhmm(t):
    return t.strftime("%H:%M") if t else None


def template_json(t):
    return {
        "id": t.id,
        "trainer_id": t.trainer_id,
        "day_of_week": t.day_of_week,
        "start_time": _hhmm(t.start_time),
        "end_time": _hhmm(t.end_time),
        "default_capacity": t.default_capacity,
    }


def session_json(s):
    return {
        "id": s.id,
        "trainer_id": s.trainer_id,
        "source_template_id": s.source_template_id,
        "date": s.date.isoformat(),
        "start_time": _hhmm(s.start_time),
        "end_time": _hhmm(s.end_time),
        "capacity": s.capacity,
        "confirmed_count": s.confirmed_count,
        "remaining": s.remaining,
        "is_active": s.is_active,
    }


def reservation_json(r, with_session=False):
    out = {
        "id": r.id,
        "client_id": r.client_id,
        "session_id": r.session_id,
        "status": r.status,
        "created_at": r.created_at.isoformat(),
        "cancelled_at": r.cancelled_at.isoformat() if r.cancelled_at else None,
    }
    if with_session and r.training_session is not None:
        out["session"] = session_json(r.training_session)
    return out


def payment_json(p):
    return {
        "id": p.id,
        "reservation_id": p.reservation_id,
        "amount": str(p.amount),
        "method": p.method,
        "status": p.status,
        "created_at": p.created_at.isoformat(),
        "paid_at": p.paid_at.isoformat() if p.paid_at else None,
    }
