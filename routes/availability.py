from flask import Blueprint, request, jsonify, g

from booking import availability, materializer
from booking.errors import NotFoundError, ValidationError
from booking.state_machine import get_by_session_id
from security.rbac import require_roles, is_self_or_admin
from utils.auth_context import login_required
from utils.audit import log_event
from utils.roles import TRAINER
from routes.serializers import template_json, session_json, reservation_json

availability_bp = Blueprint("availability", __name__)


def _trainer_id_from(data):
    """Trainers publish for themselves; ADMIN may publish on behalf of a trainer_id."""
    trainer_id = data.get("trainer_id")
    if trainer_id is None:
        return g.user.id
    try:
        trainer_id = int(trainer_id)
    except (TypeError, ValueError):
        raise ValidationError("trainer_id must be an integer")
    if not is_self_or_admin(trainer_id):
        raise NotFoundError("Trainer not found")
    return trainer_id


def _own_template(template_id: int):
    template = availability.get_template(template_id)
    if not is_self_or_admin(template.trainer_id):
        raise NotFoundError("Availability template not found")
    return template


def _own_session(session_id: int):
    session = availability.get_session(session_id)
    if not is_self_or_admin(session.trainer_id):
        raise NotFoundError("Session not found")
    return session


# ---------- TRAINERS: weekly templates ----------
@availability_bp.post("/templates")
@require_roles(TRAINER)
def create_template():
    data = request.get_json(silent=True) or {}
    for key in ("day_of_week", "start_time", "end_time"):
        if not data.get(key):
            return jsonify(error="day_of_week, start_time, end_time are required"), 400

    template = availability.create_template(
        trainer_id=_trainer_id_from(data),
        day_of_week=data["day_of_week"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        default_capacity=data.get("default_capacity"),
    )
    log_event("TEMPLATE_CREATE", entity="template", entity_id=template.id)
    return jsonify(template_json(template)), 201


@availability_bp.get("/templates")
@login_required
def list_templates():
    trainer_id = request.args.get("trainer_id", type=int)
    templates = availability.list_templates(trainer_id)
    return jsonify([template_json(t) for t in templates]), 200


@availability_bp.patch("/templates/<int:template_id>")
@require_roles(TRAINER)
def update_template(template_id: int):
    _own_template(template_id)
    data = request.get_json(silent=True) or {}
    template = availability.update_template(
        template_id,
        day_of_week=data.get("day_of_week"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        default_capacity=data.get("default_capacity"),
    )
    log_event("TEMPLATE_UPDATE", entity="template", entity_id=template.id, metadata=data)
    return jsonify(template_json(template)), 200


@availability_bp.delete("/templates/<int:template_id>")
@require_roles(TRAINER)
def delete_template(template_id: int):
    _own_template(template_id)
    availability.delete_template(template_id)
    log_event("TEMPLATE_DELETE", entity="template", entity_id=template_id)
    return jsonify(message="Template deleted"), 200


@availability_bp.post("/templates/<int:template_id>/materialize")
@require_roles(TRAINER)
def materialize_template(template_id: int):
    template = _own_template(template_id)
    data = request.get_json(silent=True) or {}

    if data.get("date"):
        sessions = [materializer.materialize(template, availability.parse_date(data["date"]))]
    elif data.get("start_date") and data.get("end_date"):
        sessions = materializer.materialize_range(
            template,
            availability.parse_date(data["start_date"], "start_date"),
            availability.parse_date(data["end_date"], "end_date"),
        )
    else:
        return jsonify(error="date or start_date/end_date required"), 400

    log_event("SESSIONS_MATERIALIZE", entity="template", entity_id=template_id,
              metadata={"session_ids": [s.id for s in sessions]})
    return jsonify([session_json(s) for s in sessions]), 200


# ---------- TRAINERS: concrete sessions ----------
@availability_bp.post("/sessions")
@require_roles(TRAINER)
def create_session():
    data = request.get_json(silent=True) or {}
    if not data.get("date") or not data.get("start_time") or not data.get("end_time"):
        return jsonify(error="date, start_time, end_time are required"), 400

    session = availability.create_session(
        trainer_id=_trainer_id_from(data),
        day=data["date"],
        start_time=data["start_time"],
        end_time=data["end_time"],
        capacity=data.get("capacity"),
    )
    log_event("SESSION_CREATE", entity="session", entity_id=session.id)
    return jsonify(session_json(session)), 201


@availability_bp.get("/sessions")
@login_required
def list_sessions():
    # optional filters: trainer_id, date or from_date (YYYY-MM-DD), available=1
    trainer_id = request.args.get("trainer_id", type=int)
    date_str = request.args.get("date")
    from_str = request.args.get("from_date")
    day = availability.parse_date(date_str) if date_str else None
    from_day = availability.parse_date(from_str, "from_date") if from_str else None
    available_only = request.args.get("available", "").strip().lower() in ("1", "true", "yes")

    sessions = availability.list_sessions(
        trainer_id=trainer_id, day=day, from_date=from_day, available_only=available_only,
    )
    return jsonify([session_json(s) for s in sessions]), 200


@availability_bp.get("/sessions/<int:session_id>")
@login_required
def get_session(session_id: int):
    return jsonify(session_json(availability.get_session(session_id))), 200


@availability_bp.patch("/sessions/<int:session_id>")
@require_roles(TRAINER)
def update_session(session_id: int):
    _own_session(session_id)
    data = request.get_json(silent=True) or {}
    if data.get("capacity") is None:
        return jsonify(error="capacity required"), 400

    session = availability.update_session_capacity(session_id, data["capacity"])
    log_event("SESSION_UPDATE", entity="session", entity_id=session_id, metadata={"capacity": session.capacity})
    return jsonify(session_json(session)), 200


@availability_bp.post("/sessions/<int:session_id>/withdraw")
@require_roles(TRAINER)
def withdraw_session(session_id: int):
    _own_session(session_id)
    session = availability.withdraw_session(session_id)
    log_event("SESSION_WITHDRAW", entity="session", entity_id=session_id)
    return jsonify(session_json(session)), 200


@availability_bp.delete("/sessions/<int:session_id>")
@require_roles(TRAINER)
def delete_session(session_id: int):
    _own_session(session_id)
    deleted = availability.delete_session(session_id)
    log_event("SESSION_DELETE", entity="session", entity_id=session_id, metadata={"deleted": deleted})
    return jsonify(message="Session deleted" if deleted else "Session closed"), 200


@availability_bp.get("/sessions/<int:session_id>/reservations")
@require_roles(TRAINER)
def session_reservations(session_id: int):
    _own_session(session_id)
    return jsonify([reservation_json(r) for r in get_by_session_id(session_id)]), 200
