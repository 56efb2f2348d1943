from dataclasses import dataclass, field
from functools import wraps
from flask import g, jsonify, request, current_app
from utils.roles import parse_role_names


@dataclass
class Principal:
    """Caller identity as forwarded by the gateway (already authenticated upstream)."""
    id: int
    roles: set = field(default_factory=set)


def load_current_user():
    id_header = current_app.config.get("USER_ID_HEADER", "X-User-Id")
    roles_header = current_app.config.get("USER_ROLES_HEADER", "X-User-Roles")

    raw_id = (request.headers.get(id_header) or "").strip()
    if not raw_id.isdigit():
        g.user = None
        return
    g.user = Principal(id=int(raw_id), roles=parse_role_names(request.headers.get(roles_header)))

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
