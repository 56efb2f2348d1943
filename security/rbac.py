from functools import wraps
from flask import g, jsonify
from utils.roles import ADMIN

def has_role(role_name: str) -> bool:
    user = getattr(g, "user", None)
    if not user:
        return False
    return role_name in user.roles

def is_self_or_admin(user_id: int) -> bool:
    """Capability check: caller acts on their own id, or is ADMIN."""
    user = getattr(g, "user", None)
    if not user:
        return False
    return user.id == user_id or ADMIN in user.roles

def require_roles(*role_names: str):
    """
    Usage: @require_roles("ENTRENADOR")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            if ADMIN not in user.roles and not user.roles.intersection(set(role_names)):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
