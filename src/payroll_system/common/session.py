from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    user_id: int
    company_id: int
    role: Role


def current_identity() -> Identity:
    """Identity placed in the session by the authentication service."""
    return Identity(
        user_id=int(session["user_id"]),
        company_id=int(session["company_id"]),
        role=Role(session["role"]),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or "company_id" not in session:
            return jsonify({"success": False, "code": "UNAUTHENTICATED", "message": "Please sign in"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            if session.get("role") not in allowed:
                return jsonify({"success": False, "code": "FORBIDDEN", "message": "You do not have permission"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


reviewer_required = roles_required(Role.MANAGER, Role.ADMIN)
admin_required = roles_required(Role.ADMIN)
