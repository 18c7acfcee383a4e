"""Acting-user identity taken from signed bearer tokens."""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

STAFF_ROLES = ("staff", "owner")
CUSTOMER_ROLES = ("pet_owner",)


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="auth-token")


def issue_token(user_id: int, role: str) -> str:
    return _serializer().dumps({"user_id": user_id, "role": role})


def get_identity() -> Identity | None:
    """Extract and validate the acting user from the Authorization header.

    Returns None if the header is missing or the token is invalid/expired.
    The result is cached for the rest of the request.
    """
    if "identity" in g:
        return g.identity

    identity = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
        try:
            payload = _serializer().loads(token, max_age=current_app.config.get("TOKEN_MAX_AGE_SECONDS", 86400))
        except BadSignature:
            current_app.logger.warning("Rejected invalid or expired token")
            payload = None
        if isinstance(payload, dict) and payload.get("user_id") and payload.get("role"):
            identity = Identity(user_id=int(payload["user_id"]), role=str(payload["role"]))

    g.identity = identity
    return identity


def require_roles(*roles: str):
    """Reject requests whose identity is missing (401) or has another role (403)."""

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if request.method == "OPTIONS":
                return view(*args, **kwargs)
            identity = get_identity()
            if identity is None:
                return jsonify({"error": "unauthorized", "message": "Authentication required"}), 401
            if identity.role not in roles:
                return jsonify({"error": "forbidden", "message": "Not allowed for this role"}), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator
