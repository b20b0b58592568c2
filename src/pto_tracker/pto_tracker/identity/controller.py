from __future__ import annotations

import uuid
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import InvalidStateError
from .model import Identity
from .provider import IdentityProvider, require_identity


class FlaskSessionIdentityProvider(IdentityProvider):
    """Identity taken from the signed Flask session cookie."""

    def current_identity(self) -> Identity:
        user_id = session.get("user_id")
        return Identity(id=user_id, is_authenticated=bool(user_id))

    def sign_in_anonymously(self) -> Identity:
        if not session.get("user_id"):
            session["user_id"] = uuid.uuid4().hex
        return self.current_identity()

    def sign_out(self) -> None:
        session.clear()


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_identity(FlaskSessionIdentityProvider())
        return view(*args, **kwargs)

    return wrapper


def role_required(role: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            require_identity(FlaskSessionIdentityProvider())
            if session.get("role") != role.value:
                raise InvalidStateError(f"This action requires the {role.value} role")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def register(app: Flask, container) -> None:
    identity = FlaskSessionIdentityProvider()

    def _open_views(user_id: str, role: Role) -> None:
        session["role"] = role.value
        container.view_sessions.open(user_id, role)

    @app.route("/session", methods=["POST"], endpoint="sign_in")
    def sign_in():
        current = identity.sign_in_anonymously()
        profile = container.profile_service.get(current.id)
        if profile:
            _open_views(current.id, profile.role)
        return jsonify(
            {
                "user_id": current.id,
                "profile_required": profile is None,
                "role": profile.role.value if profile else None,
            }
        )

    @app.route("/session", methods=["DELETE"], endpoint="sign_out")
    def sign_out():
        user_id = session.get("user_id")
        if user_id:
            # Listeners must be gone before any other identity signs in on this client.
            container.view_sessions.close(user_id)
        identity.sign_out()
        return jsonify({"signed_out": True})

    @app.route("/profile", methods=["GET"], endpoint="get_profile")
    @login_required
    def get_profile():
        profile = container.profile_service.get(session["user_id"])
        return jsonify({"profile": profile.to_document() if profile else None})

    @app.route("/profile", methods=["POST"], endpoint="setup_profile")
    @login_required
    def setup_profile():
        data = request.get_json(silent=True) or {}
        profile = container.profile_service.setup_profile(
            user_id=session["user_id"],
            name=data.get("name", ""),
            role=data.get("role", ""),
            company_name=data.get("companyName", ""),
            title=data.get("title", ""),
            manager=data.get("manager", ""),
        )
        _open_views(profile.user_id, profile.role)
        return jsonify({"profile": profile.to_document()}), 201
