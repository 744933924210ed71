# ringoshop/auth/routes.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import or_

from ringoshop.auth.tokens import issue_token
from ringoshop.errors import AuthenticationRequired, Conflict, ValidationFailed
from ringoshop.extensions import db
from ringoshop.models.user import User
from ringoshop.services.transaction import atomic

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

MIN_PASSWORD_LENGTH = 8


def _serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    email = str(data.get("email") or "").strip().lower() or None
    password = str(data.get("password") or "")

    fields = {}
    if not username:
        fields["username"] = "required"
    elif len(username) > 150:
        fields["username"] = "at most 150 characters"
    if email is not None and "@" not in email:
        fields["email"] = "not an e-mail address"
    if len(password) < MIN_PASSWORD_LENGTH:
        fields["password"] = f"at least {MIN_PASSWORD_LENGTH} characters"
    if fields:
        raise ValidationFailed("invalid registration data", fields=fields)

    clash = User.query.filter(
        or_(User.username == username, User.email == email) if email else User.username == username
    ).first()
    if clash:
        raise Conflict("username or e-mail already registered")

    with atomic("register user"):
        user = User(username=username, email=email, is_admin=False)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()
        body = _serialize_user(user)

    current_app.logger.info("registered user %s (%s)", body["id"], username)
    return jsonify({"ok": True, "user": body}), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    password = str(data.get("password") or "")

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        current_app.logger.info("failed login for %r", username)
        raise AuthenticationRequired("invalid credentials")

    return jsonify({"ok": True, "token": issue_token(user), "user": _serialize_user(user)})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"ok": True, "user": _serialize_user(current_user)})
