# ringoshop/auth/tokens.py
from flask import current_app
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from ringoshop.extensions import db


def _get_serializer() -> URLSafeTimedSerializer:
    secret = current_app.config.get("SECRET_KEY")
    if not secret:
        raise RuntimeError("SECRET_KEY is not set, bearer tokens cannot be issued")
    salt = current_app.config.get("AUTH_TOKEN_SALT", "ringoshop-auth")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


def issue_token(user) -> str:
    return _get_serializer().dumps({"uid": str(user.id), "role": user.role})


def load_user_from_token(token: str):
    """Return the user behind ``token`` or None when it is invalid or expired."""
    from ringoshop.models.user import User

    max_age = current_app.config.get("AUTH_TOKEN_MAX_AGE", 24 * 60 * 60)
    try:
        data = _get_serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("expired bearer token presented")
        return None
    except BadSignature:
        current_app.logger.warning("bearer token with bad signature presented")
        return None

    try:
        return db.session.get(User, int(data.get("uid")))
    except (AttributeError, TypeError, ValueError):
        return None
