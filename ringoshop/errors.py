# ringoshop/errors.py
from __future__ import annotations

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ringoshop.extensions import db


class ShopError(Exception):
    """Base class for errors that map onto a client-facing JSON response.

    ``message`` is always safe to show to the caller; internal detail goes to
    the log, never into the message.
    """

    status_code = 500
    message = "internal error"

    def __init__(self, message: str | None = None, *, fields: dict | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.fields = fields or {}

    def to_dict(self) -> dict:
        body = {"ok": False, "error": self.message}
        if self.fields:
            body["fields"] = self.fields
        return body


class ValidationFailed(ShopError):
    status_code = 400
    message = "invalid input"


class AuthenticationRequired(ShopError):
    status_code = 401
    message = "authentication required"


class AccessDenied(ShopError):
    status_code = 403
    message = "you are not allowed to access this resource"


class ResourceNotFound(ShopError):
    status_code = 404
    message = "not found"


class Conflict(ShopError):
    status_code = 409
    message = "conflicting state"


class InsufficientStock(Conflict):
    message = "insufficient stock"

    def __init__(self, product_id: int, requested: int, available: int | None = None):
        detail = f"insufficient stock for product {product_id}"
        if available is not None:
            detail = f"{detail}: {available} left, {requested} requested"
        super().__init__(detail)
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidTransition(Conflict):
    message = "illegal status transition"

    def __init__(self, current: str, target: str, what: str = "order"):
        super().__init__(f"{what} cannot move from '{current}' to '{target}'")
        self.current = current
        self.target = target


class PaymentWindowClosed(Conflict):
    message = "the payment window for this order is closed"


class PersistenceError(ShopError):
    status_code = 500
    message = "database error"


class StorageError(ShopError):
    status_code = 500
    message = "could not store the uploaded file"


def register_error_handlers(app) -> None:
    @app.errorhandler(ShopError)
    def _shop_error(err: ShopError):
        if err.status_code >= 500:
            current_app.logger.error("%s: %s", type(err).__name__, err.message)
        else:
            current_app.logger.info("%s (%s): %s", type(err).__name__, err.status_code, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        return jsonify({"ok": False, "error": err.description or err.name}), err.code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(err: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("unhandled database error")
        return jsonify({"ok": False, "error": PersistenceError.message}), 500

    @app.errorhandler(Exception)
    def _unexpected(err: Exception):
        current_app.logger.exception("unhandled error")
        return jsonify({"ok": False, "error": ShopError.message}), 500
