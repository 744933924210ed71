# ringoshop/services/transaction.py
from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ringoshop.errors import PersistenceError, ShopError
from ringoshop.extensions import db


@contextmanager
def atomic(action: str):
    """Run the block as one transaction on the current scoped session.

    Commits when the block finishes. Business errors roll back and propagate
    unchanged; database errors roll back, are logged with full detail and
    surface as ``PersistenceError`` carrying only ``action``.
    """
    try:
        yield db.session
        db.session.commit()
    except ShopError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("%s failed", action)
        raise PersistenceError(f"{action} failed") from exc
    except Exception:
        db.session.rollback()
        raise


def apply_statement_timeout(seconds: float | None) -> None:
    """Bound every statement of the current transaction (PostgreSQL only)."""
    if not seconds:
        return
    bind = db.session.get_bind()
    if bind.dialect.name == "postgresql":
        db.session.execute(db.text(f"SET LOCAL statement_timeout = {int(seconds * 1000)}"))
