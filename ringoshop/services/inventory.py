# ringoshop/services/inventory.py
from __future__ import annotations

from flask import current_app

from ringoshop.errors import InsufficientStock, ValidationFailed
from ringoshop.extensions import db

_DECREMENT_SQL = db.text("UPDATE product SET stock = stock - :qty WHERE id = :pid AND stock >= :qty")
_RESTORE_SQL = db.text("UPDATE product SET stock = stock + :qty WHERE id = :pid")
_STOCK_SQL = db.text("SELECT stock FROM product WHERE id = :pid")


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailed("quantity must be a positive integer", fields={"quantity": quantity})
    return quantity


class InventoryLedger:
    """Stock movements tied to order lines.

    Never commits: every call runs inside the caller's transaction so a failed
    decrement takes the whole order write down with it.
    """

    def current_stock(self, product_id: int) -> int | None:
        return db.session.execute(_STOCK_SQL, {"pid": product_id}).scalar()

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        qty = _check_quantity(quantity)
        updated = db.session.execute(_DECREMENT_SQL, {"qty": qty, "pid": product_id})
        if updated.rowcount == 0:
            raise InsufficientStock(product_id, qty, self.current_stock(product_id))
        return self.current_stock(product_id)

    def restore_stock(self, product_id: int, quantity: int) -> None:
        qty = _check_quantity(quantity)
        updated = db.session.execute(_RESTORE_SQL, {"qty": qty, "pid": product_id})
        if updated.rowcount == 0:
            current_app.logger.warning(
                "restore_stock: product %s is gone, %s unit(s) not returned", product_id, qty
            )

    def restore_items(self, items) -> None:
        for item in items:
            self.restore_stock(item.product_id, item.quantity)
