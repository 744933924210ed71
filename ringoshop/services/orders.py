# ringoshop/services/orders.py
from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy.orm import joinedload, selectinload

from ringoshop.errors import (
    AccessDenied,
    Conflict,
    InsufficientStock,
    InvalidTransition,
    ResourceNotFound,
    ValidationFailed,
)
from ringoshop.extensions import db
from ringoshop.models import Order, OrderItem, OrderStatus, Payment, PaymentStatus
from ringoshop.services.notifications import notify_order_created, notify_payment_decision
from ringoshop.services.transaction import apply_statement_timeout, atomic
from ringoshop.services.transitions import (
    sources_for,
    transition_order,
    transition_payment,
)
from ringoshop.utils import money, utcnow

# states an explicit cancel may start from
CANCELLABLE = sources_for(OrderStatus.CANCELLED)

# payment state an admin status change requires
PAYMENT_REQUIRED = {
    OrderStatus.WAITING_CONFIRMATION: PaymentStatus.SUBMITTED,
    OrderStatus.CONFIRMED: PaymentStatus.SUBMITTED,
}

MAX_NOTES_LENGTH = 1000


def _with_details(query):
    return query.options(selectinload(Order.items), joinedload(Order.payment))


class OrderManager:
    """Order creation, reads, status changes and the auto-cancel action."""

    def __init__(
        self,
        app,
        *,
        catalog,
        inventory,
        expirations,
        payment_window: timedelta,
        expiry_timeout: float = 10,
        max_quantity: int = 1000,
    ):
        # kept for the expiry worker, which runs outside any request
        self.app = app
        self.catalog = catalog
        self.inventory = inventory
        self.expirations = expirations
        self.payment_window = payment_window
        self.expiry_timeout = expiry_timeout
        self.max_quantity = max_quantity

    # -- creation -----------------------------------------------------------

    def _validate(self, quantity, notes):
        fields = {}
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            fields["quantity"] = "must be an integer"
        elif not 1 <= quantity <= self.max_quantity:
            fields["quantity"] = f"must be between 1 and {self.max_quantity}"
        if notes is not None:
            if not isinstance(notes, str):
                fields["notes"] = "must be a string"
            elif len(notes) > MAX_NOTES_LENGTH:
                fields["notes"] = f"at most {MAX_NOTES_LENGTH} characters"
        if fields:
            raise ValidationFailed("invalid order data", fields=fields)

    def create_order(self, product_id: int, quantity: int, user_id: int, notes: str | None = None) -> Order:
        self._validate(quantity, notes)

        snapshot = self.catalog.get_product_snapshot(product_id)
        if snapshot.stock < quantity:
            raise InsufficientStock(product_id, quantity, snapshot.stock)

        subtotal = money(snapshot.unit_price * quantity)

        with atomic("create order"):
            order = Order(
                user_id=user_id,
                status=OrderStatus.PENDING,
                subtotal=subtotal,
                total_amount=subtotal,
                notes=(notes or None),
            )
            db.session.add(order)
            db.session.flush()

            db.session.add(OrderItem(
                order_id=order.id,
                product_id=snapshot.id,
                product_name=snapshot.name,
                product_sku=snapshot.sku,
                price_at_purchase=money(snapshot.unit_price),
                quantity=quantity,
                subtotal=subtotal,
            ))
            db.session.flush()

            # guarded: aborts the whole transaction when stock ran out meanwhile
            remaining = self.inventory.decrement_stock(snapshot.id, quantity)

            db.session.add(Payment(
                order_id=order.id,
                status=PaymentStatus.UNPAID,
                amount=order.total_amount,
            ))
            order_id = order.id

        current_app.logger.info(
            "order %s created: user=%s product=%s qty=%s total=%s stock_left=%s",
            order_id, user_id, product_id, quantity, subtotal, remaining,
        )
        self.schedule_expiry(order_id)

        order = self._load(order_id)
        notify_order_created(order)
        return order

    def schedule_expiry(self, order_id: int) -> None:
        self.expirations.register(order_id, utcnow() + self.payment_window, self.expire)

    # -- reads --------------------------------------------------------------

    def _load(self, order_id: int) -> Order:
        order = _with_details(Order.query).filter(Order.id == order_id).populate_existing().one_or_none()
        if order is None:
            raise ResourceNotFound(f"order {order_id} not found")
        return order

    def get_order(self, order_id: int, user_id: int, is_admin: bool = False) -> Order:
        order = self._load(order_id)
        if order.user_id != user_id and not is_admin:
            current_app.logger.warning("user %s tried to read order %s of user %s", user_id, order_id, order.user_id)
            raise AccessDenied("you cannot access this order")
        return order

    def list_for_user(self, user_id: int) -> list[Order]:
        return (
            _with_details(Order.query)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def list_all(self) -> list[Order]:
        return _with_details(Order.query).order_by(Order.created_at.desc(), Order.id.desc()).all()

    def list_by_status(self, status: str) -> list[Order]:
        status = (status or "").strip().lower()
        if status not in OrderStatus.ALL:
            raise ValidationFailed(
                f"unknown order status '{status}'",
                fields={"status": f"one of {', '.join(OrderStatus.ALL)}"},
            )
        return (
            _with_details(Order.query)
            .filter(Order.status == status)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    # -- status changes -----------------------------------------------------

    def update_status(self, order_id: int, new_status: str, admin_id: int | None = None) -> Order:
        """Admin status change; the payment always moves with the order.

        ``waiting_confirmation`` is only reachable with a submitted payment and
        ``confirmed`` approves that payment in the same transaction.
        """
        new_status = (new_status or "").strip().lower()
        if new_status not in OrderStatus.ALL:
            raise ValidationFailed(
                f"unknown order status '{new_status}'",
                fields={"status": f"one of {', '.join(OrderStatus.ALL)}"},
            )

        if new_status == OrderStatus.CANCELLED:
            # cancellation always goes through the compensating path
            self.cancel(order_id)
            return self._load(order_id)

        with atomic("update order status"):
            if not transition_order(order_id, new_status):
                order = db.session.get(Order, order_id, populate_existing=True)
                if order is None:
                    raise ResourceNotFound(f"order {order_id} not found")
                raise InvalidTransition(order.status, new_status)

            payment = Payment.query.filter_by(order_id=order_id).populate_existing().one()
            required = PAYMENT_REQUIRED.get(new_status)
            if payment.status != required:
                raise Conflict(f"order {order_id} cannot move to '{new_status}' while its payment is {payment.status}")

            if new_status == OrderStatus.CONFIRMED and not transition_payment(
                PaymentStatus.APPROVED,
                order_id=order_id,
                sources=(PaymentStatus.SUBMITTED,),
                verified_by=admin_id,
                verified_at=utcnow(),
            ):
                raise Conflict(f"payment of order {order_id} changed while it was being approved")

        self.expirations.cancel(order_id)
        current_app.logger.info("order %s moved to %s by admin %s", order_id, new_status, admin_id)
        order = self._load(order_id)
        if new_status == OrderStatus.CONFIRMED:
            notify_payment_decision(order.payment)
        return order

    def cancel(self, order_id: int, *, pending_only: bool = False, timeout: float | None = None) -> bool:
        """Cancel the order, put its stock back and reject its payment.

        Returns False when there was nothing to do (already cancelled, or
        ``pending_only`` and the order already left ``pending``). Stock is
        restored only by the call that actually moved the order.
        """
        sources = (OrderStatus.PENDING,) if pending_only else CANCELLABLE

        with atomic("cancel order"):
            apply_statement_timeout(timeout)

            if not transition_order(order_id, OrderStatus.CANCELLED, sources=sources):
                order = db.session.get(Order, order_id, populate_existing=True)
                if order is None:
                    raise ResourceNotFound(f"order {order_id} not found")
                if order.status == OrderStatus.CANCELLED or pending_only:
                    current_app.logger.info("cancel order %s: nothing to do (status=%s)", order_id, order.status)
                    return False
                raise InvalidTransition(order.status, OrderStatus.CANCELLED)

            items = OrderItem.query.filter_by(order_id=order_id).all()
            self.inventory.restore_items(items)

            transition_payment(PaymentStatus.REJECTED, order_id=order_id)

        self.expirations.cancel(order_id)
        current_app.logger.info(
            "order %s cancelled, restored %s",
            order_id, ", ".join(f"product {it.product_id} +{it.quantity}" for it in items),
        )
        return True

    def expire(self, order_id: int) -> bool:
        """Auto-cancel action run by the expiration worker.

        Pushes its own app context and bounds its database work by
        ``expiry_timeout``; it never depends on the request that created the
        order. Failures are logged and not retried.
        """
        with self.app.app_context():
            try:
                cancelled = self.cancel(order_id, pending_only=True, timeout=self.expiry_timeout)
            except Exception:
                current_app.logger.exception("auto-cancel of order %s failed", order_id)
                return False
            if cancelled:
                current_app.logger.info("order %s expired: payment window closed", order_id)
            return cancelled

    def expire_stale(self, now=None) -> list[int]:
        """Cancel pending orders whose payment window already passed.

        Covers deadlines lost with a process restart.
        """
        cutoff = (now or utcnow()) - self.payment_window
        stale_ids = [
            oid for (oid,) in db.session.query(Order.id)
            .filter(Order.status == OrderStatus.PENDING, Order.created_at <= cutoff)
            .order_by(Order.id)
            .all()
        ]
        expired = []
        for order_id in stale_ids:
            if self.cancel(order_id, pending_only=True, timeout=self.expiry_timeout):
                expired.append(order_id)
        return expired
