# ringoshop/services/payments.py
from __future__ import annotations

import os

from flask import current_app
from sqlalchemy.orm import joinedload

from ringoshop.errors import (
    AccessDenied,
    Conflict,
    InvalidTransition,
    PaymentWindowClosed,
    ResourceNotFound,
    ValidationFailed,
)
from ringoshop.extensions import db
from ringoshop.models import Order, OrderItem, OrderStatus, Payment, PaymentStatus
from ringoshop.services.notifications import notify_payment_decision
from ringoshop.services.transaction import atomic
from ringoshop.services.transitions import transition_order, transition_payment
from ringoshop.utils import utcnow

MAX_NOTE_LENGTH = 1000


def _clean_note(note):
    if note is None:
        return None
    if not isinstance(note, str):
        raise ValidationFailed("note must be a string", fields={"note": "must be a string"})
    note = note.strip()
    if len(note) > MAX_NOTE_LENGTH:
        raise ValidationFailed("note is too long", fields={"note": f"at most {MAX_NOTE_LENGTH} characters"})
    return note or None


class PaymentReconciler:
    """Proof upload by the buyer and the admin approve / reject decision."""

    def __init__(self, *, inventory, expirations, storage):
        self.inventory = inventory
        self.expirations = expirations
        self.storage = storage

    def _load(self, payment_id: int) -> Payment:
        payment = (
            Payment.query.options(joinedload(Payment.order))
            .filter(Payment.id == payment_id)
            .populate_existing()
            .one_or_none()
        )
        if payment is None:
            raise ResourceNotFound(f"payment {payment_id} not found")
        return payment

    # -- buyer side ---------------------------------------------------------

    def submit_proof(self, order_id: int, user_id: int, proof_file) -> Payment:
        handle = self.storage.save_proof(proof_file)
        try:
            payment_id = self._record_submission(order_id, user_id, handle)
        except Exception:
            self.storage.delete(handle)
            raise

        self.expirations.cancel(order_id)
        current_app.logger.info("payment proof for order %s submitted by user %s (%s)", order_id, user_id, handle)
        return self._load(payment_id)

    def _record_submission(self, order_id: int, user_id: int, handle: str) -> int:
        with atomic("submit payment proof"):
            order = db.session.get(Order, order_id, populate_existing=True)
            if order is None:
                raise ResourceNotFound(f"order {order_id} not found")
            if order.user_id != user_id:
                current_app.logger.warning(
                    "user %s tried to pay order %s of user %s", user_id, order_id, order.user_id
                )
                raise AccessDenied("you cannot pay for this order")
            if not order.is_pending:
                raise PaymentWindowClosed(f"order {order_id} is {order.status}, payment is no longer accepted")

            # the expiry worker may have cancelled the order since the read above
            if not transition_order(order_id, OrderStatus.WAITING_CONFIRMATION, sources=(OrderStatus.PENDING,)):
                current_app.logger.warning("order %s left pending while its proof was uploaded", order_id)
                raise PaymentWindowClosed(f"order {order_id} is no longer pending")

            now = utcnow()
            moved = transition_payment(
                PaymentStatus.SUBMITTED,
                order_id=order_id,
                sources=(PaymentStatus.UNPAID,),
                proof_image=handle,
                amount=order.subtotal,
                submitted_at=now,
                updated_at=now,
            )
            if not moved:
                raise Conflict(f"payment of order {order_id} was already submitted")

            payment_id = db.session.query(Payment.id).filter(Payment.order_id == order_id).scalar()
        return payment_id

    # -- admin side ---------------------------------------------------------

    def approve(self, payment_id: int, admin_id: int, note: str | None = None) -> Payment:
        note = _clean_note(note)
        with atomic("approve payment"):
            payment = self._load(payment_id)
            now = utcnow()
            if not transition_payment(
                PaymentStatus.APPROVED,
                payment_id=payment_id,
                sources=(PaymentStatus.SUBMITTED,),
                verified_by=admin_id,
                admin_note=note,
                verified_at=now,
            ):
                raise InvalidTransition(payment.status, PaymentStatus.APPROVED, what="payment")
            if not transition_order(payment.order_id, OrderStatus.CONFIRMED, sources=(OrderStatus.WAITING_CONFIRMATION,)):
                raise InvalidTransition(payment.order.status, OrderStatus.CONFIRMED)
            order_id = payment.order_id

        current_app.logger.info("payment %s approved by admin %s, order %s confirmed", payment_id, admin_id, order_id)
        payment = self._load(payment_id)
        notify_payment_decision(payment)
        return payment

    def reject(self, payment_id: int, admin_id: int, note: str | None = None) -> Payment:
        note = _clean_note(note)
        with atomic("reject payment"):
            payment = self._load(payment_id)
            if not transition_payment(
                PaymentStatus.REJECTED,
                payment_id=payment_id,
                sources=(PaymentStatus.SUBMITTED,),
                verified_by=admin_id,
                admin_note=note,
                verified_at=utcnow(),
            ):
                raise InvalidTransition(payment.status, PaymentStatus.REJECTED, what="payment")
            if not transition_order(payment.order_id, OrderStatus.CANCELLED, sources=(OrderStatus.WAITING_CONFIRMATION,)):
                raise InvalidTransition(payment.order.status, OrderStatus.CANCELLED)

            items = OrderItem.query.filter_by(order_id=payment.order_id).all()
            self.inventory.restore_items(items)
            order_id = payment.order_id

        self.expirations.cancel(order_id)
        current_app.logger.info(
            "payment %s rejected by admin %s, order %s cancelled and %s line(s) restocked",
            payment_id, admin_id, order_id, len(items),
        )
        payment = self._load(payment_id)
        notify_payment_decision(payment)
        return payment

    # -- reads --------------------------------------------------------------

    def get_pending_payments(self) -> list[Payment]:
        return (
            Payment.query.options(joinedload(Payment.order))
            .filter(Payment.status == PaymentStatus.SUBMITTED)
            .order_by(Payment.submitted_at.asc(), Payment.id.asc())
            .all()
        )

    def get_payment(self, payment_id: int) -> Payment:
        return self._load(payment_id)

    def proof_location(self, payment: Payment) -> str:
        """Absolute path of the stored proof image of ``payment``."""
        if not payment.proof_image or not self.storage.exists(payment.proof_image):
            raise ResourceNotFound(f"payment {payment.id} has no proof image")
        return os.path.join(os.path.abspath(self.storage.root), os.path.basename(payment.proof_image))
