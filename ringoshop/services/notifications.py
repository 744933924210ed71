# ringoshop/services/notifications.py
from __future__ import annotations

from flask import current_app
from flask_mail import Message

from ringoshop.extensions import mail
from ringoshop.models import Order, Payment, PaymentStatus


def send_email(subject, recipients, body, sender=None):
    """Plain UTF-8 text mail through Flask-Mail."""
    if isinstance(recipients, str):
        recipients = [recipients]

    msg = Message(
        subject=subject or "",
        recipients=list(recipients or []),
        body=body or "",
        sender=sender,
    )
    msg.charset = "utf-8"
    mail.send(msg)
    return msg


def notify_order_created(order: Order) -> bool:
    """Confirmation to the buyer plus a copy to ORDER_NOTIFY_EMAIL. Never raises."""
    user = order.user
    item_lines = [
        f"- {it.product_name} x {it.quantity} @ {it.price_at_purchase:.2f} = {it.subtotal:.2f}"
        for it in order.items
    ]
    window = current_app.config.get("ORDER_PAYMENT_WINDOW_SECONDS", 0) // 60
    body = "\n".join(
        [
            f"Hello {user.username if user else ''},",
            "",
            f"thank you for your order #{order.id}.",
            "",
            *item_lines,
            "",
            f"Total: {order.total_amount:.2f}",
            "",
            f"Please upload your payment proof within {window} minutes,",
            "otherwise the order is cancelled automatically.",
        ]
    )

    sent = False
    try:
        if user is not None and user.email:
            send_email(f"Order #{order.id} received", [user.email], body)
            sent = True
        owner = current_app.config.get("ORDER_NOTIFY_EMAIL")
        if owner:
            send_email(f"New order #{order.id}", [owner], body)
    except Exception:
        current_app.logger.exception("order confirmation e-mail for order %s failed", order.id)
        return False
    return sent


def notify_payment_decision(payment: Payment) -> bool:
    """Tell the buyer whether their proof was accepted. Never raises."""
    order = payment.order
    user = order.user if order is not None else None
    if user is None or not user.email:
        return False

    if payment.status == PaymentStatus.APPROVED:
        subject = f"Payment for order #{order.id} approved"
        lines = [f"Your payment of {payment.amount:.2f} was verified. The order is confirmed."]
    else:
        subject = f"Payment for order #{order.id} rejected"
        lines = ["Your payment proof could not be verified and the order was cancelled."]
    if payment.admin_note:
        lines += ["", f"Note: {payment.admin_note}"]

    try:
        send_email(subject, [user.email], "\n".join([f"Hello {user.username},", "", *lines]))
    except Exception:
        current_app.logger.exception("payment decision e-mail for payment %s failed", payment.id)
        return False
    return True
