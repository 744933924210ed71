# ringoshop/services/transitions.py
from __future__ import annotations

from sqlalchemy import update

from ringoshop.extensions import db
from ringoshop.models import Order, OrderStatus, Payment, PaymentStatus
from ringoshop.utils import utcnow

ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.WAITING_CONFIRMATION, OrderStatus.CANCELLED}),
    OrderStatus.WAITING_CONFIRMATION: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    PaymentStatus.UNPAID: frozenset({PaymentStatus.SUBMITTED, PaymentStatus.REJECTED}),
    PaymentStatus.SUBMITTED: frozenset({PaymentStatus.APPROVED, PaymentStatus.REJECTED}),
    PaymentStatus.APPROVED: frozenset(),
    PaymentStatus.REJECTED: frozenset(),
}

# audit timestamp stamped when an order *enters* the status
ORDER_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def can_transition(current: str, target: str, table=ORDER_TRANSITIONS) -> bool:
    return target in table.get(current, frozenset())


def sources_for(target: str, table=ORDER_TRANSITIONS) -> tuple[str, ...]:
    """All states from which ``target`` is reachable in one step."""
    return tuple(sorted(state for state, targets in table.items() if target in targets))


def transition_order(order_id: int, target: str, sources=None) -> bool:
    """Compare-and-set the order status inside the current transaction.

    Only rows whose current status is in ``sources`` (default: every legal
    predecessor of ``target``) are touched, so two competing writers can never
    both win. Returns True when the row moved.
    """
    allowed = tuple(sources) if sources is not None else sources_for(target)
    allowed = tuple(s for s in allowed if can_transition(s, target))
    if not allowed:
        return False

    now = utcnow()
    values = {"status": target, "updated_at": now}
    stamp = ORDER_TIMESTAMPS.get(target)
    if stamp:
        values[stamp] = now

    result = db.session.execute(
        update(Order)
        .where(Order.id == order_id, Order.status.in_(allowed))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def transition_payment(target: str, *, payment_id=None, order_id=None, sources=None, **values) -> bool:
    """Compare-and-set a payment row, addressed by id or by its order."""
    if (payment_id is None) == (order_id is None):
        raise ValueError("address the payment by exactly one of payment_id / order_id")

    allowed = tuple(sources) if sources is not None else sources_for(target, PAYMENT_TRANSITIONS)
    allowed = tuple(s for s in allowed if can_transition(s, target, PAYMENT_TRANSITIONS))
    if not allowed:
        return False

    stmt = update(Payment).where(Payment.status.in_(allowed))
    if payment_id is not None:
        stmt = stmt.where(Payment.id == payment_id)
    else:
        stmt = stmt.where(Payment.order_id == order_id)

    values.setdefault("updated_at", utcnow())
    result = db.session.execute(
        stmt.values(status=target, **values).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
