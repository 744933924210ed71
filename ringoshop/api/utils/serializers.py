# ringoshop/api/utils/serializers.py
from ringoshop.utils import iso


def _amount(val):
    return float(val) if val is not None else None


def serialize_product(p) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "sku": p.sku,
        "description": p.description,
        "price": _amount(p.price),
        "stock": int(p.stock or 0),
        "in_stock": p.is_in_stock,
    }


def serialize_item(it) -> dict:
    return {
        "id": it.id,
        "product_id": it.product_id,
        "product_name": it.product_name,
        "product_sku": it.product_sku,
        "price_at_purchase": _amount(it.price_at_purchase),
        "quantity": it.quantity,
        "subtotal": _amount(it.subtotal),
    }


def serialize_payment(pay, include_order: bool = False) -> dict:
    out = {
        "id": pay.id,
        "order_id": pay.order_id,
        "status": pay.status,
        "amount": _amount(pay.amount),
        "has_proof": bool(pay.proof_image),
        "admin_note": pay.admin_note,
        "verified_by": pay.verified_by,
        "created_at": iso(pay.created_at),
        "submitted_at": iso(pay.submitted_at),
        "verified_at": iso(pay.verified_at),
    }
    if include_order and pay.order is not None:
        out["order"] = serialize_order(pay.order, include_payment=False)
    return out


def serialize_order(o, include_payment: bool = True) -> dict:
    out = {
        "id": o.id,
        "user_id": o.user_id,
        "status": o.status,
        "subtotal": _amount(o.subtotal),
        "total_amount": _amount(o.total_amount),
        "notes": o.notes,
        "created_at": iso(o.created_at),
        "updated_at": iso(o.updated_at),
        "confirmed_at": iso(o.confirmed_at),
        "cancelled_at": iso(o.cancelled_at),
        "items": [serialize_item(it) for it in o.items],
    }
    if include_payment:
        out["payment"] = serialize_payment(o.payment) if o.payment is not None else None
    return out
