# ringoshop/admin/routes.py
from flask import jsonify, request
from flask_login import current_user

from ringoshop.api.utils.params import int_field
from ringoshop.api.utils.serializers import serialize_order
from ringoshop.auth.decorators import admin_required
from ringoshop.errors import ValidationFailed
from ringoshop.services import get_services

from . import admin_bp


@admin_bp.get("/orders")
@admin_required
def list_orders():
    orders = get_services().orders
    status = request.args.get("status")
    rows = orders.list_by_status(status) if status is not None else orders.list_all()
    return jsonify({"ok": True, "orders": [serialize_order(o) for o in rows]})


@admin_bp.put("/orders/status")
@admin_required
def update_order_status():
    data = request.get_json(silent=True) or {}
    order_id = int_field(data, "order_id")
    status = data.get("status")
    if not isinstance(status, str) or not status.strip():
        raise ValidationFailed("status is required", fields={"status": "required"})

    order = get_services().orders.update_status(order_id, status, admin_id=current_user.id)
    return jsonify({"ok": True, "order": serialize_order(order)})


@admin_bp.post("/orders/<int:order_id>/cancel")
@admin_required
def cancel_order(order_id: int):
    orders = get_services().orders
    changed = orders.cancel(order_id)
    order = orders.get_order(order_id, None, is_admin=True)
    return jsonify({"ok": True, "cancelled": changed, "order": serialize_order(order)})
