# ringoshop/api/routes/order_routes.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ringoshop.api.utils.params import int_field
from ringoshop.api.utils.serializers import serialize_order
from ringoshop.errors import ValidationFailed
from ringoshop.services import get_services

order_bp = Blueprint("order_bp", __name__, url_prefix="/api/orders")


@order_bp.post("")
@login_required
def create_order():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed("expected a JSON object")

    product_id = int_field(data, "product_id")
    quantity = int_field(data, "quantity")
    notes = data.get("notes")

    order = get_services().orders.create_order(product_id, quantity, current_user.id, notes=notes)
    return jsonify({"ok": True, "order": serialize_order(order)}), 201


@order_bp.get("")
@login_required
def my_orders():
    orders = get_services().orders.list_for_user(current_user.id)
    return jsonify({"ok": True, "orders": [serialize_order(o) for o in orders]})


@order_bp.get("/<int:order_id>")
@login_required
def get_order(order_id: int):
    order = get_services().orders.get_order(order_id, current_user.id, is_admin=current_user.is_admin)
    return jsonify({"ok": True, "order": serialize_order(order)})
