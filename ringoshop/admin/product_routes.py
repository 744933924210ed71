# ringoshop/admin/product_routes.py
from decimal import InvalidOperation

from flask import current_app, jsonify, request

from ringoshop.api.utils.serializers import serialize_product
from ringoshop.auth.decorators import admin_required
from ringoshop.errors import Conflict, ResourceNotFound, ValidationFailed
from ringoshop.extensions import db
from ringoshop.models import Product
from ringoshop.services import get_services
from ringoshop.services.transaction import atomic
from ringoshop.utils import money

from . import admin_bp


def _parse_product(data: dict) -> dict:
    fields = {}
    name = str(data.get("name") or "").strip()
    if not name:
        fields["name"] = "required"

    try:
        price = money(data.get("price"))
        if price <= 0:
            fields["price"] = "must be greater than 0"
    except InvalidOperation:
        price = None
        fields["price"] = "must be a number"

    stock = data.get("stock", 0)
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        fields["stock"] = "must be a non-negative integer"

    if fields:
        raise ValidationFailed("invalid product data", fields=fields)

    return {
        "name": name,
        "sku": (str(data.get("sku") or "").strip() or None),
        "description": data.get("description") or None,
        "price": price,
        "stock": stock,
    }


@admin_bp.post("/products")
@admin_required
def create_product():
    values = _parse_product(request.get_json(silent=True) or {})
    if values["sku"] and Product.query.filter_by(sku=values["sku"]).first():
        raise Conflict(f"sku {values['sku']} already exists")

    with atomic("create product"):
        product = Product(**values)
        db.session.add(product)
        db.session.flush()
        product_id = product.id

    current_app.logger.info("product %s created (%s, stock=%s)", product_id, values["name"], values["stock"])
    return jsonify({"ok": True, "product": serialize_product(db.session.get(Product, product_id))}), 201


@admin_bp.post("/products/<int:product_id>/stock")
@admin_required
def restock_product(product_id: int):
    data = request.get_json(silent=True) or {}
    quantity = data.get("quantity")

    inventory = get_services().inventory
    with atomic("restock product"):
        if db.session.get(Product, product_id) is None:
            raise ResourceNotFound(f"product {product_id} not found")
        inventory.restore_stock(product_id, quantity)

    product = db.session.get(Product, product_id)
    current_app.logger.info("product %s restocked by %s, stock now %s", product_id, quantity, product.stock)
    return jsonify({"ok": True, "product": serialize_product(product)})
