# ringoshop/api/routes/product_routes.py
from flask import Blueprint, jsonify

from ringoshop.api.utils.serializers import serialize_product
from ringoshop.errors import ResourceNotFound
from ringoshop.extensions import db
from ringoshop.models import Product

api_products = Blueprint("api_products", __name__, url_prefix="/api/products")


@api_products.get("")
def list_products():
    products = Product.query.order_by(Product.name.asc(), Product.id.asc()).all()
    return jsonify({"ok": True, "products": [serialize_product(p) for p in products]})


@api_products.get("/<int:product_id>")
def get_product(product_id: int):
    product = db.session.get(Product, product_id)
    if product is None:
        raise ResourceNotFound(f"product {product_id} not found")
    return jsonify({"ok": True, "product": serialize_product(product)})
