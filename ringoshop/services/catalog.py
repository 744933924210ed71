# ringoshop/services/catalog.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ringoshop.errors import ResourceNotFound
from ringoshop.extensions import db
from ringoshop.models import Product


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    sku: str | None
    unit_price: Decimal
    stock: int


class Catalog:
    def get_product_snapshot(self, product_id: int) -> ProductSnapshot:
        product = db.session.get(Product, product_id)
        if product is None:
            raise ResourceNotFound(f"product {product_id} not found")
        return ProductSnapshot(
            id=product.id,
            name=product.name,
            sku=product.sku,
            unit_price=Decimal(product.price),
            stock=int(product.stock or 0),
        )
