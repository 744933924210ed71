# ringoshop/models/order_item.py
from ringoshop.extensions import db
from ringoshop.utils import utcnow


class OrderItem(db.Model):
    """Purchase-time snapshot of one product line; never updated."""

    __tablename__ = "order_item"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False)

    product_name = db.Column(db.String(150), nullable=False)
    product_sku = db.Column(db.String(64), nullable=True)
    price_at_purchase = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)

    order = db.relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} x{self.quantity}>"
