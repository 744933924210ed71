# ringoshop/models/order.py
from ringoshop.extensions import db
from ringoshop.utils import utcnow


class OrderStatus:
    PENDING = "pending"
    WAITING_CONFIRMATION = "waiting_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    ALL = (PENDING, WAITING_CONFIRMATION, CONFIRMED, CANCELLED)


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False, default=OrderStatus.PENDING, index=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        lazy=True,
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )
    payment = db.relationship(
        "Payment",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    def __repr__(self):
        return f"<Order #{self.id} user={self.user_id} {self.status}>"
