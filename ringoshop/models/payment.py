# ringoshop/models/payment.py
from ringoshop.extensions import db
from ringoshop.utils import utcnow


class PaymentStatus:
    UNPAID = "unpaid"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (UNPAID, SUBMITTED, APPROVED, REJECTED)


class Payment(db.Model):
    __tablename__ = "payment"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), unique=True, nullable=False)
    status = db.Column(db.String(32), nullable=False, default=PaymentStatus.UNPAID, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    proof_image = db.Column(db.String(255), nullable=True)
    admin_note = db.Column(db.Text, nullable=True)
    verified_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)
    submitted_at = db.Column(db.DateTime, nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)

    order = db.relationship("Order", back_populates="payment")

    def __repr__(self):
        return f"<Payment #{self.id} order={self.order_id} {self.status} {self.amount}>"
