# ringoshop/models/user.py
from ringoshop.extensions import db, bcrypt
from ringoshop.utils import utcnow
from flask_login import UserMixin


class User(db.Model, UserMixin):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(150), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(200), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    orders = db.relationship("Order", back_populates="user", lazy=True)

    # --- Password handling ---------------------------------------------------
    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.generate_password_hash(password).decode("utf-8")

    def check_password(self, password: str) -> bool:
        try:
            return bcrypt.check_password_hash(self.password_hash, password)
        except ValueError:
            # malformed hash in the row
            return False

    @property
    def role(self) -> str:
        return "admin" if self.is_admin else "customer"

    def get_id(self):
        return str(self.id)

    def __repr__(self):
        return f"<User {self.username} role={self.role}>"
