# tests/conftest.py
import io
from decimal import Decimal
from types import SimpleNamespace

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from ringoshop.app import create_app
from ringoshop.auth.tokens import issue_token
from ringoshop.extensions import db
from ringoshop.models import Product, User
from ringoshop.services import EXTENSION_KEY


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + str(tmp_path / "shop.db"),
        "PAYMENT_PROOF_FOLDER": str(tmp_path / "proofs"),
        "MAIL_SUPPRESS_SEND": True,
        "BCRYPT_LOG_ROUNDS": 4,
        "ORDER_PAYMENT_WINDOW_SECONDS": 3600,
        "ORDER_EXPIRY_TIMEOUT_SECONDS": 5,
    })
    with app.app_context():
        db.create_all()

    yield app

    app.extensions[EXTENSION_KEY].expirations.shutdown(wait=True)
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def ctx(app):
    """App context for tests that call the services directly."""
    with app.app_context():
        yield


def _add_user(username, email, is_admin=False):
    user = User(username=username, email=email, is_admin=is_admin)
    user.set_password("secret-pass")
    db.session.add(user)
    return user


@pytest.fixture
def users(app):
    with app.app_context():
        customer = _add_user("alice", "alice@example.com")
        other = _add_user("bob", "bob@example.com")
        admin = _add_user("admin", "admin@example.com", is_admin=True)
        db.session.commit()
        return SimpleNamespace(customer=customer.id, other=other.id, admin=admin.id)


@pytest.fixture
def make_product(app):
    def _make(stock=5, price="10.00", name="Silver ring", sku=None):
        with app.app_context():
            product = Product(name=name, sku=sku, price=Decimal(price), stock=stock)
            db.session.add(product)
            db.session.commit()
            return product.id

    return _make


@pytest.fixture
def product(make_product):
    return make_product(stock=5, price="10.00")


@pytest.fixture
def auth_header(app):
    def _header(user_id):
        with app.app_context():
            token = issue_token(db.session.get(User, user_id))
        return {"Authorization": f"Bearer {token}"}

    return _header


def png_bytes(color="red") -> io.BytesIO:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buf, format="PNG")
    buf.seek(0)
    return buf


@pytest.fixture
def proof_file():
    def _make(data=None, filename="proof.png"):
        stream = data if data is not None else png_bytes()
        return FileStorage(stream=stream, filename=filename, content_type="image/png")

    return _make


def stock_of(product_id) -> int:
    db.session.expire_all()
    return db.session.get(Product, product_id).stock
