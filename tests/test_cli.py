from datetime import timedelta

from ringoshop.extensions import db
from ringoshop.models import Order, OrderStatus, Product, User


def test_create_admin(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--username", "root", "--password", "pw-12345678"])
    assert "Admin ready: root" in result.output

    again = runner.invoke(args=["create-admin", "--username", "root", "--password", "other-pass"])
    assert "already exists" in again.output

    with app.app_context():
        user = User.query.filter_by(username="root").one()
        assert user.is_admin
        assert user.check_password("pw-12345678")


def test_seed_catalog_is_repeatable(app):
    runner = app.test_cli_runner()
    assert "Seeded 3 product(s)." in runner.invoke(args=["seed-catalog"]).output
    assert "Seeded 0 product(s)." in runner.invoke(args=["seed-catalog"]).output
    with app.app_context():
        assert Product.query.count() == 3


def test_expire_stale_orders(app, services, users, product):
    with app.app_context():
        order = services.orders.create_order(product, 2, users.customer)
        order.created_at = order.created_at - timedelta(days=1)
        db.session.commit()
        order_id = order.id

    result = app.test_cli_runner().invoke(args=["expire-stale-orders"])
    assert f"Cancelled orders: {order_id}" in result.output

    with app.app_context():
        assert db.session.get(Order, order_id).status == OrderStatus.CANCELLED
        assert db.session.get(Product, product).stock == 5
