import pytest

from ringoshop.errors import InsufficientStock, ValidationFailed
from ringoshop.extensions import db

from conftest import stock_of


def test_decrement_returns_remaining_stock(ctx, services, product):
    remaining = services.inventory.decrement_stock(product, 2)
    db.session.commit()

    assert remaining == 3
    assert stock_of(product) == 3


def test_decrement_refuses_to_go_negative(ctx, services, product):
    with pytest.raises(InsufficientStock) as excinfo:
        services.inventory.decrement_stock(product, 6)
    db.session.rollback()

    assert excinfo.value.available == 5
    assert excinfo.value.status_code == 409
    assert stock_of(product) == 5


def test_decrement_whole_stock_is_allowed(ctx, services, product):
    assert services.inventory.decrement_stock(product, 5) == 0
    db.session.commit()
    assert stock_of(product) == 0


@pytest.mark.parametrize("qty", [0, -1, "2", 1.5, True])
def test_quantity_must_be_positive_integer(ctx, services, product, qty):
    with pytest.raises(ValidationFailed):
        services.inventory.decrement_stock(product, qty)
    with pytest.raises(ValidationFailed):
        services.inventory.restore_stock(product, qty)


def test_restore_adds_back(ctx, services, product):
    services.inventory.restore_stock(product, 4)
    db.session.commit()
    assert stock_of(product) == 9


def test_restore_of_missing_product_is_logged_not_raised(ctx, services, caplog):
    services.inventory.restore_stock(9999, 1)
    assert "product 9999 is gone" in caplog.text
