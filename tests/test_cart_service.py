import threading
from decimal import Decimal

import pytest

from storefront.data.database import SessionLocal
from storefront.data.models import CartItemModel, CartModel
from storefront.domain.errors import (
    CartItemNotFound,
    CartNotFound,
    InsufficientStock,
    ProductNotFound,
    ValidationFailed,
)
from storefront.services.cart_service import CartService


def test_get_cart_without_cart_is_empty(db, user):
    cart = CartService(db).get_cart(user["id"])

    assert cart == {"items": [], "total": Decimal("0.00")}
    assert db.query(CartModel).count() == 0


def test_get_or_create_cart_returns_same_cart(db, user):
    service = CartService(db)

    first = service.get_or_create_cart(user["id"])
    second = service.get_or_create_cart(user["id"])

    assert first["id"] == second["id"]
    assert db.query(CartModel).filter_by(user_id=user["id"]).count() == 1


def test_add_item_to_empty_cart(db, user, make_product):
    product = make_product(price="6.50", stock=10)
    service = CartService(db)

    item = service.add_item(user["id"], product.id, 2)
    cart = service.get_cart(user["id"])

    assert item["quantity"] == 2
    assert item["product"]["name"] == "Victorious XIII"
    assert len(cart["items"]) == 1
    assert cart["total"] == Decimal("13.00")


def test_add_same_product_twice_merges_lines(db, user, make_product):
    product = make_product(stock=10)
    service = CartService(db)

    service.add_item(user["id"], product.id, 2)
    item = service.add_item(user["id"], product.id, 3)

    assert item["quantity"] == 5
    assert db.query(CartItemModel).count() == 1


def test_add_item_over_stock_counts_cart_quantity(db, user, make_product):
    product = make_product(stock=5)
    service = CartService(db)
    service.add_item(user["id"], product.id, 4)

    with pytest.raises(InsufficientStock) as exc:
        service.add_item(user["id"], product.id, 5)

    body = exc.value.to_dict()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert body["requested"] == 5
    assert body["available"] == 5
    assert body["inCart"] == 4
    assert service.get_cart(user["id"])["items"][0]["quantity"] == 4


def test_add_item_exactly_stock_is_allowed(db, user, make_product):
    product = make_product(stock=3)

    item = CartService(db).add_item(user["id"], product.id, 3)

    assert item["quantity"] == 3


def test_add_unknown_product(db, user):
    with pytest.raises(ProductNotFound):
        CartService(db).add_item(user["id"], 999, 1)


@pytest.mark.parametrize("quantity", [0, -1])
def test_add_item_rejects_non_positive_quantity(db, user, make_product, quantity):
    product = make_product()

    with pytest.raises(ValidationFailed):
        CartService(db).add_item(user["id"], product.id, quantity)


def test_cart_total_follows_live_price(db, user, make_product):
    product = make_product(price="6.50", stock=10)
    service = CartService(db)
    service.add_item(user["id"], product.id, 2)

    product.price = Decimal("7.00")
    db.commit()

    assert service.get_cart(user["id"])["total"] == Decimal("14.00")


def test_remove_item(db, user, make_product):
    first = make_product(name="First")
    second = make_product(name="Second")
    service = CartService(db)
    service.add_item(user["id"], first.id, 1)
    service.add_item(user["id"], second.id, 2)

    removed = service.remove_item(user["id"], second.id)

    assert removed["product_id"] == second.id
    assert removed["quantity"] == 2
    items = service.get_cart(user["id"])["items"]
    assert [i["product_id"] for i in items] == [first.id]


def test_remove_item_without_cart(db, user, make_product):
    product = make_product()

    with pytest.raises(CartNotFound):
        CartService(db).remove_item(user["id"], product.id)


def test_remove_item_not_in_cart(db, user, make_product):
    in_cart = make_product(name="In cart")
    other = make_product(name="Other")
    service = CartService(db)
    service.add_item(user["id"], in_cart.id, 1)

    with pytest.raises(CartItemNotFound):
        service.remove_item(user["id"], other.id)


def test_clear_cart(db, user, make_product):
    service = CartService(db)
    for name in ("A1", "B2", "C3"):
        service.add_item(user["id"], make_product(name=name).id, 1)

    assert service.clear_cart(user["id"]) == {"count": 3}
    assert service.get_cart(user["id"])["items"] == []
    #the cart row survives
    assert db.query(CartModel).filter_by(user_id=user["id"]).count() == 1


def test_clear_cart_without_cart(db, user):
    with pytest.raises(CartNotFound):
        CartService(db).clear_cart(user["id"])


def test_carts_are_per_user(db, make_user, make_product):
    alice, bob = make_user(), make_user()
    product = make_product(stock=10)
    service = CartService(db)

    service.add_item(alice["id"], product.id, 2)

    assert service.get_cart(bob["id"])["items"] == []


def test_concurrent_adds_to_one_cart_are_summed(db, user, make_product):
    product = make_product(stock=10)
    barrier = threading.Barrier(2)
    results = []

    def add():
        session = SessionLocal()
        try:
            barrier.wait()
            CartService(session).add_item(user["id"], product.id, 3)
            results.append("ok")
        finally:
            session.close()

    threads = [threading.Thread(target=add) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == ["ok", "ok"]
    db.expire_all()
    items = db.query(CartItemModel).all()
    assert [i.quantity for i in items] == [6]
    assert db.query(CartModel).filter_by(user_id=user["id"]).count() == 1
