from decimal import Decimal

import pytest

from storefront.data.database import SessionLocal
from storefront.data.models import OrderModel
from storefront.domain.enums import ALLOWED_TRANSITIONS, OrderStatus
from storefront.domain.errors import InvalidStatusTransition, OrderNotFound
from storefront.services.order_service import OrderService


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        (OrderStatus.PENDING, OrderStatus.SHIPPED, True),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
        (OrderStatus.PENDING, OrderStatus.COMPLETED, False),
        (OrderStatus.SHIPPED, OrderStatus.COMPLETED, True),
        (OrderStatus.SHIPPED, OrderStatus.PENDING, False),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED, False),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    ],
)
def test_transition_table(current, new, allowed):
    assert current.can_transition_to(new) is allowed


def test_terminal_statuses():
    terminal = {s for s in OrderStatus if s.is_terminal}
    assert terminal == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


def test_ship_then_complete(db, user, make_order):
    order = make_order(user["id"], total="13.00")
    service = OrderService(db)

    shipped = service.update_status(order.id, OrderStatus.SHIPPED)
    completed = service.update_status(order.id, OrderStatus.COMPLETED)

    assert shipped["status"] == OrderStatus.SHIPPED
    assert completed["status"] == OrderStatus.COMPLETED
    assert completed["total"] == Decimal("13.00")


def test_status_accepts_plain_string(db, user, make_order):
    order = make_order(user["id"])

    result = OrderService(db).update_status(order.id, "CANCELLED")

    assert result["status"] == OrderStatus.CANCELLED


def test_invalid_transition_lists_allowed(db, user, make_order):
    order = make_order(user["id"], status=OrderStatus.SHIPPED)

    with pytest.raises(InvalidStatusTransition) as exc:
        OrderService(db).update_status(order.id, OrderStatus.PENDING)

    body = exc.value.to_dict()
    assert body["code"] == "INVALID_STATUS_TRANSITION"
    assert body["allowedTransitions"] == ["COMPLETED"]
    db.expire_all()
    assert db.get(OrderModel, order.id).status == OrderStatus.SHIPPED


def test_terminal_order_cannot_move(db, user, make_order):
    order = make_order(user["id"], status=OrderStatus.COMPLETED)

    with pytest.raises(InvalidStatusTransition) as exc:
        OrderService(db).update_status(order.id, OrderStatus.CANCELLED)

    assert exc.value.to_dict()["allowedTransitions"] == []


def test_update_status_unknown_order(db):
    with pytest.raises(OrderNotFound):
        OrderService(db).update_status(404, OrderStatus.SHIPPED)


def test_concurrent_change_is_not_overwritten(db, user, make_order):
    order = make_order(user["id"])
    assert order.status == OrderStatus.PENDING

    #another admin cancels while this session still holds PENDING
    other = SessionLocal()
    try:
        other.get(OrderModel, order.id).status = OrderStatus.CANCELLED
        other.commit()
    finally:
        other.close()

    with pytest.raises(InvalidStatusTransition) as exc:
        OrderService(db).update_status(order.id, OrderStatus.SHIPPED)

    assert exc.value.to_dict()["allowedTransitions"] == []
    db.expire_all()
    assert db.get(OrderModel, order.id).status == OrderStatus.CANCELLED


def test_my_orders_newest_first_and_paginated(db, make_user, make_order):
    alice, bob = make_user(), make_user()
    ids = [make_order(alice["id"], total=f"{n}.00").id for n in range(1, 6)]
    make_order(bob["id"])

    page_one = OrderService(db).get_my_orders(alice["id"], page=1, limit=2)
    page_three = OrderService(db).get_my_orders(alice["id"], page=3, limit=2)

    assert [o["id"] for o in page_one["data"]] == [ids[4], ids[3]]
    assert page_one["meta"] == {"total": 5, "page": 1, "limit": 2, "total_pages": 3}
    assert [o["id"] for o in page_three["data"]] == [ids[0]]


def test_my_orders_empty(db, user):
    result = OrderService(db).get_my_orders(user["id"])

    assert result["data"] == []
    assert result["meta"]["total"] == 0
    assert result["meta"]["total_pages"] == 0


def test_all_orders_include_owner(db, make_user, make_order):
    alice, bob = make_user(), make_user()
    make_order(alice["id"])
    make_order(bob["id"])

    result = OrderService(db).get_all_orders()

    assert result["meta"]["total"] == 2
    owners = {o["user"]["email"] for o in result["data"]}
    assert owners == {alice["email"], bob["email"]}
    assert all(set(o["user"]) == {"id", "email"} for o in result["data"])


def test_stats_exclude_cancelled_revenue(db, user, make_order, make_product):
    make_product(name="One")
    make_product(name="Two")
    make_order(user["id"], total="20.00", status=OrderStatus.CANCELLED)
    make_order(user["id"], total="10.00", status=OrderStatus.COMPLETED)
    make_order(user["id"], total="5.50", status=OrderStatus.PENDING)

    stats = OrderService(db).get_admin_stats()

    assert stats == {
        "total_revenue": Decimal("15.50"),
        "total_orders": 3,
        "total_products": 2,
    }


def test_stats_on_empty_store(db):
    stats = OrderService(db).get_admin_stats()

    assert stats == {
        "total_revenue": Decimal("0.00"),
        "total_orders": 0,
        "total_products": 0,
    }
