# storefront/services/order_service.py
import math
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import OrderStatus
from storefront.domain.errors import (
    CartEmpty,
    InvalidStatusTransition,
    OrderNotFound,
    OutOfStock,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Orders domain: checkout (cart -> order), the status state machine and
    the read views for customers and admins.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.product_repo = ProductRepo(db)

    def checkout(self, user_id: int, idempotency_key: str | None = None) -> Dict[str, Any]:
        """
        Use Case: turn the user's cart into an order.

        1. Known idempotency key of this user -> return that order, no side effects
        2. Load the cart, fail if it is empty
        3. In one transaction: guarded stock decrement per line, price
           snapshot, order + items, cart lines deleted
        4. Commit; any failure rolls back all of it
        """
        logger.info(f"Checkout started for user {user_id}")

        if idempotency_key:
            existing = self.repo.get_by_idempotency_key(user_id, idempotency_key)
            if existing:
                logger.info(f"Idempotent checkout, returning existing order {existing.id}")
                return self._order_to_dict(existing)

        cart = self.cart_repo.get_cart_by_user(user_id, with_items=True)
        if not cart or not cart.items:
            raise CartEmpty()

        cart_id = cart.id
        #these lines are what gets bought, later additions stay in the cart
        lines = [(item.product_id, item.quantity) for item in cart.items]
        purchased_ids = [item.id for item in cart.items]

        try:
            with transaction(self.db):
                total = Decimal("0.00")
                order_items: List[OrderItemModel] = []

                for product_id, quantity in lines:
                    if not self.product_repo.decrement_stock(product_id, quantity):
                        #guard rejected the write, stock changed since the cart was filled
                        current = self.product_repo.read_snapshot(product_id)
                        logger.warning(
                            f"Checkout for user {user_id} rejected: product {product_id} "
                            f"requested {quantity}, available {current.stock if current else 0}"
                        )
                        raise OutOfStock(
                            product=current.name if current else str(product_id),
                            available=current.stock if current else 0,
                            requested=quantity,
                        )

                    #fresh price from the row we just decremented, not the cart's view
                    snapshot = self.product_repo.read_snapshot(product_id)
                    price = Decimal(snapshot.price)

                    order_items.append(
                        OrderItemModel(
                            product_id=product_id,
                            product_name=snapshot.name,
                            quantity=quantity,
                            price=price,
                        )
                    )
                    total += price * quantity

                order = self.repo.add_order(
                    OrderModel(
                        user_id=user_id,
                        status=OrderStatus.PENDING,
                        total=total,
                        idempotency_key=idempotency_key,
                        items=order_items,
                    )
                )

                self.cart_repo.delete_cart_items(cart_id, purchased_ids)
                order_id = order.id

        except IntegrityError:
            # two requests with the same key raced past step 1
            if idempotency_key:
                existing = self.repo.get_by_idempotency_key(user_id, idempotency_key)
                if existing:
                    logger.info(f"Idempotency key collision, returning order {existing.id}")
                    return self._order_to_dict(existing)
            raise

        logger.info(f"Order {order_id} created for user {user_id}, total {total}")
        return self._order_to_dict(self.repo.get_order(order_id))

    def update_status(self, order_id: int, new_status: OrderStatus) -> Dict[str, Any]:
        """
        Use Case: admin moves an order through its lifecycle.
        Only transitions listed in ALLOWED_TRANSITIONS are accepted.
        """
        new_status = OrderStatus(new_status)

        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(order_id)

        current = OrderStatus(order.status)
        if not current.can_transition_to(new_status):
            raise InvalidStatusTransition(
                current=current.value,
                requested=new_status.value,
                allowed=[s.value for s in current.allowed_transitions],
            )

        with transaction(self.db):
            applied = self.repo.transition_status(order_id, current, new_status)

        if not applied:
            #somebody else moved the order in the meantime
            self.db.refresh(order)
            latest = OrderStatus(order.status)
            raise InvalidStatusTransition(
                current=latest.value,
                requested=new_status.value,
                allowed=[s.value for s in latest.allowed_transitions],
            )

        logger.info(f"Order {order_id} status: {current.value} -> {new_status.value}")

        self.db.refresh(order)
        return self._order_to_dict(order)

    def get_my_orders(self, user_id: int, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        orders, total = self.repo.list_orders(
            offset=(page - 1) * limit,
            limit=limit,
            user_id=user_id,
        )
        return self._page([self._order_to_dict(o) for o in orders], total, page, limit)

    def get_all_orders(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        orders, total = self.repo.list_orders(
            offset=(page - 1) * limit,
            limit=limit,
            with_user=True,
        )
        data = []
        for o in orders:
            row = self._order_to_dict(o)
            # public identity only
            row["user"] = {"id": o.user.id, "email": o.user.email}
            data.append(row)
        return self._page(data, total, page, limit)

    def get_admin_stats(self) -> Dict[str, Any]:
        total_revenue, total_orders, total_products = self.repo.stats()
        return {
            "total_revenue": total_revenue,
            "total_orders": total_orders,
            "total_products": total_products,
        }

    @staticmethod
    def _page(data: List[Dict[str, Any]], total: int, page: int, limit: int) -> Dict[str, Any]:
        return {
            "data": data,
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    @staticmethod
    def _order_to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": OrderStatus(order.status),
            "total": order.total,
            "idempotency_key": order.idempotency_key,
            "created_at": order.created_at,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "quantity": i.quantity,
                    "price": i.price,
                }
                for i in order.items
            ],
        }
