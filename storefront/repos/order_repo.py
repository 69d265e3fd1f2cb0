# storefront/repos/order_repo.py
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.product import ProductModel
from storefront.domain.enums import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_idempotency_key(self, user_id: int, idempotency_key: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id, OrderModel.idempotency_key == idempotency_key)
            .options(selectinload(OrderModel.items))
        ).scalar_one_or_none()

    def list_orders(
        self,
        offset: int,
        limit: int,
        user_id: Optional[int] = None,
        with_user: bool = False,
    ) -> Tuple[List[OrderModel], int]:
        filters = [OrderModel.user_id == user_id] if user_id is not None else []

        options = [selectinload(OrderModel.items)]
        if with_user:
            options.append(selectinload(OrderModel.user))

        rows = self.db.execute(
            select(OrderModel)
            .where(*filters)
            .options(*options)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(*filters)
        ).scalar_one()

        return list(rows), total

    def transition_status(self, order_id: int, current: OrderStatus, new_status: OrderStatus) -> bool:
        # Optimistic locking on the status column
        # UPDATE orders SET status = new WHERE id = ? AND status = current
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == current)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def stats(self) -> Tuple[Decimal, int, int]:
        """Three independent aggregates in a single round trip."""
        revenue = (
            select(func.coalesce(func.sum(OrderModel.total), 0))
            .where(OrderModel.status != OrderStatus.CANCELLED)
            .scalar_subquery()
        )
        orders = select(func.count(OrderModel.id)).scalar_subquery()
        products = select(func.count(ProductModel.id)).scalar_subquery()

        total_revenue, total_orders, total_products = self.db.execute(
            select(revenue, orders, products)
        ).one()

        return Decimal(str(total_revenue)).quantize(Decimal("0.01")), total_orders, total_products
