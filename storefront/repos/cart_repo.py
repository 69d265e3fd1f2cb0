# storefront/repos/cart_repo.py
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.database import dialect_insert
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int, with_items: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if with_items:
            stmt = stmt.options(
                selectinload(CartModel.items).selectinload(CartItemModel.product)
            )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create_cart(self, user_id: int, lock: bool = False) -> CartModel:
        """
        INSERT ... ON CONFLICT (user_id) DO NOTHING, then read the row back.
        Two requests that both miss the cart end up with the same row instead
        of one of them failing on the unique index.
        """
        insert = dialect_insert(self.db)
        self.db.execute(
            insert(CartModel)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )

        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if lock:
            #row lock serializes mutations of the same cart until commit
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one()

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def upsert_cart_item(self, cart_id: int, product_id: int, quantity: int) -> CartItemModel:
        insert = dialect_insert(self.db)
        self.db.execute(
            insert(CartItemModel)
            .values(cart_id=cart_id, product_id=product_id, quantity=quantity)
            .on_conflict_do_update(
                index_elements=["cart_id", "product_id"],
                set_={"quantity": quantity},
            )
        )

        return self.db.execute(
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .options(selectinload(CartItemModel.product))
            .execution_options(populate_existing=True)
        ).scalar_one()

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_cart_items(self, cart_id: int, item_ids: List[int] | None = None) -> int:
        filters = [CartItemModel.cart_id == cart_id]
        if item_ids is not None:
            filters.append(CartItemModel.id.in_(item_ids))
        result = self.db.execute(
            delete(CartItemModel)
            .where(*filters)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
