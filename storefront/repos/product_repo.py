# storefront/repos/product_repo.py
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(
        self,
        offset: int,
        limit: int,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ProductModel], int]:
        filters = []
        if category_id is not None:
            filters.append(ProductModel.category_id == category_id)
        if search:
            filters.append(ProductModel.name.ilike(f"%{search}%"))

        rows = self.db.execute(
            select(ProductModel)
            .where(*filters)
            .options(selectinload(ProductModel.category))
            .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        total = self.db.execute(
            select(func.count()).select_from(ProductModel).where(*filters)
        ).scalar_one()

        return list(rows), total

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.flush()

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Conditional write: UPDATE ... SET stock = stock - q WHERE id = ? AND stock >= q.
        The comparison is evaluated by the database against the row being
        written, so a concurrent checkout can never push stock below zero.
        Returns False when the guard rejected the write.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def read_snapshot(self, product_id: int):
        #columns, not entities - identity map may hold a stale ProductModel
        return self.db.execute(
            select(ProductModel.name, ProductModel.price, ProductModel.stock)
            .where(ProductModel.id == product_id)
        ).one_or_none()
