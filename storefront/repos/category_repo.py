# storefront/repos/category_repo.py
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def get_by_name(self, name: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.name == name)
        ).scalar_one_or_none()

    def list_with_counts(self) -> List[Tuple[CategoryModel, int]]:
        product_count = (
            select(func.count(ProductModel.id))
            .where(ProductModel.category_id == CategoryModel.id)
            .correlate(CategoryModel)
            .scalar_subquery()
        )
        rows = self.db.execute(
            select(CategoryModel, product_count).order_by(CategoryModel.name.asc())
        ).all()
        return [(category, count) for category, count in rows]

    def get_products(self, category_id: int) -> List[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.category_id == category_id)
                .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
            ).scalars().all()
        )

    def add_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.flush()
        return category

    def delete_category(self, category: CategoryModel) -> None:
        self.db.delete(category)
        self.db.flush()
