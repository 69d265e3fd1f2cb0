from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.category import CategoryModel
from storefront.domain.errors import CategoryAlreadyExists, CategoryNotFound
from storefront.repos.category_repo import CategoryRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CategoryRepo(db)

    def create(self, name: str, description: str | None = None) -> Dict[str, Any]:
        if self.repo.get_by_name(name):
            raise CategoryAlreadyExists(name)

        try:
            with transaction(self.db):
                category = self.repo.add_category(CategoryModel(name=name, description=description))
                result = self._to_dict(category)
        except IntegrityError:
            raise CategoryAlreadyExists(name)

        logger.info(f"Category {result['id']} created: {name}")
        return result

    def find_all(self) -> List[Dict[str, Any]]:
        """Categories with a product count only, not the products themselves."""
        return [
            {**self._to_dict(category), "product_count": count}
            for category, count in self.repo.list_with_counts()
        ]

    def find_one(self, category_id: int) -> Dict[str, Any]:
        category = self._get_or_raise(category_id)
        products = self.repo.get_products(category_id)

        return {
            **self._to_dict(category),
            "product_count": len(products),
            "products": [
                {
                    "id": p.id,
                    "name": p.name,
                    "price": p.price,
                    "stock": p.stock,
                    "images": list(p.images or []),
                }
                for p in products
            ],
        }

    def update(self, category_id: int, name: str | None = None, description: str | None = None) -> Dict[str, Any]:
        category = self._get_or_raise(category_id)

        if name:
            existing = self.repo.get_by_name(name)
            if existing and existing.id != category_id:
                raise CategoryAlreadyExists(name)

        try:
            with transaction(self.db):
                if name:
                    category.name = name
                if description is not None:
                    category.description = description
                self.db.flush()
                result = self._to_dict(category)
        except IntegrityError:
            raise CategoryAlreadyExists(name)

        return result

    def remove(self, category_id: int) -> Dict[str, Any]:
        category = self._get_or_raise(category_id)
        result = self._to_dict(category)

        #FK cascade removes the products of this category too
        with transaction(self.db):
            self.repo.delete_category(category)

        logger.info(f"Category {category_id} deleted")
        return result

    def _get_or_raise(self, category_id: int) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise CategoryNotFound(category_id)
        return category

    @staticmethod
    def _to_dict(category: CategoryModel) -> Dict[str, Any]:
        return {
            "id": category.id,
            "name": category.name,
            "description": category.description,
            "created_at": category.created_at,
        }
