import math
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.product import ProductModel
from storefront.domain.errors import CategoryNotFound, ProductNotFound
from storefront.repos.category_repo import CategoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_UPDATABLE = ("name", "description", "price", "stock", "images", "category_id")


class ProductService:
    """Catalog store: admin CRUD plus the public paginated listing."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.category_repo = CategoryRepo(db)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_category(data["category_id"])

        with transaction(self.db):
            product = self.repo.add_product(
                ProductModel(
                    name=data["name"],
                    description=data.get("description") or "",
                    price=data["price"],
                    stock=data["stock"],
                    images=list(data.get("images") or []),
                    category_id=data["category_id"],
                )
            )
            product_id = product.id

        logger.info(f"Product {product_id} created")
        return self.find_one(product_id)

    def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        products, total = self.repo.list_products(
            offset=(page - 1) * limit,
            limit=limit,
            category_id=category_id,
            search=search,
        )
        return {
            "data": [self._to_dict(p) for p in products],
            "meta": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit),
            },
        }

    def find_one(self, product_id: int) -> Dict[str, Any]:
        return self._to_dict(self._get_or_raise(product_id))

    def update(self, product_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        product = self._get_or_raise(product_id)

        if changes.get("category_id") is not None:
            self._ensure_category(changes["category_id"])

        with transaction(self.db):
            for field in _UPDATABLE:
                if field in changes and changes[field] is not None:
                    setattr(product, field, changes[field])

        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return self.find_one(product_id)

    def remove(self, product_id: int) -> Dict[str, Any]:
        product = self._get_or_raise(product_id)
        result = self._to_dict(product)

        with transaction(self.db):
            self.repo.delete_product(product)

        logger.info(f"Product {product_id} deleted")
        return result

    def _ensure_category(self, category_id: int) -> None:
        if not self.category_repo.get_category(category_id):
            raise CategoryNotFound(category_id)

    def _get_or_raise(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    @staticmethod
    def _to_dict(product: ProductModel) -> Dict[str, Any]:
        category = product.category
        return {
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "price": product.price,
            "stock": product.stock,
            "images": list(product.images or []),
            "category_id": product.category_id,
            "category": {"id": category.id, "name": category.name} if category else None,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }
