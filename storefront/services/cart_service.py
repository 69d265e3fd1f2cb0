from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartItemNotFound,
    CartNotFound,
    InsufficientStock,
    ProductNotFound,
    ValidationFailed,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the cart domain.
    commands (get_or_create, add, remove, clear) modify state
    query (get) reads only, with live product prices
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.product_repo = ProductRepo(db)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id, with_items=True)

        #no cart is not an error, the client just sees an empty one
        if not cart:
            return {"items": [], "total": Decimal("0.00")}

        return self._cart_to_dict(cart)

    #commands
    def get_or_create_cart(self, user_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            cart = self.repo.get_or_create_cart(user_id)
            cart_id = cart.id

        logger.info(f"Cart {cart_id} ready for user {user_id}")
        return self.get_cart(user_id)

    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        """
        Use Case: add a product to the cart, or raise the quantity of its line.

        Everything runs in one transaction: the stock is re-read here, the
        cart row is locked, so the check and the write see the same state.
        """
        if quantity < 1:
            raise ValidationFailed("Quantity must be at least 1")

        with transaction(self.db):
            product = self.product_repo.get_product(product_id)
            if not product:
                raise ProductNotFound(product_id)

            cart = self.repo.get_or_create_cart(user_id, lock=True)

            existing_item = self.repo.get_cart_item(cart.id, product_id)
            current_quantity = existing_item.quantity if existing_item else 0
            new_quantity = current_quantity + quantity

            if new_quantity > product.stock:
                logger.warning(
                    f"User {user_id} tried to add {quantity} x product {product_id}, "
                    f"stock {product.stock}, in cart {current_quantity}"
                )
                raise InsufficientStock(
                    product_name=product.name,
                    requested=quantity,
                    available=product.stock,
                    in_cart=current_quantity,
                )

            item = self.repo.upsert_cart_item(cart.id, product_id, new_quantity)
            result = self._item_to_dict(item)

        logger.info(
            f"Product {product_id} in cart {result['cart_id']}: "
            f"{current_quantity} -> {new_quantity}"
        )
        return result

    def remove_item(self, user_id: int, product_id: int) -> Dict[str, Any]:
        with transaction(self.db):
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise CartNotFound()

            item = self.repo.get_cart_item(cart.id, product_id)
            if not item:
                raise CartItemNotFound()

            removed = {
                "id": item.id,
                "cart_id": item.cart_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
            }
            self.repo.delete_cart_item(item)

        logger.info(f"Product {product_id} removed from cart {removed['cart_id']}")
        return removed

    def clear_cart(self, user_id: int) -> Dict[str, int]:
        with transaction(self.db):
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise CartNotFound()

            count = self.repo.delete_cart_items(cart.id)

        logger.info(f"Cart of user {user_id} cleared, {count} item(s) removed")
        return {"count": count}

    #mapping
    @staticmethod
    def _item_to_dict(item: CartItemModel) -> Dict[str, Any]:
        product = item.product
        return {
            "id": item.id,
            "cart_id": item.cart_id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "product": {
                "id": product.id,
                "name": product.name,
                "price": product.price,
                "stock": product.stock,
                "images": list(product.images or []),
            },
        }

    def _cart_to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = [self._item_to_dict(i) for i in cart.items]

        # live prices - checkout snapshots its own
        total = sum(
            (Decimal(i.product.price) * i.quantity for i in cart.items),
            Decimal("0.00"),
        )

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "items": items,
            "total": total,
            "created_at": cart.created_at,
        }
