#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.deps import CurrentUser, get_current_user
from storefront.data.database import get_db
from storefront.domain.schemas import (
    AddToCartIn,
    CartItemOut,
    CartOut,
    ClearCartOut,
    RemovedCartItemOut,
)
from storefront.services.cart_service import CartService

#every cart route requires a logged-in user
router = APIRouter(prefix="/cart", tags=["cart"], dependencies=[Depends(get_current_user)])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).get_cart(user.id)


@router.post("/add", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_item(
    payload: AddToCartIn,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).add_item(
        user_id=user.id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


# /clear before /remove/{product_id}
@router.delete("/clear", response_model=ClearCartOut)
def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).clear_cart(user.id)


@router.delete("/remove/{product_id}", response_model=RemovedCartItemOut)
def remove_item(
    product_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).remove_item(user.id, product_id)
