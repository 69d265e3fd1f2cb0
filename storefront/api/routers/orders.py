# storefront/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from storefront.api.deps import CurrentUser, get_current_user, require_admin
from storefront.data.database import get_db
from storefront.domain.schemas import (
    AdminOrderOut,
    AdminStatsOut,
    OrderOut,
    Page,
    UpdateOrderStatusIn,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/checkout", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def checkout(
    user: CurrentUser = Depends(get_current_user),
    idempotency_key: Optional[str] = Header(None, alias="x-idempotency-key", max_length=255),
    db: Session = Depends(get_db),
):
    """
    Turns the current cart into an order.
    Retrying with the same x-idempotency-key returns the same order.
    """
    return get_service(db).checkout(user.id, idempotency_key or None)


@router.get("", response_model=Page[OrderOut])
def get_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).get_my_orders(user.id, page=page, limit=limit)


# admin/* must stay above /{order_id}/...
@router.get("/admin/all", response_model=Page[AdminOrderOut], dependencies=[Depends(require_admin)])
def get_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return get_service(db).get_all_orders(page=page, limit=limit)


@router.get("/admin/stats", response_model=AdminStatsOut, dependencies=[Depends(require_admin)])
def get_stats(db: Session = Depends(get_db)):
    return get_service(db).get_admin_stats()


@router.patch("/{order_id}/status", response_model=OrderOut, dependencies=[Depends(require_admin)])
def update_status(
    order_id: int,
    payload: UpdateOrderStatusIn,
    db: Session = Depends(get_db),
):
    return get_service(db).update_status(order_id, payload.status)
