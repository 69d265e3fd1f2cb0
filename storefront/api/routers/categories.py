from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.data.database import get_db
from storefront.domain.schemas import CategoryCreate, CategoryDetailOut, CategoryOut, CategoryUpdate
from storefront.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


def get_service(db: Session):
    return CategoryService(db)


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return get_service(db).find_all()


@router.get("/{category_id}", response_model=CategoryDetailOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return get_service(db).find_one(category_id)


@router.post(
    "",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    return get_service(db).create(payload.name, payload.description)


@router.patch("/{category_id}", response_model=CategoryOut, dependencies=[Depends(require_admin)])
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    return get_service(db).update(category_id, name=payload.name, description=payload.description)


@router.delete("/{category_id}", response_model=CategoryOut, dependencies=[Depends(require_admin)])
def delete_category(category_id: int, db: Session = Depends(get_db)):
    return get_service(db).remove(category_id)
