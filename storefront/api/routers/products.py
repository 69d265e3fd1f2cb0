from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin
from storefront.data.database import get_db
from storefront.domain.schemas import ImageUploadOut, Page, ProductCreate, ProductOut, ProductUpdate
from storefront.services.image_storage import ImageStorage
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


def get_image_storage() -> ImageStorage:
    return ImageStorage()


@router.get("", response_model=Page[ProductOut])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
):
    return get_service(db).find_all(page=page, limit=limit, category_id=category_id, search=search)


# upload-image before /{product_id}
@router.post(
    "/upload-image",
    response_model=ImageUploadOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    storage: ImageStorage = Depends(get_image_storage),
):
    return {"url": await storage.save(file)}


@router.post(
    "",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return get_service(db).create(payload.model_dump())


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return get_service(db).find_one(product_id)


@router.patch("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return get_service(db).update(product_id, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    return get_service(db).remove(product_id)
