from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.api.deps import CurrentUser, auth_rate_limit, get_current_user
from storefront.data.database import get_db
from storefront.domain.schemas import LoginIn, LoginOut, RegisterIn, UserOut
from storefront.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_service(db: Session):
    return AuthService(db)


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_rate_limit)],
)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    return get_service(db).register(payload.email, payload.password, payload.name)


@router.post("/login", response_model=LoginOut, dependencies=[Depends(auth_rate_limit)])
def login(payload: LoginIn, db: Session = Depends(get_db)):
    return get_service(db).login(payload.email, payload.password)


@router.get("/me", response_model=UserOut)
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_service(db).get_profile(user.id)
