from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.data.models.user import UserModel
from storefront.domain.enums import Role
from storefront.domain.errors import EmailAlreadyExists, InvalidCredentials, UserNotFound
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger
from storefront.utils.security import (
    DUMMY_HASH,
    create_access_token,
    hash_password,
    verify_password,
)

logger = get_logger(__name__)


class AuthService:
    """Accounts and bearer tokens. Everything else only sees {id, role}."""

    def __init__(self, db: Session):
        self.repo = UserRepo(db)
        self.db = db

    def register(self, email: str, password: str, name: str | None = None, role: Role = Role.USER) -> Dict[str, Any]:
        email = email.strip().lower()

        if self.repo.get_by_email(email):
            raise EmailAlreadyExists()

        try:
            with transaction(self.db):
                user = self.repo.add_user(
                    UserModel(email=email, password=hash_password(password), name=name, role=role)
                )
                profile = self._profile(user)
        except IntegrityError:
            #lost the race against a concurrent registration
            raise EmailAlreadyExists()

        logger.info(f"User {profile['id']} registered")
        return profile

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.repo.get_by_email(email.strip().lower())

        #always compare, so unknown emails take as long as wrong passwords
        password_ok = verify_password(password, user.password if user else DUMMY_HASH)
        if not user or not password_ok:
            raise InvalidCredentials()

        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": Role(user.role).value}
        )
        logger.info(f"User {user.id} logged in")

        return {
            "access_token": token,
            "user": {
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "role": Role(user.role),
            },
        }

    def get_profile(self, user_id: int) -> Dict[str, Any]:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound()
        return self._profile(user)

    @staticmethod
    def _profile(user: UserModel) -> Dict[str, Any]:
        #explicit fields, the password hash never leaves this module
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": Role(user.role),
            "created_at": user.created_at,
        }
