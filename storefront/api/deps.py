# storefront/api/deps.py
from dataclasses import dataclass

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.enums import Role
from storefront.domain.errors import AdminRequired, InvalidToken, RateLimited, UnauthorizedError
from storefront.repos.user_repo import UserRepo
from storefront.services.rate_limiter import RateLimiter
from storefront.utils.security import decode_access_token

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity handed to the core: nothing but id, email and role."""

    id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    if credentials is None:
        raise UnauthorizedError()

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        raise InvalidToken()

    #token may outlive the account
    user = UserRepo(db).get_user(user_id)
    if not user:
        raise InvalidToken()

    return CurrentUser(id=user.id, email=user.email, role=Role(user.role))


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise AdminRequired()
    return user


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


def auth_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    client_id = request.client.host if request.client else "unknown"
    if not limiter.allow(request.url.path, client_id):
        raise RateLimited()
