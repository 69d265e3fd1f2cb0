from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, String

from storefront.data.database import Base
from storefront.domain.enums import Role


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=True)
    role = Column(Enum(Role, name="user_role", native_enum=False, length=16), nullable=False, default=Role.USER)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
