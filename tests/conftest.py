import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="storefront-tests-")

#environment must be in place before storefront.utils.settings is imported
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'storefront.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["MEDIA_ROOT"] = os.path.join(_TMP, "media")
os.environ["MAX_UPLOAD_MB"] = "1"
os.environ["AUTH_RATE_LIMIT"] = "5"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import get_rate_limiter
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import CategoryModel, OrderItemModel, OrderModel, ProductModel
from storefront.domain.enums import OrderStatus, Role
from storefront.main import app
from storefront.services.auth_service import AuthService
from storefront.services.rate_limiter import RateLimiter
from storefront.utils.security import create_access_token


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def client(fake_redis):
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(client=fake_redis)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(email=None, role=Role.USER, password="Password123!"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return AuthService(db).register(email, password, name=f"User {counter['n']}", role=role)

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user(email="customer@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=Role.ADMIN)


def bearer(user) -> dict:
    token = create_access_token({"sub": str(user["id"]), "email": user["email"], "role": user["role"].value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return bearer(user)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def category(db):
    category = CategoryModel(name="Stickers")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def make_product(db, category):
    def _make_product(name="Victorious XIII", price="6.50", stock=10):
        product = ProductModel(
            name=name,
            description="Limited edition piece",
            price=Decimal(price),
            stock=stock,
            images=[],
            category_id=category.id,
        )
        db.add(product)
        db.commit()
        return product

    return _make_product


@pytest.fixture
def make_order(db):
    """Order row straight in the table, for lifecycle and listing tests."""

    def _make_order(user_id, total="10.00", status=OrderStatus.PENDING, product=None):
        order = OrderModel(user_id=user_id, total=Decimal(total), status=status)
        if product is not None:
            order.items = [
                OrderItemModel(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=1,
                    price=Decimal(total),
                )
            ]
        db.add(order)
        db.commit()
        return order

    return _make_order


def stock_of(db, product_id) -> int:
    db.expire_all()
    return db.get(ProductModel, product_id).stock
