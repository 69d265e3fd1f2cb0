# storefront/main.py
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from storefront.api.errors import register_error_handlers
from storefront.api.middleware import register_request_logging
from storefront.api.routers import auth, carts, categories, health, orders, products
from storefront.data.database import init_db
from storefront.services.image_storage import MEDIA_URL
from storefront.utils.settings import ALLOWED_ORIGIN, MEDIA_ROOT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

try:
    init_db()
    logger.info("Database tables ready")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront API",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in ALLOWED_ORIGIN.split(",")],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "x-idempotency-key"],
    )
    register_request_logging(app)
    register_error_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    Path(MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    app.mount(MEDIA_URL, StaticFiles(directory=MEDIA_ROOT), name="media")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
