# storefront/api/middleware.py
import time

from fastapi import FastAPI, Request

from storefront.utils.logging import get_logger

logger = get_logger("storefront.http")


def register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        user_agent = request.headers.get("user-agent", "unknown")
        line = (
            f"{request.method} {request.url.path} {response.status_code} "
            f"{elapsed_ms:.1f}ms {client} {user_agent}"
        )

        #2xx/3xx info, 4xx warning, 5xx error
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code >= 400:
            logger.warning(line)
        else:
            logger.info(line)

        return response
