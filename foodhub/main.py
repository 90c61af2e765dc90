# foodhub/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from foodhub.api.routers import carts, health, orders
from foodhub.data.database import init_db
from foodhub.domain.errors import (
    ConcurrencyConflict,
    DomainError,
    IllegalTransition,
    InsufficientStock,
    NotFound,
    PriceOrAvailabilityDrift,
)
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)

# kod HTTP dla bledow domenowych, reszta (walidacje) -> 400
_STATUS_CODES = {
    NotFound: 404,
    PriceOrAvailabilityDrift: 409,
    InsufficientStock: 409,
    IllegalTransition: 409,
    ConcurrencyConflict: 409,
}


def status_code_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 400


async def domain_error_handler(request: Request, exc: DomainError):
    code = status_code_for(exc)
    if code >= 409:
        logger.warning(f"{request.method} {request.url.path} -> {code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


async def permission_error_handler(request: Request, exc: PermissionError):
    return JSONResponse(
        status_code=403,
        content={"code": "forbidden", "message": str(exc), "details": {}},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Foodhub Order Service",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
