"""Main FastAPI application."""
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kbar.core.config import settings
from kbar.core.dependencies import ServiceContainer
from kbar.core.exceptions import (
    EmptyOrderError,
    InvalidQuantityError,
    OrderingError,
    OrderNotFoundError,
    OutstandingOrderError,
    StorageError,
)
from kbar.core.logging import setup_logging
from kbar.api import badges, cart, health, loyalty, menu, orders, quick_order

ERROR_STATUS_CODES = {
    OrderNotFoundError: 404,
    OutstandingOrderError: 409,
    EmptyOrderError: 400,
    InvalidQuantityError: 400,
    StorageError: 503,
}


async def _default_services() -> ServiceContainer:
    from kbar.db.database import AsyncSessionLocal, init_db
    from kbar.services.storage.sql_store import SqlKeyValueStore

    await init_db()
    return ServiceContainer(SqlKeyValueStore(AsyncSessionLocal), settings)


def create_app(services_factory: Optional[Callable[[], ServiceContainer]] = None) -> FastAPI:
    """
    Build the application.

    Args:
        services_factory: builds the service container at startup; defaults
            to a container backed by the configured database
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup
        setup_logging()
        if services_factory is None:
            services = await _default_services()
        else:
            services = services_factory()
        await services.start()
        app.state.services = services
        yield
        # Shutdown
        await services.shutdown()
        if services_factory is None:
            from kbar.db.database import dispose_db

            await dispose_db()

    app = FastAPI(
        title="KBar Ordering",
        description="Cart, orders, payment lifecycle and loyalty for KBar",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(OrderingError)
    async def ordering_error_handler(request: Request, exc: OrderingError):
        status_code = next(
            (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
            400,
        )
        content = {"detail": exc.message, "error": type(exc).__name__}
        if isinstance(exc, OutstandingOrderError):
            content["outstanding_order_id"] = exc.order_id
            content["outstanding_order_number"] = exc.order_number
        return JSONResponse(status_code=status_code, content=content)

    app.include_router(health.router, tags=["health"])
    app.include_router(menu.router, tags=["menu"])
    app.include_router(cart.router, tags=["cart"])
    app.include_router(orders.router, tags=["orders"])
    app.include_router(quick_order.router, tags=["quick-order"])
    app.include_router(loyalty.router, tags=["loyalty"])
    app.include_router(badges.router, tags=["badges"])

    @app.get("/")
    async def root():
        return {
            "message": f"{settings.venue_name} Ordering API",
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("kbar.main:app", host=settings.host, port=settings.port)
