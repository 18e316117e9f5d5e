"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carcare_backoffice.api.dashboard import router as dashboard_router
from carcare_backoffice.api.locations import router as locations_router
from carcare_backoffice.api.payroll import router as payroll_router
from carcare_backoffice.api.service_records import (
    car_transfer_router,
    car_wash_router,
)
from carcare_backoffice.api.sessions import router as sessions_router
from carcare_backoffice.api.today_plan import router as today_plan_router
from carcare_backoffice.api.users import router as users_router
from carcare_backoffice.app_logging import configure_logging
from carcare_backoffice.config import parse_allowed_origins
from carcare_backoffice.containers import AppContainer
from carcare_backoffice.errors import DomainError

API_PREFIX = "/api/v1"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_allowed_origins(container.settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=origins is not None,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"msg": "; ".join(messages) or "Please provide all values"},
        )

    for router in (
        sessions_router,
        car_wash_router,
        car_transfer_router,
        locations_router,
        users_router,
        payroll_router,
        dashboard_router,
        today_plan_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
