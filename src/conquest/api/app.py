"""FastAPI application wiring for the conquest engine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from conquest.api import routes
from conquest.api.runtime import ApiState, build_state
from conquest.config import Settings, get_settings
from conquest.domain.errors import CityNotFoundError

logger = logging.getLogger(__name__)


async def _city_not_found(request: Request, exc: CityNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def create_app(
    *,
    state_factory: Callable[[], ApiState] = build_state,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the app; the engine is restored, caught up and saved by the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = state_factory()
        app.state.api_state = state
        await state.startup()
        logger.info(
            "conquest engine ready (%d cities, automation %s)",
            len(state.scheduler.registry.all_cities()),
            "running" if state.runner.running else "stopped",
        )
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(title="Conquest API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=(settings or get_settings()).cors_origins,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CityNotFoundError, _city_not_found)
    app.include_router(routes.router)
    return app


app = create_app()
