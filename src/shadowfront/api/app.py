"""FastAPI application factory for Shadowfront.

Nothing is built at import time: uvicorn calls :func:`create_app` as a factory
(see ``main.py``), and tests pass their own ``state_factory``.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shadowfront.api import routes
from shadowfront.api.runtime import ApiState, build_state
from shadowfront.savegame import GAME_VERSION


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the API around one :class:`ApiState`.

    The state is created up front so its settings drive the middleware; the
    lifespan only tears it down.
    """

    state = state_factory()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(title="Shadowfront API", version=GAME_VERSION, lifespan=lifespan)
    app.state.api_state = state
    app.add_middleware(
        CORSMiddleware,
        allow_origins=state.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router)
    return app
