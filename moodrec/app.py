"""
Mood Recommendation API — FastAPI app factory.

Use: uvicorn moodrec.app:app
Or:  python -m moodrec.server
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_config
from .events import configure_logging
from .routes import register_routes
from .state import AppState, get_state, set_state

logger = logging.getLogger(__name__)


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """Build FastAPI app with CORS, routes, startup and shutdown hooks."""
    configure_logging(get_config().log_level if state is None else state.config.log_level)
    if state is not None:
        set_state(state)

    app = FastAPI(
        title="Mood Recommendation API",
        description="Mood-aware video, music, and movie recommendations from journal entries",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    async def _startup():
        state = get_state()
        ok, errors = state.config.validate()
        for err in errors:
            logger.warning("[startup] config: %s", err)
        logger.info(
            "[startup] Mood Recommendation API ready (vector=%s, store=%s, catalogs=%s, config_ok=%s)",
            type(state.vector_index).__name__,
            type(state.mood_store).__name__,
            [c.name for c in state.catalogs],
            ok,
        )

    @app.on_event("shutdown")
    async def _shutdown():
        state = get_state()
        pending = state.writer.pending
        if pending:
            logger.info("[shutdown] waiting for %d background writes", pending)
        await state.shutdown()

    return app


app = create_app()
