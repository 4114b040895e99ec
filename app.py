from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from registry import RoomRegistry
from relay import SignalRouter
from routers.signaling import signaling_router
from routers.status import status_router

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(registry: Optional[RoomRegistry] = None) -> FastAPI:
    """Build an app with its own room table, so instances never share state."""
    app = FastAPI(title="Rendezvous Relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.relay = SignalRouter(registry if registry is not None else RoomRegistry())

    app.include_router(status_router)
    app.include_router(signaling_router)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
