from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from constants import SERVICE_BANNER
from logging_config import get_logger
from schemas.status import HealthResponse

logger = get_logger(__name__)

status_router = APIRouter(tags=["status"])


@status_router.get("/", response_class=PlainTextResponse)
async def banner():
    return SERVICE_BANNER


@status_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Aggregate counts only; room ids are never exposed."""
    registry = request.app.state.relay.registry
    logger.debug(f"Health check: {len(registry)} rooms, {registry.peer_count} peers")
    return HealthResponse(status="ok", rooms=len(registry), peers=registry.peer_count)
