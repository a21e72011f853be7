"""
FastAPI application exposing the moderation review queue and guild statistics.

Routes
------
GET  /api/moderation/queue   page through stored flags
POST /api/moderation/queue   resolve, dismiss or escalate one flag
GET  /api/stats              summary of the monitored guild

The acting user is read from the ``X-User-Id`` header, set by the web
application in front of this service after it has authenticated the session.
The statistics route is public and needs no header.
Errors are returned as ``{"error": ...}`` bodies.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from modwatch.api.schemas import (
    ErrorResponse,
    QueueActionRequest,
    QueueActionResponse,
    QueueListResponse,
    StatsResponse,
)
from modwatch.configuration.app_configuration import AppConfig
from modwatch.database.database import Database
from modwatch.datatypes.discord_datatypes import UserID
from modwatch.datatypes.flag_datatypes import FlagType
from modwatch.moderation.permissions import PermissionLookup
from modwatch.moderation.queue_service import (
    InvalidRequestError,
    ModerationQueueService,
    QueueServiceError,
    UnauthorizedError,
)
from modwatch.monitoring.guild_stats import GuildStatsService
from modwatch.util.logger import get_logger

logger = get_logger("queue_api")

INTERNAL_ERROR_MESSAGE = "Internal server error"
STATS_CACHE_CONTROL = "public, s-maxage=60, max-age=60"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(prefix="/api/moderation", tags=["moderation"])
stats_router = APIRouter(prefix="/api", tags=["stats"])


# --------------------------
# Dependencies
# --------------------------
def get_queue_service(request: Request) -> ModerationQueueService:
    return request.app.state.queue_service


def get_default_page_size(request: Request) -> int:
    return request.app.state.default_page_size


def get_stats_service(request: Request) -> GuildStatsService:
    return request.app.state.stats_service


def get_current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> UserID:
    """Resolve the authenticated user forwarded by the web application."""
    if not x_user_id:
        raise UnauthorizedError()
    try:
        return UserID(x_user_id)
    except ValueError:
        raise UnauthorizedError() from None


def parse_flag_type(value: Optional[str]) -> FlagType | None:
    if not value:
        return None
    try:
        return FlagType(value)
    except ValueError:
        raise InvalidRequestError() from None


# --------------------------
# Routes
# --------------------------
@router.get("/queue", response_model=QueueListResponse, responses=_ERROR_RESPONSES)
async def list_queue(
    page: int = 1,
    limit: Optional[int] = None,
    resolved: Optional[str] = None,
    flagType: Optional[str] = None,
    user_id: UserID = Depends(get_current_user_id),
    service: ModerationQueueService = Depends(get_queue_service),
    default_page_size: int = Depends(get_default_page_size),
):
    """Return one page of flags, newest first."""
    flag_page = await service.list_flags(
        user_id,
        page=page,
        limit=limit if limit is not None else default_page_size,
        resolved=resolved == "true",
        flag_type=parse_flag_type(flagType),
    )
    return {"flags": flag_page.flags, "pagination": flag_page.pagination()}


@router.post("/queue", response_model=QueueActionResponse, responses=_ERROR_RESPONSES)
async def act_on_flag(
    body: QueueActionRequest,
    user_id: UserID = Depends(get_current_user_id),
    service: ModerationQueueService = Depends(get_queue_service),
):
    """Apply a resolve, dismiss or escalate decision to a flag."""
    action = await service.act(user_id, body.flag_id, body.action)
    return QueueActionResponse(success=True, action=action)


@stats_router.get(
    "/stats",
    response_model=StatsResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def guild_stats(response: Response, service: GuildStatsService = Depends(get_stats_service)):
    """Return live counters, the last day of snapshots and moderation counts."""
    summary = await service.summary()
    response.headers["Cache-Control"] = STATS_CACHE_CONTROL
    return summary


# --------------------------
# Error handlers
# --------------------------
async def handle_queue_error(request: Request, exc: QueueServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("[QUEUE API] Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": InvalidRequestError.default_message})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("[QUEUE API] Error processing %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


# --------------------------
# Application factory
# --------------------------
def create_app(config: AppConfig | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the queue API.

    Args:
        config: Application configuration; the shared ``app_config`` when None.
        database: Audit store to use. When None one is created from the
            configuration and opened/closed with the application lifespan.
    """
    if config is None:
        from modwatch.configuration.app_configuration import app_config

        config = app_config
    owns_database = database is None
    database = database or Database(config.database_path)
    api_settings = config.api

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not database.initialized and not await database.initialize():
            raise RuntimeError(f"Could not open audit store at {database.db_path}")
        logger.info("[QUEUE API] Ready (guild filter: %s)", config.monitored_guild_id or "any")
        yield
        if owns_database:
            await database.shutdown()

    app = FastAPI(
        title="modwatch moderation queue",
        description="Review queue for automatically flagged content",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.default_page_size = api_settings.default_page_size
    app.state.queue_service = ModerationQueueService(
        database.flags,
        PermissionLookup(database.roles),
        guild_id=config.monitored_guild_id,
        max_page_size=api_settings.max_page_size,
    )
    app.state.stats_service = GuildStatsService(database.guilds, database.logs, config.monitored_guild_id)

    app.add_exception_handler(QueueServiceError, handle_queue_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    app.include_router(stats_router)
    return app
