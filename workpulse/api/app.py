from __future__ import annotations

from datetime import tzinfo
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..aggregation import DEFAULT_DAILY_GOAL_SEC
from ..clock import Clock
from ..config import Config, DEFAULT_OUT_DIR, local_timezone
from ..db import default_db_path
from ..errors import InvalidRangeError, PersistenceError, SessionNotFoundError
from .routes.export import router as export_router
from .routes.sessions import router as sessions_router
from .routes.stats import router as stats_router
from .routes.system import router as system_router
from .routes.timer import router as timer_router
from .timer_service import timer_service


def create_app(
    db_path: Path | None = None,
    tz: tzinfo | None = None,
    config: Config | None = None,
    clock: Clock | None = None,
    out_dir: Path | None = None,
) -> FastAPI:
    resolved_db = Path(db_path or (config.db_path if config else default_db_path()))
    resolved_tz = tz or (config.timezone if config else local_timezone())
    timer_service.configure(
        resolved_db,
        tz=resolved_tz,
        clock=clock,
        daily_goal_sec=config.daily_goal_sec if config else DEFAULT_DAILY_GOAL_SEC,
        journal_mode=config.journal_mode if config else None,
    )

    app = FastAPI(title="WorkPulse API", version="1.0.0")
    app.state.db_path = str(resolved_db)
    app.state.tz = resolved_tz
    app.state.out_dir = str(out_dir or (config.out_dir if config else DEFAULT_OUT_DIR))

    app.add_exception_handler(InvalidRangeError, _invalid_range)
    app.add_exception_handler(SessionNotFoundError, _not_found)
    app.add_exception_handler(PersistenceError, _persistence_failed)

    app.include_router(system_router)
    app.include_router(sessions_router)
    app.include_router(stats_router)
    app.include_router(export_router)
    app.include_router(timer_router)

    return app


async def _invalid_range(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _not_found(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _persistence_failed(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})
