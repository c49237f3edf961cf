from __future__ import annotations

from pathlib import Path
import platform

from fastapi import APIRouter, Request

from ... import __version__
from ..schemas import HealthOut, MetaOut
from ..timer_service import timer_service

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    # Building the snapshot opens the store, so a broken database surfaces as 503.
    snapshot = timer_service.state()
    return HealthOut(timer_state=snapshot.state.value)


@router.get("/meta", response_model=MetaOut)
def meta(request: Request) -> MetaOut:
    return MetaOut(
        app="WorkPulse",
        version=__version__,
        db_path=str(Path(request.app.state.db_path)),
        timezone=str(request.app.state.tz),
        platform=platform.platform(),
    )
