from __future__ import annotations

import json
import queue
from typing import Any, Iterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from ...timer import TimerResult
from ..schemas import TimerCommandOut, TimerStateOut
from ..timer_service import snapshot_event, timer_service

router = APIRouter(prefix="/api/v1", tags=["timer"])


def _sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


def _command_out(result: TimerResult) -> TimerCommandOut:
    return TimerCommandOut.from_result(result, timer_service.state())


@router.post("/timer/start", response_model=TimerCommandOut)
def start_timer() -> TimerCommandOut:
    return _command_out(timer_service.start())


@router.post("/timer/stop", response_model=TimerCommandOut)
def stop_timer() -> TimerCommandOut:
    return _command_out(timer_service.stop())


@router.post("/timer/end-day", response_model=TimerCommandOut)
def end_day() -> TimerCommandOut:
    return _command_out(timer_service.end_day())


@router.post("/timer/resume-day", response_model=TimerCommandOut)
def resume_day() -> TimerCommandOut:
    return _command_out(timer_service.resume_day())


@router.get("/timer/state", response_model=TimerStateOut)
def timer_state() -> TimerStateOut:
    return TimerStateOut.from_snapshot(timer_service.state())


@router.get("/timer/stream")
def timer_stream() -> StreamingResponse:
    subscriber = timer_service.subscribe()
    initial = {"event": "state", **snapshot_event(timer_service.state())}

    def event_iter() -> Iterator[str]:
        try:
            yield _sse(initial)
            while True:
                try:
                    event = subscriber.get(timeout=10)
                    yield _sse(event)
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            timer_service.unsubscribe(subscriber)

    return StreamingResponse(event_iter(), media_type="text/event-stream")
