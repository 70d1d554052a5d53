from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from ..config import INTERVALS, TIME_PERIODS, settings
from ..errors import ConfigError
from ..exporter import export_filename, to_csv
from ..models import PollConfig
from ..scheduler import PollScheduler
from ..utils import now_ms
from .deps import get_scheduler

router = APIRouter()

class StartRequest(BaseModel):
    api_key: str
    interval: str = settings.default_interval
    period: str = settings.default_period

class IntervalRequest(BaseModel):
    interval: str

class PeriodRequest(BaseModel):
    period: str

def _label(table: dict, value: int) -> Optional[str]:
    for k, v in table.items():
        if v == value:
            return k
    return None

def _serialize(scheduler: PollScheduler) -> dict:
    cfg = scheduler.config
    return {
        "state": scheduler.state.value,
        "error": scheduler.error,
        "cancel_error": scheduler.cancel_error,
        # credential is never echoed back
        "config": {
            "interval": _label(INTERVALS, cfg.interval_ms),
            "interval_ms": cfg.interval_ms,
            "period": _label(TIME_PERIODS, cfg.retention_points),
            "retention_points": cfg.retention_points,
        } if cfg else None,
        "stats": asdict(scheduler.stats()),
        "user": asdict(scheduler.user) if scheduler.user else None,
        "points": len(scheduler.window),
    }

@router.get("")
async def monitor_status(scheduler: PollScheduler = Depends(get_scheduler), response: Response = None):
    if response is not None:
        response.headers["Cache-Control"] = "no-store"
    return _serialize(scheduler)

@router.post("/start")
async def start_monitor(req: StartRequest, scheduler: PollScheduler = Depends(get_scheduler)):
    try:
        config = PollConfig.from_labels(req.api_key, req.interval, req.period)
        await scheduler.start(config)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _serialize(scheduler)

@router.post("/stop")
async def stop_monitor(scheduler: PollScheduler = Depends(get_scheduler)):
    scheduler.stop()
    return _serialize(scheduler)

@router.post("/clear")
async def clear_monitor(scheduler: PollScheduler = Depends(get_scheduler)):
    scheduler.clear()
    return _serialize(scheduler)

@router.post("/interval")
async def change_interval(req: IntervalRequest, scheduler: PollScheduler = Depends(get_scheduler)):
    if req.interval not in INTERVALS:
        raise HTTPException(status_code=400, detail=f"Unknown interval '{req.interval}'")
    try:
        await scheduler.reconfigure_interval(INTERVALS[req.interval])
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _serialize(scheduler)

@router.post("/period")
async def change_period(req: PeriodRequest, scheduler: PollScheduler = Depends(get_scheduler)):
    if req.period not in TIME_PERIODS:
        raise HTTPException(status_code=400, detail=f"Unknown period '{req.period}'")
    scheduler.set_retention(TIME_PERIODS[req.period])
    return _serialize(scheduler)

@router.get("/points")
async def list_points(minutes: Optional[int] = Query(default=None, ge=1), scheduler: PollScheduler = Depends(get_scheduler), response: Response = None):
    if minutes is None:
        points = scheduler.window.current()
    else:
        points = scheduler.window.since(now_ms() - minutes * 60_000)
    if response is not None:
        response.headers["Cache-Control"] = "no-store"
    return [p.to_dict() for p in points]

@router.get("/export.csv")
async def export_csv(scheduler: PollScheduler = Depends(get_scheduler)):
    body = to_csv(scheduler.window.current())
    filename = export_filename(now_ms())
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
