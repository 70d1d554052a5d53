from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from ..config import settings
from ..logging_config import setup_logging
from ..scheduler import PollScheduler
from .deps import get_scheduler
from .routes_monitor import router as monitor_router
from .routes_generations import router as generations_router

setup_logging(settings.log_level)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"ok": True, "name": settings.app_name}

@app.get("/healthz")
async def healthz(scheduler: PollScheduler = Depends(get_scheduler)):
    return {"ok": True, "state": scheduler.state.value, "upstream": settings.api_base_url}

app.include_router(monitor_router, prefix="/api/monitor")
app.include_router(generations_router, prefix="/api/generations")

@app.on_event("shutdown")
async def on_shutdown():
    await get_scheduler().close()
