from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from ..client import HordeClient
from ..errors import MonitorError, ProtocolError
from ..models import GenerationType
from ..scheduler import PollScheduler
from .deps import get_client, get_scheduler

router = APIRouter()

@router.get("")
async def list_generations(scheduler: PollScheduler = Depends(get_scheduler), response: Response = None):
    if response is not None:
        response.headers["Cache-Control"] = "no-store"
    return scheduler.registry.snapshot()

@router.get("/{kind}/{gen_id}")
async def generation_details(
    kind: GenerationType,
    gen_id: str,
    client: HordeClient = Depends(get_client),
    scheduler: PollScheduler = Depends(get_scheduler),
):
    credential = scheduler.config.credential if scheduler.config else None
    try:
        details = await client.get_generation(gen_id, kind, credential)
    except ProtocolError as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Generation not found")
        raise HTTPException(status_code=502, detail=str(e))
    except MonitorError as e:
        raise HTTPException(status_code=502, detail=str(e))
    payload = asdict(details)
    payload["kind"] = details.kind.value
    return payload

@router.delete("/{kind}/{gen_id}", status_code=202)
async def cancel_generation(kind: GenerationType, gen_id: str, scheduler: PollScheduler = Depends(get_scheduler)):
    # local removal happens now; the remote DELETE finishes in the background
    scheduler.cancel_generation(gen_id, kind)
    return {"ok": True, "generations": scheduler.registry.snapshot()}
