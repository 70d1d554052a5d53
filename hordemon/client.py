from __future__ import annotations
import asyncio
import json
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
import structlog

from .config import settings
from .errors import CancelError, MonitorError, ProtocolError, TransportError
from .models import (
    GenerationDetails,
    GenerationResult,
    GenerationType,
    KudosDetails,
    Sample,
    UserDetails,
)
from .utils import now_ms

log = structlog.get_logger()


def _is_number(value: Any) -> bool:
    # json.loads lets NaN and Infinity through
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _id_list(payload: Dict[str, Any], kind: str) -> Tuple[str, ...]:
    raw = payload.get(kind)
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ProtocolError(f"Malformed response: active_generations.{kind} must be a list of ids")
    return tuple(dict.fromkeys(raw))


def _user_details(payload: Dict[str, Any]) -> UserDetails:
    kd = payload.get("kudos_details")
    kd = kd if isinstance(kd, dict) else {}
    return UserDetails(
        username=str(payload.get("username") or ""),
        kudos=payload["kudos"],
        worker_count=int(payload.get("worker_count") or 0),
        account_age=int(payload.get("account_age") or 0),
        kudos_details=KudosDetails(
            accumulated=kd.get("accumulated") or 0,
            gifted=kd.get("gifted") or 0,
            received=kd.get("received") or 0,
            recurring=kd.get("recurring") or 0,
        ),
    )


def normalize_sample(payload: Any, timestamp_ms: int) -> Sample:
    """Map a raw ``find_user`` body onto a Sample or raise ProtocolError."""
    if not isinstance(payload, dict):
        raise ProtocolError("Malformed response: expected a JSON object")
    kudos = payload.get("kudos")
    if not _is_number(kudos):
        raise ProtocolError("Malformed response: missing or non-finite numeric 'kudos'")
    active = payload.get("active_generations")
    if active is None:
        active = {}
    if not isinstance(active, dict):
        raise ProtocolError("Malformed response: 'active_generations' must be an object")
    try:
        user = _user_details(payload)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Malformed response: {e}") from e
    return Sample(
        timestamp_ms=timestamp_ms,
        kudos=kudos,
        image_ids=_id_list(active, "image"),
        text_ids=_id_list(active, "text"),
        user=user,
    )


def normalize_details(payload: Any, gen_id: str, kind: GenerationType) -> GenerationDetails:
    if not isinstance(payload, dict):
        raise ProtocolError("Malformed response: expected a JSON object")
    gens: List[GenerationResult] = []
    for g in payload.get("generations") or []:
        if not isinstance(g, dict):
            raise ProtocolError("Malformed response: generation entries must be objects")
        gens.append(GenerationResult(
            worker_name=str(g.get("worker_name") or ""),
            model=str(g.get("model") or ""),
            state=str(g.get("state") or ""),
            img=g.get("img"),
            text=g.get("text"),
        ))
    try:
        return GenerationDetails(
            id=gen_id,
            kind=kind,
            done=bool(payload.get("done")),
            faulted=bool(payload.get("faulted")),
            queue_position=int(payload.get("queue_position") or 0),
            wait_time=int(payload.get("wait_time") or 0),
            kudos=payload.get("kudos") or 0,
            generations=gens,
        )
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Malformed response: {e}") from e


async def _error_detail(r: aiohttp.ClientResponse) -> str:
    try:
        text = await r.text()
    except (aiohttp.ClientError, UnicodeDecodeError):
        text = ""
    if text:
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            return text.strip()
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return text.strip()
    return r.reason or "Unknown error"


class HordeClient:
    """Thin aiohttp wrapper around the AI Horde endpoints the monitor needs.

    Every call opens its own session. The only timeout is the HTTP layer's
    ``http_timeout`` setting; retries are never attempted here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client_agent: str | None = None,
        timeout: float | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.client_agent = client_agent or settings.client_agent
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.clock = clock

    def _headers(self, credential: Optional[str]) -> Dict[str, str]:
        headers = {"Client-Agent": self.client_agent}
        if credential:
            headers["apikey"] = credential
        return headers

    def _status_path(self, gen_id: str, kind: GenerationType) -> str:
        if kind == GenerationType.text:
            return f"{self.base_url}/generate/text/status/{gen_id}"
        return f"{self.base_url}/generate/status/{gen_id}"

    async def _request(self, method: str, url: str, credential: Optional[str]) -> Any:
        timeout_cfg = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout_cfg, headers=self._headers(credential)) as session:
                async with session.request(method, url) as r:
                    if r.status < 200 or r.status >= 300:
                        detail = await _error_detail(r)
                        raise ProtocolError(f"HTTP {r.status}: {detail}", status=r.status)
                    raw = await r.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Request to {url} failed: {str(e) or type(e).__name__}") from e
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise ProtocolError(f"Malformed response: {e}") from e

    async def fetch_sample(self, credential: str) -> Sample:
        payload = await self._request("GET", f"{self.base_url}/find_user", credential)
        return normalize_sample(payload, self.clock())

    async def get_generation(self, gen_id: str, kind: GenerationType | str, credential: Optional[str] = None) -> GenerationDetails:
        kind = GenerationType(kind)
        payload = await self._request("GET", self._status_path(gen_id, kind), credential)
        return normalize_details(payload, gen_id, kind)

    async def cancel_generation(self, gen_id: str, kind: GenerationType | str, credential: str) -> None:
        kind = GenerationType(kind)
        try:
            await self._request("DELETE", self._status_path(gen_id, kind), credential)
        except MonitorError as e:
            raise CancelError(f"Failed to cancel generation {gen_id}: {e}") from e
        log.info("generation_cancelled", gen_id=gen_id, kind=kind.value)
