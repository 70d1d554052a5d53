from __future__ import annotations
import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from .client import HordeClient
from .config import INTERVALS, TIME_PERIODS, settings
from .errors import MonitorError
from .exporter import to_csv
from .logging_config import setup_logging
from .models import DataPoint, GenerationType, PollConfig
from .scheduler import PollScheduler

app = typer.Typer(name="hordemon")

API_KEY_OPTION = typer.Option(..., envvar="HORDE_API_KEY", help="AI Horde API key")


@app.callback()
def main(log_level: str = typer.Option(settings.log_level, help="Log level for stderr output")):
    setup_logging(log_level, json=False)


@app.command("version")
def version():
    from . import __version__
    typer.echo(json.dumps({"version": __version__}))


async def _watch(config: PollConfig, ticks: int, export: Optional[Path]) -> PollScheduler:
    seen = 0
    scheduler: PollScheduler

    def on_point(point: DataPoint):
        nonlocal seen
        seen += 1
        typer.echo(json.dumps({**point.to_dict(), **asdict(scheduler.stats())}))
        if ticks and seen >= ticks:
            scheduler.stop()

    scheduler = PollScheduler(HordeClient(), on_point=on_point)
    try:
        await scheduler.start(config)
        await scheduler.wait_idle()
    finally:
        await scheduler.close()
        if export is not None:
            export.write_text(to_csv(scheduler.window.current()))
    return scheduler


@app.command("watch")
def watch(
    api_key: str = API_KEY_OPTION,
    interval: str = typer.Option(settings.default_interval, help=f"One of: {', '.join(INTERVALS)}"),
    period: str = typer.Option(settings.default_period, help=f"One of: {', '.join(TIME_PERIODS)}"),
    ticks: int = typer.Option(0, help="Stop after this many samples (0 runs until interrupted)"),
    export: Optional[Path] = typer.Option(None, help="Write the window as CSV on exit"),
):
    try:
        config = PollConfig.from_labels(api_key, interval, period)
        scheduler = asyncio.run(_watch(config, ticks, export))
    except MonitorError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    if scheduler.error:
        typer.echo(scheduler.error, err=True)
        raise typer.Exit(code=1)


@app.command("status")
def status(
    gen_id: str,
    kind: GenerationType = typer.Option(GenerationType.image, "--type"),
    save: Optional[Path] = typer.Option(None, help="Write the first generated image here"),
):
    try:
        details = asyncio.run(HordeClient().get_generation(gen_id, kind))
    except MonitorError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    payload = asdict(details)
    payload["kind"] = details.kind.value
    for gen in payload["generations"]:
        # base64 blobs are useless on a terminal
        gen["img"] = bool(gen["img"])
    typer.echo(json.dumps(payload))
    if save is not None:
        images = [g.image_bytes() for g in details.generations if g.img]
        if not images:
            typer.echo("No image data to save", err=True)
            raise typer.Exit(code=1)
        save.write_bytes(images[0])


@app.command("cancel")
def cancel(
    gen_id: str,
    kind: GenerationType = typer.Option(GenerationType.image, "--type"),
    api_key: str = API_KEY_OPTION,
):
    try:
        asyncio.run(HordeClient().cancel_generation(gen_id, kind, api_key))
    except MonitorError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"ok": True, "id": gen_id}))


@app.command("serve")
def serve(host: str = settings.api_host, port: int = settings.api_port):
    import uvicorn
    uvicorn.run("hordemon.api.main:app", host=host, port=port)
