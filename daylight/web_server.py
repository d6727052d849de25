#!/usr/bin/env python3
"""
FastAPI Web Server for Daylight

Interactive view: every dashboard request runs a scan cycle through the
shared engine (the same serialized path the monitor uses) and returns JSON.
"""

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .engine import ScanEngine, create_engine
from .history import sparkline_points

logger = logging.getLogger(__name__)


class AlertRequest(BaseModel):
    instrument_id: str
    name: str
    condition: str
    target: int = Field(ge=0, le=100)


class WatchRequest(BaseModel):
    id: str
    title: str
    source: str = "unknown"
    link: str = "#"


class ConfigUpdate(BaseModel):
    min_spread: Optional[int] = None
    auto_alert: Optional[bool] = None
    check_interval: Optional[int] = None
    similarity_threshold: Optional[float] = None
    display_min_spread: Optional[int] = None


def _log_monitor_exit(task: asyncio.Task) -> None:
    """Report a background monitor that stopped on its own."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Monitor stopped: {error}", exc_info=error)
    else:
        logger.info("Monitor finished")


def create_app(engine: Optional[ScanEngine] = None, run_monitor: bool = False) -> FastAPI:
    """
    Build the web app around an engine.

    Args:
        engine: Engine to serve (None = live feeds, default data dir)
        run_monitor: Also run the periodic monitor in the background

    Returns:
        FastAPI application
    """
    engine = engine or create_engine()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if run_monitor:
            task = asyncio.create_task(engine.run_forever())
            task.add_done_callback(_log_monitor_exit)
        yield
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    app = FastAPI(title="Daylight", version="1.0.0", lifespan=lifespan)
    app.state.engine = engine

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def dashboard():
        """Scan both venues and return everything the dashboard shows."""
        report = await engine.run_cycle(display_min_spread=engine.config.display_min_spread)
        prices = report.prices
        history = engine.price_history()

        instruments = []
        for instrument in report.instruments_a + report.instruments_b:
            points, trend = sparkline_points(history.series(instrument.history_key))
            instruments.append({
                "instrument_id": instrument.history_key,
                "venue": instrument.venue,
                "title": instrument.title,
                "yes_price": instrument.yes_price,
                "volume": instrument.volume,
                "delta": report.deltas.get(instrument.history_key),
                "sparkline": points,
                "trend": trend,
            })

        all_prices = list(prices.values())
        data = report.to_dict()
        data.update({
            "instruments": instruments,
            "watchlist": engine.watchlist().enrich(prices, report.deltas),
            "alert_list": [a.to_dict() for a in engine.alert_book().list()],
            "stats": {
                "total_markets": len(all_prices),
                "avg_price": round(sum(all_prices) / len(all_prices)) if all_prices else 0,
                "best_spread": report.display_candidates[0].spread if report.display_candidates else None,
            },
        })
        return data

    @app.get("/scan")
    async def scan(min_spread: Optional[int] = None):
        """Run a scan cycle and return its report."""
        report = await engine.run_cycle(display_min_spread=min_spread)
        return report.to_dict()

    @app.get("/opportunities")
    async def opportunities(status: Optional[str] = None):
        if status not in (None, "open", "closed"):
            raise HTTPException(status_code=400, detail="status must be 'open' or 'closed'")
        return [o.to_dict() for o in engine.opportunities(status)]

    @app.get("/movers")
    async def movers():
        report = engine.last_report
        if report is None:
            return []
        return [m.to_dict() for m in report.movers]

    @app.get("/history/{instrument_id}")
    async def history(instrument_id: str):
        samples = engine.price_history().series(instrument_id)
        if not samples:
            raise HTTPException(status_code=404, detail="No history for instrument")
        points, trend = sparkline_points(samples)
        return {
            "instrument_id": instrument_id,
            "samples": [s.to_dict() for s in samples],
            "sparkline": points,
            "trend": trend,
        }

    @app.get("/alerts")
    async def list_alerts():
        return [a.to_dict() for a in engine.alert_book().list()]

    @app.post("/alerts")
    async def create_alert(request: AlertRequest):
        try:
            alert = await engine.add_price_alert(
                request.instrument_id, request.name, request.condition, request.target
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True, "alert": alert.to_dict()}

    @app.delete("/alerts/{alert_id}")
    async def delete_alert(alert_id: str):
        removed = await engine.delete_alert(alert_id)
        return {"ok": True, "removed": removed}

    @app.get("/watchlist")
    async def list_watchlist():
        report = engine.last_report
        prices = report.prices if report else {}
        deltas = report.deltas if report else {}
        return engine.watchlist().enrich(prices, deltas)

    @app.post("/watchlist")
    async def add_watch(request: WatchRequest):
        item = await engine.add_watch(request.id, request.title, request.source, request.link)
        return {"ok": True, "item": item.to_dict()}

    @app.delete("/watchlist/{item_id}")
    async def remove_watch(item_id: str):
        removed = await engine.remove_watch(item_id)
        return {"ok": True, "removed": removed}

    @app.get("/config")
    async def get_config():
        return engine.config.to_dict()

    @app.put("/config")
    async def put_config(update: ConfigUpdate):
        changes = {k: v for k, v in update.model_dump().items() if v is not None}
        try:
            config = await engine.update_config(**changes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return config.to_dict()

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(run_monitor=True), host="0.0.0.0", port=8000)
