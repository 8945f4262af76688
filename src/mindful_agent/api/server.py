"""FastAPI application — the surface the watch UI talks to.

This module wires together all infrastructure:
- Blob persistence (SQLite by default) and the application state
- Heart-rate sample pipeline and the manual health source
- Haptic dispatcher and player
- The mindful agent and its monitoring service
- Read-only views (status, events, insights, summary, config)
- User callbacks (acknowledge, config setters, reset)
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from fastapi import FastAPI, HTTPException, Query, Request

from mindful_agent.agent.core import MindfulAgent
from mindful_agent.api.schemas import ActivityRequest, ConfigUpdate, SampleRequest, StatusResponse
from mindful_agent.collectors.manual import ManualHealthSource
from mindful_agent.config import Settings, get_settings
from mindful_agent.haptics.drivers import HapticDispatcher, HapticPlayer, create_dispatcher
from mindful_agent.insights.summary import compute_event_summary
from mindful_agent.models import AIInsight, AppConfig, HapticEvent, HeartRateSample
from mindful_agent.scheduler.service import MonitoringService
from mindful_agent.storage.blob import BlobStore, SqlBlobStore
from mindful_agent.storage.database import init_db
from mindful_agent.storage.state import AppState
from mindful_agent.streaming.pipeline import StreamPipeline

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"


@dataclass
class AppContext:
    """Everything the routes need, built once per application lifespan."""

    settings: Settings
    state: AppState
    agent: MindfulAgent
    service: MonitoringService
    pipeline: StreamPipeline
    source: ManualHealthSource
    tasks: list[asyncio.Task] = field(default_factory=list)


def create_app(
    settings: Settings | None = None,
    *,
    blob_store: BlobStore | None = None,
    source: ManualHealthSource | None = None,
    dispatcher: HapticDispatcher | None = None,
) -> FastAPI:
    """Build the API; collaborators may be injected (tests, embedding)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or get_settings()

        # 1. Persistence
        store = blob_store
        if store is None:
            await init_db()
            store = SqlBlobStore()
        state = AppState(store)
        await state.load()
        logger.info("server.state_ready")

        # 2. Sample pipeline and health source
        pipeline = StreamPipeline()
        health = source or ManualHealthSource()
        health.attach_pipeline(pipeline)

        # 3. Haptics
        player = HapticPlayer(dispatcher or create_dispatcher(cfg))

        # 4. Agent and monitoring
        agent = MindfulAgent(state, player, health, settings=cfg)
        service = MonitoringService(agent, settings=cfg)
        pipeline.add_consumer(agent.ingest_sample)

        ctx = AppContext(
            settings=cfg,
            state=state,
            agent=agent,
            service=service,
            pipeline=pipeline,
            source=health,
        )
        ctx.tasks.append(asyncio.create_task(pipeline.start(), name="sample_pipeline"))
        app.state.context = ctx

        await agent.connect()
        if cfg.monitor_autostart:
            await service.start()

        logger.info("server.started", connected=agent.is_connected)

        yield  # ← application runs

        await service.stop()
        await pipeline.stop()
        for task in ctx.tasks:
            task.cancel()
        await asyncio.gather(*ctx.tasks, return_exceptions=True)
        await agent.close()
        logger.info("server.stopped")

    app = FastAPI(
        title="Mindful Agent API",
        description="Stress inference, haptic nudges and adaptive insights for a wrist-worn companion.",
        version=VERSION,
        lifespan=lifespan,
    )
    _register_routes(app)
    return app


def _context(request: Request) -> AppContext:
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(503, "Companion not ready.")
    return ctx


def _register_routes(app: FastAPI) -> None:

    # ── System ────────────────────────────────────────────────

    @app.get("/health", tags=["system"])
    async def health(request: Request):
        ctx = _context(request)
        return {
            "status": "ok",
            "version": VERSION,
            "pipeline_pending": ctx.pipeline.pending,
            "monitoring": ctx.service.stats | {"running": ctx.service.is_running},
        }

    @app.get("/status", response_model=StatusResponse, tags=["monitoring"])
    async def status(request: Request):
        ctx = _context(request)
        snap = await ctx.agent.snapshot()
        pending = ctx.agent.pending_acknowledgment
        return StatusResponse(
            snapshot=snap,
            status=snap.status.value,
            status_label=snap.status.label,
            is_connected=ctx.agent.is_connected,
            monitoring_running=ctx.service.is_running,
            baseline=ctx.agent.aggregator.baseline,
            pending_acknowledgment=pending.to_dict() if pending else None,
            config=ctx.state.config,
        )

    # ── Health data push ──────────────────────────────────────

    @app.post("/samples", status_code=201, tags=["data"])
    async def push_sample(req: SampleRequest, request: Request):
        ctx = _context(request)
        if not ctx.agent.is_connected:
            raise HTTPException(503, "Health data access not authorised.")
        sample = HeartRateSample(value=req.value, timestamp=req.timestamp or datetime.now())
        await ctx.source.push_sample(sample)
        return {"queued": True, "pending": ctx.pipeline.pending}

    @app.post("/activity", tags=["data"])
    async def push_activity(req: ActivityRequest, request: Request):
        ctx = _context(request)
        if req.workout_active is not None:
            ctx.source.set_workout_active(req.workout_active)
        if req.active_energy_kcal is not None:
            ctx.source.record_active_energy(req.active_energy_kcal, req.timestamp)
        return {"is_active": await ctx.source.is_active(datetime.now())}

    # ── Events ────────────────────────────────────────────────

    @app.get("/events", response_model=list[HapticEvent], tags=["events"])
    async def list_events(request: Request, limit: int = Query(50, ge=1, le=50)):
        return _context(request).state.events.items[:limit]

    @app.post("/events/{event_id}/acknowledge", response_model=HapticEvent, tags=["events"])
    async def acknowledge_event(event_id: str, request: Request):
        event = await _context(request).agent.acknowledge(event_id)
        if event is None:
            raise HTTPException(404, "Event not found.")
        return event

    @app.post("/acknowledge", response_model=HapticEvent, tags=["events"])
    async def acknowledge_pending(request: Request):
        event = await _context(request).agent.acknowledge()
        if event is None:
            raise HTTPException(404, "No pending acknowledgment.")
        return event

    # ── Insights ──────────────────────────────────────────────

    @app.get("/insights", response_model=list[AIInsight], tags=["insights"])
    async def list_insights(request: Request):
        return _context(request).state.insights.items

    @app.get("/insights/optimal-hours", tags=["insights"])
    async def optimal_hours(request: Request):
        return {"hours": _context(request).agent.optimal_reminder_hours()}

    @app.post("/insights/analyze", response_model=list[AIInsight], tags=["insights"])
    async def analyze(request: Request):
        """Run the analysis now (still subject to the hourly throttle)."""
        return await _context(request).agent.analyze()

    @app.get("/summary", tags=["insights"])
    async def summary(request: Request):
        return compute_event_summary(_context(request).state.events.items)

    # ── Config ────────────────────────────────────────────────

    @app.get("/config", response_model=AppConfig, tags=["config"])
    async def get_config(request: Request):
        return _context(request).state.config

    @app.patch("/config", response_model=AppConfig, tags=["config"])
    async def update_config(req: ConfigUpdate, request: Request):
        ctx = _context(request)
        if req.sensitivity_mode is not None:
            await ctx.agent.set_sensitivity(req.sensitivity_mode)
        if req.reminder_interval is not None:
            await ctx.agent.set_reminder_interval(req.reminder_interval)
        if req.monitoring_enabled is not None:
            await ctx.service.set_monitoring_enabled(req.monitoring_enabled)
        return ctx.state.config

    @app.post("/reset", tags=["config"])
    async def reset(request: Request):
        await _context(request).agent.reset()
        return {"reset": True}


app = create_app()
