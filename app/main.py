from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import sys
import time
import uuid

from fastapi import FastAPI, Path, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logger import service_logger
from app.providers.candidate_producer import TMDbCandidateProducer
from app.schemas.recommendations import (
    ExclusionInfo,
    RecommendationSection,
    SectionMeta,
    SectionResponse,
    SessionStatus,
    TipsResponse,
    WatchlistChange,
    WatchlistPayload,
)
from app.services.circuit_breaker import build_producer_breaker
from app.services.health_check import ReadinessResponse, run_readiness_check
from app.services.tips_orchestrator import (
    RecommendationContext,
    SectionResult,
    fetch_all_sections,
    fetch_section,
)


logging.basicConfig(
    stream=sys.stdout,
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# One session context per process, mirroring the single signed-in user.
recommendation_context = RecommendationContext.create()
candidate_producer = TMDbCandidateProducer()
producer_breaker = build_producer_breaker()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await candidate_producer.aclose()


app = FastAPI(title="Tips Recommendation Service", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.perf_counter()
    request_id = str(uuid.uuid4())
    # Attach request ID to state for logging
    request.state.request_id = request_id

    response: Response = await call_next(request)

    process_time = time.perf_counter() - start_time
    service_logger.log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=process_time * 1000,
        request_id=request_id,
        extra={"session_started": recommendation_context.started},
    )
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/health", tags=["meta"])
@app.get("/health/live", tags=["meta"])
def health_live() -> dict:
    return {"status": "ok", "session": "started" if recommendation_context.started else "idle"}


@app.get("/health/ready", response_model=ReadinessResponse, tags=["meta"])
def health_ready() -> ReadinessResponse:
    return run_readiness_check(recommendation_context, candidate_producer, producer_breaker)


@app.post("/api/v1/session", response_model=SessionStatus, tags=["session"])
def start_session(payload: WatchlistPayload) -> SessionStatus:
    recommendation_context.start_session(payload.watchlist_ids)
    return SessionStatus(status="started", watchlist_size=recommendation_context.tracker.watchlist_size)


@app.put("/api/v1/session/watchlist", response_model=SessionStatus, tags=["session"])
def refresh_watchlist(payload: WatchlistPayload) -> SessionStatus:
    recommendation_context.refresh_watchlist(payload.watchlist_ids)
    return SessionStatus(status="refreshed", watchlist_size=recommendation_context.tracker.watchlist_size)


@app.post("/api/v1/session/watchlist/{content_id}", response_model=WatchlistChange, tags=["session"])
def add_to_watchlist(content_id: int = Path(ge=0)) -> WatchlistChange:
    dropped = recommendation_context.add_to_watchlist(content_id)
    return WatchlistChange(
        content_id=content_id,
        watchlist_size=recommendation_context.tracker.watchlist_size,
        dropped_sections=dropped,
    )


@app.delete("/api/v1/session/watchlist/{content_id}", response_model=WatchlistChange, tags=["session"])
def remove_from_watchlist(content_id: int = Path(ge=0)) -> WatchlistChange:
    recommendation_context.remove_from_watchlist(content_id)
    return WatchlistChange(
        content_id=content_id,
        watchlist_size=recommendation_context.tracker.watchlist_size,
    )


@app.delete("/api/v1/session", response_model=SessionStatus, tags=["session"])
def end_session() -> SessionStatus:
    recommendation_context.end_session()
    return SessionStatus(status="ended", watchlist_size=recommendation_context.tracker.watchlist_size)


@app.get("/api/v1/tips/exclusions", response_model=ExclusionInfo, tags=["tips"])
def exclusions() -> ExclusionInfo:
    return recommendation_context.tracker.get_exclusion_info()


@app.get("/api/v1/tips", response_model=TipsResponse, tags=["tips"])
async def get_all_tips(request: Request, force_refresh: bool = False) -> TipsResponse:
    results = await fetch_all_sections(
        recommendation_context,
        candidate_producer,
        limit=settings.SECTION_MAX_RESULTS,
        breaker=producer_breaker,
        force_refresh=force_refresh,
    )
    return TipsResponse(
        sections={section: _to_response(result, request) for section, result in results.items()}
    )


@app.get("/api/v1/tips/{section}", response_model=SectionResponse, tags=["tips"])
async def get_section_tips(
    section: RecommendationSection,
    request: Request,
    force_refresh: bool = False,
) -> SectionResponse:
    result = await fetch_section(
        recommendation_context,
        section,
        candidate_producer,
        limit=settings.SECTION_MAX_RESULTS,
        breaker=producer_breaker,
        force_refresh=force_refresh,
    )
    return _to_response(result, request)


def _to_response(result: SectionResult, request: Request) -> SectionResponse:
    excluded_total = len(recommendation_context.tracker.get_all_excluded_ids())
    service_logger.log_section(
        section=result.section.value,
        returned=len(result.items),
        cache_hit=result.cache_hit,
        excluded_total=excluded_total,
        request_id=getattr(request.state, "request_id", None),
    )
    return SectionResponse(
        section=result.section,
        meta=SectionMeta(
            returned=len(result.items),
            cache_hit=result.cache_hit,
            excluded_total=excluded_total,
        ),
        items=result.items,
    )
