from __future__ import annotations
from pydantic import BaseModel
from typing import Dict

from app.providers.candidate_producer import TMDbCandidateProducer
from app.services.circuit_breaker import CircuitBreaker, CircuitState
from app.services.tips_orchestrator import RecommendationContext


class DependencyStatus(BaseModel):
    status: str
    details: str | None = None


class ReadinessResponse(BaseModel):
    status: str
    dependencies: Dict[str, DependencyStatus]


def check_producer_status(producer: TMDbCandidateProducer, breaker: CircuitBreaker) -> DependencyStatus:
    if not producer.is_configured():
        return DependencyStatus(status="warning", details="TMDB_API_KEY is missing; sections will be empty")
    return DependencyStatus(status=breaker.state.value, details=f"Circuit failures: {breaker.failure_count}")


def check_session_status(context: RecommendationContext) -> DependencyStatus:
    if not context.started:
        return DependencyStatus(status="idle", details="No session started")
    return DependencyStatus(
        status="ok",
        details=f"{context.tracker.watchlist_size} watchlist ids, {len(context.cache)} cached sections",
    )


def run_readiness_check(
    context: RecommendationContext,
    producer: TMDbCandidateProducer,
    breaker: CircuitBreaker,
) -> ReadinessResponse:
    producer_status = check_producer_status(producer, breaker)
    session_status = check_session_status(context)

    total_status = "ready"
    if producer_status.status == CircuitState.OPEN.value:
        total_status = "degraded"

    return ReadinessResponse(
        status=total_status,
        dependencies={
            "candidate_producer": producer_status,
            "session": session_status,
        },
    )
