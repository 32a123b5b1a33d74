"""
Fetch routine for the tips sections.

Cache first; on a miss, ask the candidate producer, drop anything the
exclusion tracker already knows about, record what is being shown, and
cache the filtered result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from app.core.clock import Clock, system_clock
from app.core.logger import service_logger
from app.providers.candidate_producer import CandidateProducer
from app.schemas.recommendations import ContentItem, RecommendationSection, SECTION_ORDER
from app.services.circuit_breaker import CircuitBreaker
from app.services.exclusion_tracker import ExclusionTracker
from app.services.recommendation_cache import RecommendationCache


logger = logging.getLogger(__name__)


@dataclass
class RecommendationContext:
    """Cache and tracker owned by one user session."""

    cache: RecommendationCache
    tracker: ExclusionTracker = field(default_factory=ExclusionTracker)
    started: bool = False
    # Serializes check/fetch/store per section on the event loop.
    section_locks: Dict[RecommendationSection, asyncio.Lock] = field(
        default_factory=lambda: {section: asyncio.Lock() for section in SECTION_ORDER}
    )

    @classmethod
    def create(cls, ttl_seconds: float | None = None, clock: Clock = system_clock) -> "RecommendationContext":
        return cls(cache=RecommendationCache(ttl_seconds=ttl_seconds, clock=clock))

    def start_session(self, watchlist_ids: Iterable[int]) -> None:
        self.tracker.initialize(watchlist_ids)
        self.cache.clear()
        self.started = True

    def refresh_watchlist(self, watchlist_ids: Iterable[int]) -> None:
        # Cached sections may hold items that are now on the watchlist.
        self.tracker.initialize(watchlist_ids)
        self.cache.clear()

    def add_to_watchlist(self, content_id: int) -> List[RecommendationSection]:
        """Exclude one id and drop only the cached sections that contain it."""
        self.tracker.add_watchlist_id(content_id)
        dropped: List[RecommendationSection] = []
        for section in SECTION_ORDER:
            cached = self.cache.get(section.value)
            if cached is not None and any(item.id == content_id for item in cached):
                self.cache.clear_key(section.value)
                dropped.append(section)
        if dropped:
            logger.info("Watchlist add %d dropped cached sections %s", content_id, [s.value for s in dropped])
        return dropped

    def remove_from_watchlist(self, content_id: int) -> None:
        self.tracker.remove_watchlist_id(content_id)

    def end_session(self) -> None:
        self.tracker.clear()
        self.cache.clear()
        self.started = False


@dataclass
class SectionResult:
    section: RecommendationSection
    items: List[ContentItem]
    cache_hit: bool


async def fetch_section(
    context: RecommendationContext,
    section: RecommendationSection,
    producer: CandidateProducer,
    *,
    limit: int,
    breaker: Optional[CircuitBreaker] = None,
    force_refresh: bool = False,
) -> SectionResult:
    key = section.value

    async with context.section_locks[section]:
        if force_refresh:
            context.cache.clear_key(key)

        cached = context.cache.get(key)
        if cached is not None:
            # Re-mark so the tracker stays authoritative after a tracker.clear().
            context.tracker.mark_shown(section, (item.id for item in cached))
            return SectionResult(section=section, items=list(cached), cache_hit=True)

        if breaker is not None:
            candidates = await breaker.acall(producer.get_candidates, section)
        else:
            candidates = await producer.get_candidates(section)

        if candidates is None:
            service_logger.log_error(
                "Candidate producer returned nothing; section not cached",
                extra={"section": key},
            )
            return SectionResult(section=section, items=[], cache_hit=False)

        items = select_unshown(context.tracker, candidates, limit)
        context.tracker.mark_shown(section, [item.id for item in items])
        context.cache.set(key, items)
        logger.info("Section %s: %d of %d candidates kept", key, len(items), len(candidates))
        return SectionResult(section=section, items=list(items), cache_hit=False)


async def fetch_all_sections(
    context: RecommendationContext,
    producer: CandidateProducer,
    *,
    limit: int,
    breaker: Optional[CircuitBreaker] = None,
    force_refresh: bool = False,
) -> Dict[RecommendationSection, SectionResult]:
    # Sections run in SECTION_ORDER; earlier ones claim content first.
    results: Dict[RecommendationSection, SectionResult] = {}
    for section in SECTION_ORDER:
        results[section] = await fetch_section(
            context,
            section,
            producer,
            limit=limit,
            breaker=breaker,
            force_refresh=force_refresh,
        )
    return results


def select_unshown(
    tracker: ExclusionTracker,
    candidates: List[ContentItem],
    limit: int,
) -> List[ContentItem]:
    """Producer order is kept; duplicates within the batch are dropped."""
    if limit <= 0:
        return []
    seen_ids = set()
    selected: List[ContentItem] = []
    for item in tracker.filter_excluded(candidates):
        if item.id in seen_ids:
            continue
        seen_ids.add(item.id)
        selected.append(item)
        if len(selected) >= limit:
            break
    return selected
