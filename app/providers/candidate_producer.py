from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.recommendations import ContentItem, RecommendationSection


logger = logging.getLogger(__name__)


class CandidateProducerError(RuntimeError):
    pass


class CandidateProducer(Protocol):
    async def get_candidates(self, section: RecommendationSection) -> List[ContentItem]:
        ...


# One fixed discover query per section; TMDb does the ordering.
SECTION_QUERIES: Dict[RecommendationSection, Dict[str, Any]] = {
    RecommendationSection.WORTH_WATCHING: {
        "sort_by": "popularity.desc",
        "vote_average.gte": 7.5,
        "vote_count.gte": 1000,
    },
    RecommendationSection.HIDDEN_GEMS: {
        "sort_by": "vote_average.desc",
        "vote_average.gte": 7.0,
        "vote_count.gte": 100,
        "vote_count.lte": 1000,
    },
    RecommendationSection.REWATCH: {
        "sort_by": "vote_count.desc",
        "vote_average.gte": 8.0,
        "primary_release_date.lte": "2015-12-31",
    },
}


class TMDbCandidateProducer:
    """
    Thin wrapper around TMDb's /discover/movie endpoint.

    Returns an empty list when no API key is configured; raises
    CandidateProducerError on transport or payload failures so the
    circuit breaker can count them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        language: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = settings.TMDB_API_KEY if api_key is None else api_key
        self.language = language or settings.TMDB_LANGUAGE
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.TMDB_BASE_URL,
            timeout=timeout_seconds or settings.TMDB_TIMEOUT_SECONDS,
            transport=transport,
        )

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_candidates(self, section: RecommendationSection) -> List[ContentItem]:
        if not self.is_configured():
            logger.info("TMDb producer not configured; no candidates for %s.", section.value)
            return []

        params: Dict[str, Any] = {
            "api_key": self.api_key,
            "language": self.language,
            "include_adult": "false",
            **SECTION_QUERIES[section],
        }
        data = await self._get("/discover/movie", params)
        if not isinstance(data, dict):
            raise CandidateProducerError(f"TMDb payload for {section.value} is not a JSON object")

        results = data.get("results")
        if not isinstance(results, list):
            raise CandidateProducerError(f"TMDb payload for {section.value} has no results list")

        items = [item for item in (self._parse_item(raw) for raw in results) if item is not None]
        logger.info("TMDb returned %d usable candidates for %s", len(items), section.value)
        return items

    async def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            resp = await self._client.get(path, params=params or {})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CandidateProducerError(
                f"GET {path} -> {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CandidateProducerError(f"GET {path} failed: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise CandidateProducerError(f"GET {path} returned invalid JSON") from exc

    @staticmethod
    def _parse_item(raw: Any) -> Optional[ContentItem]:
        if not isinstance(raw, dict):
            return None
        title = raw.get("title") or raw.get("name")
        # Items without artwork or a title are unusable in a lane.
        if not title or not raw.get("poster_path"):
            return None
        try:
            return ContentItem(
                id=raw["id"],
                title=title,
                media_type=raw.get("media_type") or "movie",
                poster_path=raw["poster_path"],
                overview=raw.get("overview"),
                release_date=raw.get("release_date") or raw.get("first_air_date"),
                vote_average=raw.get("vote_average"),
                vote_count=raw.get("vote_count"),
            )
        except (KeyError, ValidationError):
            logger.debug("Skipping malformed TMDb item: %s", raw)
            return None
