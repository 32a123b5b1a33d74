from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class RecommendationSection(str, Enum):
    """The three tips sections. No other section names exist."""

    WORTH_WATCHING = "worthWatching"
    HIDDEN_GEMS = "hiddenGems"
    REWATCH = "rewatch"


# Order in which sections claim content when fetched together.
SECTION_ORDER: List[RecommendationSection] = [
    RecommendationSection.WORTH_WATCHING,
    RecommendationSection.HIDDEN_GEMS,
    RecommendationSection.REWATCH,
]


class ContentItem(BaseModel):
    id: int
    title: str
    media_type: str = Field(default="movie", description="'movie' or 'tv'.")
    poster_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None


class WatchlistPayload(BaseModel):
    watchlist_ids: List[int] = Field(
        default_factory=list,
        description="Content identifiers already on the user's watchlist.",
    )

    @field_validator("watchlist_ids")
    @classmethod
    def validate_ids(cls, v: List[int]) -> List[int]:
        if any(i < 0 for i in v):
            raise ValueError("watchlist_ids must be non-negative")
        return v


class SectionMeta(BaseModel):
    returned: int
    cache_hit: bool
    excluded_total: int


class SectionResponse(BaseModel):
    section: RecommendationSection
    meta: SectionMeta
    items: List[ContentItem]


class TipsResponse(BaseModel):
    sections: Dict[RecommendationSection, SectionResponse]


class ExclusionInfo(BaseModel):
    total: int
    watchlist: int
    shown: Dict[RecommendationSection, int]
    sample: List[int] = Field(
        default_factory=list,
        description="A few excluded ids, for debugging.",
    )


class SessionStatus(BaseModel):
    status: str
    watchlist_size: int


class WatchlistChange(BaseModel):
    content_id: int
    watchlist_size: int
    dropped_sections: List[RecommendationSection] = Field(
        default_factory=list,
        description="Cached sections discarded because they held the added id.",
    )
