"""
Session-scoped exclusion bookkeeping for the tips sections.

Keeps one set of shown ids per section plus the standing watchlist set.
An id is excluded if it is on the watchlist or was shown in *any* section,
so content surfaced in one section never reappears in another during the
same session.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Set, Sequence, TypeVar

from app.schemas.recommendations import (
    ContentItem,
    ExclusionInfo,
    RecommendationSection,
    SECTION_ORDER,
)


logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", bound=ContentItem)


class ExclusionTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._watchlist_ids: Set[int] = set()
        self._shown: Dict[RecommendationSection, Set[int]] = {
            section: set() for section in SECTION_ORDER
        }

    def initialize(self, watchlist_ids: Iterable[int]) -> None:
        """Replace the watchlist set and reset every section."""
        with self._lock:
            self._watchlist_ids = set(watchlist_ids)
            self._reset_sections()
        logger.info("Exclusion tracker initialized with %d watchlist ids", len(self._watchlist_ids))

    def add_watchlist_id(self, content_id: int) -> None:
        with self._lock:
            self._watchlist_ids.add(content_id)

    def remove_watchlist_id(self, content_id: int) -> None:
        """Session exclusions for the id, if any, are kept."""
        with self._lock:
            self._watchlist_ids.discard(content_id)

    def clear(self) -> None:
        """Reset session exclusions. The watchlist set is kept."""
        with self._lock:
            self._reset_sections()

    def mark_shown(self, section: RecommendationSection | str, content_ids: Iterable[int]) -> None:
        target = RecommendationSection(section)
        with self._lock:
            self._shown[target].update(content_ids)

    def is_excluded(self, content_id: int) -> bool:
        with self._lock:
            if content_id in self._watchlist_ids:
                return True
            return any(content_id in shown for shown in self._shown.values())

    def get_all_excluded_ids(self) -> List[int]:
        with self._lock:
            return list(self._union())

    def get_section_ids(self, section: RecommendationSection | str) -> Set[int]:
        target = RecommendationSection(section)
        with self._lock:
            return set(self._shown[target])

    def filter_excluded(self, items: Sequence[ItemT]) -> List[ItemT]:
        """Drop excluded items, keeping the original order."""
        with self._lock:
            excluded = self._union()
        return [item for item in items if item.id not in excluded]

    def get_exclusion_info(self, sample_size: int = 10) -> ExclusionInfo:
        with self._lock:
            union = self._union()
            return ExclusionInfo(
                total=len(union),
                watchlist=len(self._watchlist_ids),
                shown={section: len(ids) for section, ids in self._shown.items()},
                sample=sorted(union)[:sample_size],
            )

    @property
    def watchlist_size(self) -> int:
        return len(self._watchlist_ids)

    def _reset_sections(self) -> None:
        for shown in self._shown.values():
            shown.clear()

    def _union(self) -> Set[int]:
        union = set(self._watchlist_ids)
        for shown in self._shown.values():
            union |= shown
        return union
