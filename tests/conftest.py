"""Shared fixtures: a hand-driven clock and an in-memory candidate producer."""

from __future__ import annotations

from typing import Dict, List

import pytest

from app.schemas.recommendations import ContentItem, RecommendationSection


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProducer:
    def __init__(self, candidates: Dict[RecommendationSection, List[int]] | None = None):
        self.candidates = candidates or {}
        self.calls: List[RecommendationSection] = []
        self.fail = False

    def is_configured(self) -> bool:
        return True

    async def get_candidates(self, section: RecommendationSection) -> List[ContentItem]:
        self.calls.append(section)
        if self.fail:
            raise RuntimeError("producer down")
        return [make_item(i) for i in self.candidates.get(section, [])]


def make_item(content_id: int) -> ContentItem:
    return ContentItem(id=content_id, title=f"Title {content_id}", poster_path=f"/p{content_id}.jpg")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def producer() -> FakeProducer:
    return FakeProducer(
        {
            RecommendationSection.WORTH_WATCHING: [1, 2, 3, 4],
            RecommendationSection.HIDDEN_GEMS: [3, 4, 5, 6],
            RecommendationSection.REWATCH: [1, 6, 7, 8],
        }
    )
