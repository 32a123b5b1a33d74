from __future__ import annotations

import httpx
import pytest

from app.providers.candidate_producer import (
    SECTION_QUERIES,
    CandidateProducerError,
    TMDbCandidateProducer,
)
from app.schemas.recommendations import RecommendationSection


def _producer(handler, api_key: str = "test-key") -> TMDbCandidateProducer:
    return TMDbCandidateProducer(
        api_key=api_key,
        base_url="https://tmdb.test/3",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_parses_usable_items_and_sends_section_query():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": 11, "title": "Heat", "poster_path": "/heat.jpg", "vote_average": 8.3},
                    {"id": 12, "title": "No Poster", "poster_path": None},
                    {"id": 13, "name": "Dark", "poster_path": "/dark.jpg", "first_air_date": "2017-12-01"},
                    {"title": "No Id", "poster_path": "/x.jpg"},
                ]
            },
        )

    producer = _producer(handler)
    items = await producer.get_candidates(RecommendationSection.HIDDEN_GEMS)
    await producer.aclose()

    assert [i.id for i in items] == [11, 13]
    assert items[1].title == "Dark"
    assert items[1].release_date == "2017-12-01"
    assert seen["path"] == "/3/discover/movie"
    assert seen["params"]["api_key"] == "test-key"
    assert seen["params"]["sort_by"] == SECTION_QUERIES[RecommendationSection.HIDDEN_GEMS]["sort_by"]


@pytest.mark.asyncio
async def test_http_error_raises_producer_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream down")

    producer = _producer(handler)
    with pytest.raises(CandidateProducerError, match="503"):
        await producer.get_candidates(RecommendationSection.WORTH_WATCHING)
    await producer.aclose()


@pytest.mark.asyncio
async def test_payload_without_results_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status_message": "nope"})

    producer = _producer(handler)
    with pytest.raises(CandidateProducerError):
        await producer.get_candidates(RecommendationSection.REWATCH)
    await producer.aclose()


@pytest.mark.asyncio
async def test_unconfigured_producer_returns_nothing():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    producer = _producer(handler, api_key="")
    assert not producer.is_configured()
    assert await producer.get_candidates(RecommendationSection.REWATCH) == []
    await producer.aclose()


def test_every_section_has_a_query():
    assert set(SECTION_QUERIES) == set(RecommendationSection)


@pytest.mark.asyncio
async def test_non_object_payload_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": 1}])

    producer = _producer(handler)
    with pytest.raises(CandidateProducerError, match="not a JSON object"):
        await producer.get_candidates(RecommendationSection.WORTH_WATCHING)
    await producer.aclose()
