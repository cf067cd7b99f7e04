"""Connected-users feed tests."""

import asyncio

import pytest

from matchmaking_service.application.cursor import decode_cursor, encode_cursor
from matchmaking_service.application.feed import (
    FeedAggregator,
    normalize_engagement,
    parse_cast_timestamp,
)
from tests.conftest import FakeContentSource, connect, make_cast

VIEWER = 1


@pytest.fixture
def aggregator(graph, content_source) -> FeedAggregator:
    return FeedAggregator(graph, content_source, pacing_factor=0)


def ts(second: int) -> str:
    return f"2024-05-01T12:00:{second:02d}Z"


class TestCursor:

    def test_round_trip(self):
        assert decode_cursor(encode_cursor(40, issued_at_ms=1)) == 40

    def test_cursor_is_url_safe(self):
        cursor = encode_cursor(123456)
        assert all(c.isalnum() or c in "-_=" for c in cursor)

    @pytest.mark.parametrize("cursor", [None, "", "not base64!!", "bm90IGpzb24", "WzFd"])
    def test_malformed_cursor_means_top(self, cursor):
        assert decode_cursor(cursor) == 0

    def test_negative_offset_means_top(self):
        assert decode_cursor(encode_cursor(-5)) == 0


class TestTimestampsAndCounters:

    def test_parse_iso_and_fallback_field(self):
        assert parse_cast_timestamp({"timestamp": "1970-01-01T00:00:10Z"}) == 10.0
        assert parse_cast_timestamp({"created_at": "1970-01-01T00:01:00"}) == 60.0

    def test_unparsable_timestamp_is_oldest(self):
        assert parse_cast_timestamp({"timestamp": "yesterday"}) == 0.0
        assert parse_cast_timestamp({}) == 0.0

    def test_explicit_count_wins(self):
        cast = {"reactions": {"likes_count": 7, "likes": [{"fid": 1}]}}
        assert normalize_engagement(cast)["reactions"]["likes_count"] == 7

    def test_array_length_fallback(self):
        cast = {"reactions": {"recasts": [{"fid": 1}, {"fid": 2}]}, "replies": [{}, {}, {}]}
        normalized = normalize_engagement(cast)

        assert normalized["reactions"]["recasts_count"] == 2
        assert normalized["reactions"]["likes_count"] == 0
        assert normalized["replies"]["count"] == 3

    def test_missing_counters_default_to_zero(self):
        normalized = normalize_engagement({"hash": "0x1"})

        assert normalized["reactions"] == {
            "likes_count": 0, "likes": [], "recasts_count": 0, "recasts": []
        }
        assert normalized["replies"] == {"count": 0}

    def test_source_cast_is_not_mutated(self):
        cast = {"reactions": {"likes": [{"fid": 1}]}}
        normalize_engagement(cast)

        assert cast == {"reactions": {"likes": [{"fid": 1}]}}


class TestFeed:

    @pytest.mark.asyncio
    async def test_no_connections(self, aggregator, content_source):
        page = await aggregator.feed(VIEWER)

        assert page.items == []
        assert page.has_more is False
        assert page.next_cursor is None
        assert page.mutual_connections_count == 0
        assert page.api_calls_made == 0
        assert page.batches_used == 0
        assert content_source.calls == []

    @pytest.mark.asyncio
    async def test_newest_first_from_connections_only(self, aggregator, action_store, content_source):
        await connect(action_store, VIEWER, 2)
        await connect(action_store, VIEWER, 3)
        await action_store.record_action(VIEWER, 4, "like")
        content_source.casts_by_author = {
            2: [make_cast(2, "0xa", ts(1)), make_cast(2, "0xb", ts(30))],
            3: [make_cast(3, "0xc", ts(10))],
            4: [make_cast(4, "0xd", ts(59))],
        }
        content_source.extra_casts = [make_cast(99, "0xe", ts(50))]

        page = await aggregator.feed(VIEWER, limit=10)

        assert [c["hash"] for c in page.items] == ["0xb", "0xc", "0xa"]
        assert page.mutual_connections_count == 2
        assert page.total_items_available == 3
        assert content_source.calls == [{"fids": [2, 3], "viewer_fid": VIEWER, "limit": 100}]

    @pytest.mark.asyncio
    async def test_duplicates_and_bad_timestamps(self, aggregator, action_store, content_source):
        await connect(action_store, VIEWER, 2)
        content_source.casts_by_author = {
            2: [
                make_cast(2, "0xa", ts(5), text="first"),
                make_cast(2, "0xa", ts(5), text="second"),
                make_cast(2, "0xz", "garbage"),
                make_cast(2, "0xb", ts(9)),
                {"author": {"fid": 2}, "thread_hash": "0xt", "timestamp": ts(1)},
            ]
        }

        page = await aggregator.feed(VIEWER)

        assert [c.get("hash") or c["thread_hash"] for c in page.items] == ["0xb", "0xa", "0xt", "0xz"]
        assert page.items[1]["text"] == "first"
        assert all("likes_count" in c["reactions"] for c in page.items)

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, aggregator, action_store, content_source):
        for fid in range(2, 152):
            await connect(action_store, VIEWER, fid)
            content_source.casts_by_author[fid] = [make_cast(fid, f"0x{fid}", ts(fid % 60))]
        content_source.failing_fids = {2}

        page = await aggregator.feed(VIEWER, limit=100)

        assert page.mutual_connections_count == 150
        assert page.batches_used == 2
        assert page.api_calls_made == 2
        assert page.total_items_available == 50
        assert {c["author"]["fid"] for c in page.items} == set(range(102, 152))
        assert all(len(call["fids"]) <= 100 for call in content_source.calls)
        assert all(call["limit"] == 100 for call in content_source.calls)

    @pytest.mark.asyncio
    async def test_cursor_pages_do_not_overlap(self, aggregator, action_store, content_source):
        await connect(action_store, VIEWER, 2)
        content_source.casts_by_author = {
            2: [make_cast(2, f"0x{i}", ts(i)) for i in range(30)]
        }

        first = await aggregator.feed(VIEWER, limit=10)
        second = await aggregator.feed(VIEWER, limit=10, cursor=first.next_cursor)
        everything = await aggregator.feed(VIEWER, limit=30)

        assert first.has_more is True
        assert [c["hash"] for c in second.items] == [c["hash"] for c in everything.items[10:20]]
        assert not {c["hash"] for c in first.items} & {c["hash"] for c in second.items}
        assert everything.has_more is False
        assert everything.next_cursor is None

    @pytest.mark.asyncio
    async def test_invalid_cursor_restarts(self, aggregator, action_store, content_source):
        await connect(action_store, VIEWER, 2)
        content_source.casts_by_author = {2: [make_cast(2, "0xa", ts(1))]}

        page = await aggregator.feed(VIEWER, cursor="%%%")

        assert [c["hash"] for c in page.items] == ["0xa"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit, expected", [(0, 1), (-3, 1), (500, 100)])
    async def test_limit_is_clamped(self, aggregator, action_store, content_source, limit, expected):
        await connect(action_store, VIEWER, 2)
        content_source.casts_by_author = {
            2: [make_cast(2, f"0x{i}", ts(i % 60)) for i in range(150)]
        }

        page = await aggregator.feed(VIEWER, limit=limit)

        assert len(page.items) == min(expected, page.total_items_available)


class SlowContentSource(FakeContentSource):
    """Yields to the event loop on every call, like a real network round trip."""

    async def fetch_casts(self, author_fids, viewer_fid=None, limit=100):
        await asyncio.sleep(0)
        return await super().fetch_casts(author_fids, viewer_fid=viewer_fid, limit=limit)


class TestPacing:

    async def _run(self, graph, action_store, connections, slots, **kwargs):
        source = SlowContentSource()
        aggregator = FeedAggregator(
            graph, source, batch_cap=1, max_concurrent_batches=slots, pacing_factor=1.0, **kwargs
        )
        delays = []

        async def record(delay):
            delays.append(delay)
            await asyncio.sleep(0)

        aggregator._pace = record
        for fid in range(2, 2 + connections):
            await connect(action_store, VIEWER, fid)

        page = await aggregator.feed(VIEWER)
        return page, source, delays

    @pytest.mark.asyncio
    async def test_no_pacing_when_every_batch_has_a_slot(self, graph, action_store):
        page, source, delays = await self._run(graph, action_store, connections=3, slots=4)

        assert page.batches_used == 3
        assert len(source.calls) == 3
        assert delays == []

    @pytest.mark.asyncio
    async def test_only_slots_with_a_queued_batch_pace(self, graph, action_store):
        page, source, delays = await self._run(graph, action_store, connections=5, slots=4)

        assert page.batches_used == 5
        assert len(source.calls) == 5
        assert len(delays) == 4

    @pytest.mark.asyncio
    async def test_last_sequential_call_is_not_paced(self, graph, action_store):
        _, source, delays = await self._run(graph, action_store, connections=3, slots=1)

        assert len(source.calls) == 3
        assert len(delays) == 2

    @pytest.mark.asyncio
    async def test_delay_is_capped(self, graph, action_store):
        _, _, delays = await self._run(
            graph, action_store, connections=3, slots=1, max_pacing_delay=0.0
        )

        assert delays == [0.0, 0.0]

    @pytest.mark.asyncio
    async def test_failed_batch_still_paces(self, graph, action_store):
        source = SlowContentSource()
        source.failing_fids = {2}
        aggregator = FeedAggregator(graph, source, batch_cap=1, max_concurrent_batches=1)
        delays = []

        async def record(delay):
            delays.append(delay)

        aggregator._pace = record
        await connect(action_store, VIEWER, 2)
        await connect(action_store, VIEWER, 3)

        page = await aggregator.feed(VIEWER)

        assert page.api_calls_made == 2
        assert len(delays) == 1
