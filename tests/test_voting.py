"""
Tests for the vote flow: validation, throttling, rating updates.
"""

import pytest

from image_arena.errors import InvalidInput, NotFound, RateLimited
from image_arena.rate_limit import DualRateLimiter, SlidingWindowLimiter
from image_arena.sampler import PairSampler
from image_arena.voting import VoteHandler, parse_id


@pytest.fixture
def handler(seeded_store, limiter, rng):
    return VoteHandler(seeded_store, limiter, sampler=PairSampler(seeded_store, rng=rng), k_factor=32)


@pytest.fixture
def ids(seeded_store):
    return [seeded_store.sample(i).id for i in range(3)]


@pytest.mark.parametrize("raw,expected", [(1, 1), ("7", 7), (" 12 ", 12), (str(2**63 - 1), 2**63 - 1)])
def test_parse_id_accepts(raw, expected):
    assert parse_id(raw) == expected


@pytest.mark.parametrize("raw", [
    None, "", "abc", "1.5", 1.0, True, 0, -3, "-3", "NaN", "²",
    "99999999999999999999", 2**63, str(2**63),
])
def test_parse_id_rejects(raw):
    with pytest.raises(InvalidInput):
        parse_id(raw)


def test_end_to_end_first_vote(handler, seeded_store, ids):
    a, b, _ = ids
    result = handler.submit_vote(a, b, "1.1.1.1", "s")
    assert result.winner_after == pytest.approx(1216.0)
    assert result.loser_after == pytest.approx(1184.0)
    assert seeded_store.get_by_id(a).rating == pytest.approx(1216.0)
    assert seeded_store.get_by_id(b).rating == pytest.approx(1184.0)


def test_second_vote_reads_updated_ratings(handler, seeded_store, ids):
    a, b, _ = ids
    first = handler.submit_vote(a, b, "1.1.1.1", "s")
    second = handler.submit_vote(b, a, "1.1.1.1", "s")
    assert second.winner_before == pytest.approx(1184.0)
    assert second.loser_before == pytest.approx(1216.0)
    # underdog win moves more than the first, even vote
    assert second.winner_delta > first.winner_delta
    assert seeded_store.get_by_id(b).rating == pytest.approx(second.winner_after)


def test_repeated_identical_votes_are_not_deduplicated(handler, seeded_store, ids):
    a, b, _ = ids
    first = handler.submit_vote(a, b, "1.1.1.1", "s")
    second = handler.submit_vote(a, b, "1.1.1.1", "s")
    assert second.winner_before == pytest.approx(first.winner_after)
    assert second.winner_delta != pytest.approx(first.winner_delta)
    assert seeded_store.get_by_id(a).rating == pytest.approx(second.winner_after)


def test_self_vote_rejected(handler, seeded_store, ids):
    with pytest.raises(InvalidInput):
        handler.submit_vote(ids[0], ids[0], "1.1.1.1", "s")
    assert seeded_store.get_by_id(ids[0]).rating == 1200.0


def test_malformed_ids_rejected_before_rate_limit(seeded_store, clock, ids):
    lim = DualRateLimiter(
        SlidingWindowLimiter(1, clock=clock, rng=lambda: 1.0),
        SlidingWindowLimiter(1, clock=clock, rng=lambda: 1.0),
    )
    h = VoteHandler(seeded_store, lim)
    with pytest.raises(InvalidInput):
        h.submit_vote("x", ids[1], "ip", "s")
    # the bad request did not use the only slot
    h.submit_vote(ids[0], ids[1], "ip", "s")


def test_missing_image(handler, seeded_store, ids):
    with pytest.raises(NotFound):
        handler.submit_vote(ids[0], 9999, "1.1.1.1", "s")
    assert seeded_store.get_by_id(ids[0]).rating == 1200.0


def test_rate_limited_vote_leaves_store_untouched(seeded_store, clock, ids):
    lim = DualRateLimiter(
        SlidingWindowLimiter(3, window_sec=60, clock=clock, rng=lambda: 1.0),
        SlidingWindowLimiter(100, window_sec=60, clock=clock, rng=lambda: 1.0),
    )
    h = VoteHandler(seeded_store, lim, k_factor=32)
    a, b, c = ids
    for _ in range(3):
        h.submit_vote(a, b, "ip", "s")
    before = seeded_store.get_by_id(c).rating
    with pytest.raises(RateLimited):
        h.submit_vote(c, a, "ip", "s")
    assert seeded_store.get_by_id(c).rating == before

    clock.advance(60)
    h.submit_vote(c, a, "ip", "s")
    assert seeded_store.get_by_id(c).rating > before


def test_next_pair(handler):
    a, b = handler.next_pair()
    assert a.id != b.id


def test_custom_k_factor(seeded_store, limiter, ids):
    h = VoteHandler(seeded_store, limiter, k_factor=10)
    result = h.submit_vote(ids[0], ids[1], "ip", "s")
    assert result.winner_delta == pytest.approx(5.0)
    assert result.loser_delta == pytest.approx(-5.0)


def test_oversized_id_rejected_before_rate_limit(seeded_store, clock, ids):
    lim = DualRateLimiter(
        SlidingWindowLimiter(1, clock=clock, rng=lambda: 1.0),
        SlidingWindowLimiter(1, clock=clock, rng=lambda: 1.0),
    )
    h = VoteHandler(seeded_store, lim)
    with pytest.raises(InvalidInput):
        h.submit_vote(ids[0], "99999999999999999999", "ip", "s")
    h.submit_vote(ids[0], ids[1], "ip", "s")
