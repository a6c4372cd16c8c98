# image_arena/voting.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from image_arena import config
from image_arena.db import MAX_ID, Image, ImageStore
from image_arena.errors import InvalidInput, NotFound
from image_arena.rate_limit import DualRateLimiter
from image_arena.rating import update_elo
from image_arena.sampler import PairSampler

log = logging.getLogger("image-arena.votes")


@dataclass(frozen=True)
class VoteResult:
    winner_id: int
    loser_id: int
    winner_before: float
    loser_before: float
    winner_after: float
    loser_after: float

    @property
    def winner_delta(self) -> float:
        return self.winner_after - self.winner_before

    @property
    def loser_delta(self) -> float:
        return self.loser_after - self.loser_before


def parse_id(raw) -> int:
    """Accept a positive integer id, given as int or decimal string, that fits an sqlite INTEGER."""
    if isinstance(raw, bool):
        raise InvalidInput()
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        raise InvalidInput()
    if value <= 0 or value > MAX_ID:
        raise InvalidInput()
    return value


class VoteHandler:
    """Runs one comparison round or one vote against the store.

    Two votes on the same image that run at the same time may both read
    the old rating, and one delta is then lost. Ratings are nudges rather
    than a ledger, so that is tolerated.
    """

    def __init__(
        self,
        store: ImageStore,
        limiter: DualRateLimiter,
        sampler: PairSampler | None = None,
        k_factor: float = config.ELO_K_FACTOR,
    ):
        self.store = store
        self.limiter = limiter
        self.sampler = sampler or PairSampler(store)
        self.k_factor = float(k_factor)

    def next_pair(self) -> tuple[Image, Image]:
        return self.sampler.sample_pair()

    def submit_vote(self, winner_id, loser_id, client_ip: str, session_id: str) -> VoteResult:
        w_id = parse_id(winner_id)
        l_id = parse_id(loser_id)
        if w_id == l_id:
            raise InvalidInput()

        # charged before the write; an aborted vote still counts
        self.limiter.hit(client_ip, session_id)

        winner = self.store.get_by_id(w_id)
        loser = self.store.get_by_id(l_id)
        if winner is None or loser is None:
            log.info("vote for missing image winner_id=%s loser_id=%s", w_id, l_id)
            raise NotFound()

        new_w, new_l = update_elo(winner.rating, loser.rating, k=self.k_factor)
        self.store.apply_update(w_id, new_w, l_id, new_l)

        log.info(
            "vote applied winner_id=%s loser_id=%s winner=%.2f->%.2f loser=%.2f->%.2f",
            w_id, l_id, winner.rating, new_w, loser.rating, new_l,
        )
        return VoteResult(
            winner_id=w_id,
            loser_id=l_id,
            winner_before=winner.rating,
            loser_before=loser.rating,
            winner_after=new_w,
            loser_after=new_l,
        )
