# image_arena/sampler.py
from __future__ import annotations

import logging
import random

from image_arena import config
from image_arena.db import Image, ImageStore
from image_arena.errors import InsufficientData

log = logging.getLogger("image-arena.sampler")


class PairSampler:
    """Picks two distinct images by random offsets into the id-ordered table.

    Offsets are resolved one row at a time, so the table is never scanned in
    full. Rows inserted or deleted while a pair is being drawn can skew the
    distribution slightly; that is accepted.
    """

    def __init__(self, store: ImageStore, rng: random.Random | None = None,
                 max_redraws: int = config.SAMPLER_MAX_REDRAWS):
        self.store = store
        self.rng = rng or random.Random()
        self.max_redraws = max(0, int(max_redraws))

    def sample_pair(self) -> tuple[Image, Image]:
        total = self.store.count()
        if total < 2:
            raise InsufficientData()

        off_a = self.rng.randrange(total)
        off_b = self.rng.randrange(total)
        redraws = 0
        while off_b == off_a and redraws < self.max_redraws:
            off_b = self.rng.randrange(total)
            redraws += 1

        first = self.store.sample(off_a) or self.store.sample(0)
        if first is None:
            raise InsufficientData()

        second = None
        if off_b != off_a:
            second = self.store.sample(off_b)
        if second is None or second.id == first.id:
            log.debug("pair fallback scan offset_a=%s offset_b=%s total=%s", off_a, off_b, total)
            second = self.store.first_other(first.id)
        if second is None:
            raise InsufficientData()

        return first, second
