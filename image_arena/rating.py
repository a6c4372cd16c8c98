# image_arena/rating.py
# Elo rating for pairwise image votes

from image_arena.config import ELO_K_FACTOR


def expected_score(r_a: float, r_b: float) -> float:
    return 1 / (1 + 10 ** ((r_b - r_a) / 400))


def update_elo(winner: float, loser: float, k: float = ELO_K_FACTOR) -> tuple[float, float]:
    """
    Returns (new_winner, new_loser).

    A vote has no draw outcome, so the winner always scores 1.0 and the
    loser 0.0. Neither rating is allowed below zero.
    """
    e_w = expected_score(winner, loser)
    e_l = 1 - e_w

    new_w = max(0.0, winner + k * (1 - e_w))
    new_l = max(0.0, loser + k * (0 - e_l))

    return new_w, new_l
