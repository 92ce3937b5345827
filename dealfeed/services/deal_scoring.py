"""Source-agnostic deal scoring.

Every adapter's listings are scored here with the same heuristics, so a deal
potential of 80 from an auction API means the same thing as 80 from a scraped
fixed-price marketplace. Each function is pure and deterministic; the tuning
constants live in ``ScoringWeights`` and can be replaced as a whole.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple, Union

from dealfeed.schemas.listing import CompetitionLevel, ListingScore

Number = Union[Decimal, int, float]

SCORE_MIN = 0
SCORE_MAX = 100

ONE_HOUR = 60 * 60
ONE_DAY = 24 * ONE_HOUR


@dataclass(frozen=True)
class ScoringWeights:
    """Tuning constants for the scoring heuristics.

    Tier tuples are ``(upper_bound_exclusive, bonus)`` pairs checked in order;
    the first matching tier wins.
    """

    deal_base: int = 50
    price_tiers: Tuple[Tuple[int, int], ...] = ((50, 20), (100, 15), (500, 10))
    urgency_tiers: Tuple[Tuple[int, int], ...] = ((ONE_HOUR, 15), (ONE_DAY, 10))
    # bid tiers use the same shape: 0 bids -> (1, 15), 1-2 bids -> (3, 10)
    bid_tiers: Tuple[Tuple[int, int], ...] = ((1, 15), (3, 10))

    trending_base: int = 30
    trending_per_bid: int = 5
    trending_bid_cap: int = 40
    recency_tiers: Tuple[Tuple[int, int], ...] = ((ONE_HOUR, 20), (ONE_DAY, 10))

    medium_competition_min_bids: int = 1
    high_competition_min_bids: int = 5


DEFAULT_WEIGHTS = ScoringWeights()


def clamp_score(value: Number) -> int:
    """Clamp a raw score into [0, 100] and round it to an int."""
    return int(max(SCORE_MIN, min(SCORE_MAX, round(value))))


def _tier_bonus(value: Number, tiers: Tuple[Tuple[int, int], ...]) -> int:
    for upper, bonus in tiers:
        if value < upper:
            return bonus
    return 0


def deal_potential(
    price: Number,
    time_remaining_seconds: int,
    bid_count: int,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Estimate how favorable a price/timing/competition combination is.

    Cheap items, items ending soon and items with few bids score higher.

    Args:
        price: Current price in USD
        time_remaining_seconds: Normalized countdown
        bid_count: Number of bids (0 for fixed-price sources)
        weights: Tuning constants

    Returns:
        Integer score in [0, 100]
    """
    score = weights.deal_base
    score += _tier_bonus(price, weights.price_tiers)
    score += _tier_bonus(time_remaining_seconds, weights.urgency_tiers)
    score += _tier_bonus(bid_count, weights.bid_tiers)
    return clamp_score(score)


def competition_level(
    bid_count: int, weights: ScoringWeights = DEFAULT_WEIGHTS
) -> CompetitionLevel:
    """Bucket a bid count: 0 low, 1-4 medium, 5+ high."""
    if bid_count >= weights.high_competition_min_bids:
        return CompetitionLevel.HIGH
    if bid_count >= weights.medium_competition_min_bids:
        return CompetitionLevel.MEDIUM
    return CompetitionLevel.LOW


def trending_score(
    time_remaining_seconds: int,
    bid_count: int,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Estimate current attention on a listing from bids and recency.

    Returns:
        Integer score in [0, 100]
    """
    score = weights.trending_base
    score += min(weights.trending_bid_cap, max(0, bid_count) * weights.trending_per_bid)
    score += _tier_bonus(time_remaining_seconds, weights.recency_tiers)
    return clamp_score(score)


class DealScorer:
    """Bundles the three metrics behind one set of weights."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights

    def score(
        self, price: Number, time_remaining_seconds: int, bid_count: int
    ) -> ListingScore:
        """Compute the full score block for one normalized listing."""
        return ListingScore(
            deal_potential=deal_potential(
                price, time_remaining_seconds, bid_count, self.weights
            ),
            competition_level=competition_level(bid_count, self.weights),
            trending_score=trending_score(time_remaining_seconds, bid_count, self.weights),
        )
