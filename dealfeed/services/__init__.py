"""Services module for scoring and normalization.

Services here are stateless apart from configuration and are shared by
every adapter and search.
"""

from dealfeed.services.deal_scoring import DEFAULT_WEIGHTS, DealScorer, ScoringWeights
from dealfeed.services.normalization_service import ListingNormalizer

__all__ = [
    "DEFAULT_WEIGHTS",
    "DealScorer",
    "ScoringWeights",
    "ListingNormalizer",
]
