"""
Risk scoring matrix.

Probability and impact are 5-level ordinal ratings; the score is the product
of their weights (1–25). Unknown ratings weigh 3 (MEDIUM) instead of failing,
since risk data is often imported from less curated sources.

    score_risk("HIGH", "HIGH")          → RiskScore(score=16, band="HIGH")
    score_risk("VERY_HIGH", "CRITICAL") → RiskScore(score=25, band="CRITICAL")
"""

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

PROBABILITY_WEIGHTS = {
    "VERY_LOW": 1,
    "LOW": 2,
    "MEDIUM": 3,
    "HIGH": 4,
    "VERY_HIGH": 5,
}

IMPACT_WEIGHTS = {
    "VERY_LOW": 1,
    "LOW": 2,
    "MEDIUM": 3,
    "HIGH": 4,
    "CRITICAL": 5,
}

DEFAULT_WEIGHT = 3

# (minimum score, band) in descending order
BAND_THRESHOLDS = (
    (20, "CRITICAL"),
    (12, "HIGH"),
    (6, "MEDIUM"),
)
LOWEST_BAND = "LOW"


class RiskScore(NamedTuple):
    score: int
    band: str

    def to_dict(self) -> dict:
        return {"score": self.score, "band": self.band}


def _weight(table: dict, value, axis: str) -> int:
    key = value.strip().upper() if isinstance(value, str) else value
    weight = table.get(key)
    if weight is None:
        logger.debug("Unmapped %s rating %r — using weight %d", axis, value, DEFAULT_WEIGHT)
        return DEFAULT_WEIGHT
    return weight


def probability_weight(probability) -> int:
    return _weight(PROBABILITY_WEIGHTS, probability, "probability")


def impact_weight(impact) -> int:
    return _weight(IMPACT_WEIGHTS, impact, "impact")


def risk_band(score: int) -> str:
    """Classify a 1–25 score: CRITICAL ≥ 20, HIGH ≥ 12, MEDIUM ≥ 6, else LOW."""
    for minimum, band in BAND_THRESHOLDS:
        if score >= minimum:
            return band
    return LOWEST_BAND


def score_risk(probability, impact) -> RiskScore:
    """Score a probability / impact pair."""
    score = probability_weight(probability) * impact_weight(impact)
    return RiskScore(score, risk_band(score))
