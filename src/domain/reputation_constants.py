"""Reputation amounts and tier thresholds."""

from typing import Final

from src.domain.models import ReputationReason, ReputationTier

REPUTATION_AMOUNTS: Final[dict[ReputationReason, int]] = {
    ReputationReason.SIGHTING_CREATED: 1,
    ReputationReason.SIGHTING_UPVOTED: 1,
    ReputationReason.SIGHTING_CONFIRMED: 2,
    ReputationReason.SIGHTING_DISPUTED: -1,
    ReputationReason.SIGNAL_CREATED: 5,
    ReputationReason.SIGNAL_SUBSCRIBED: 2,
    ReputationReason.SIGNAL_VERIFIED: 50,
    ReputationReason.REPORT_UPHELD: -10,
}
"""Signed amount applied for each reason. Scores are floored at MIN_REPUTATION_SCORE."""

MIN_REPUTATION_SCORE: Final[int] = 0

TRUSTED_TIER_MIN_SCORE: Final[int] = 50
NEW_TIER_MIN_SCORE: Final[int] = 10

TIER_ORDER: Final[dict[ReputationTier, int]] = {
    ReputationTier.UNVERIFIED: 0,
    ReputationTier.NEW: 1,
    ReputationTier.TRUSTED: 2,
    ReputationTier.VERIFIED: 3,
}
"""Ordering used for "at least this tier" comparisons."""

TIER_LABELS: Final[dict[ReputationTier, str]] = {
    ReputationTier.VERIFIED: "✓ Verified",
    ReputationTier.TRUSTED: "★ Trusted",
    ReputationTier.NEW: "⭐ New",
    ReputationTier.UNVERIFIED: "Unverified",
}

TIER_DESCRIPTIONS: Final[dict[ReputationTier, str]] = {
    ReputationTier.VERIFIED: "Admin-vetted trusted contributor",
    ReputationTier.TRUSTED: f"High reputation member ({TRUSTED_TIER_MIN_SCORE}+ points)",
    ReputationTier.NEW: (
        f"Establishing reputation ({NEW_TIER_MIN_SCORE}-{TRUSTED_TIER_MIN_SCORE - 1} points)"
    ),
    ReputationTier.UNVERIFIED: f"New member (< {NEW_TIER_MIN_SCORE} points)",
}
