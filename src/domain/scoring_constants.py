"""Scoring weights and decay parameters for sighting ranking.

The base score is a weighted sum of reaction counts; the hot score divides
the base score by a gravity-style age penalty. Changing any value here
changes every persisted score on the next reaction, so treat them as
versioned policy.
"""

from typing import Final

# Reaction weights
UPVOTE_WEIGHT: Final[int] = 1
"""Contribution of each upvote to the base score."""

DOWNVOTE_WEIGHT: Final[int] = -1
"""Contribution of each downvote to the base score."""

CONFIRMATION_WEIGHT: Final[int] = 2
"""Contribution of each confirmation to the base score.

Business rule: confirming a sighting ("I saw it too") is stronger evidence
than a plain upvote, so it counts double.
"""

DISPUTE_WEIGHT: Final[int] = -2
"""Contribution of each dispute to the base score (mirror of confirmations)."""

SPAM_REPORT_WEIGHT: Final[int] = 0
"""Spam reports do not move the score.

Business rule: spam handling goes through visibility (see
SPAM_HIDE_THRESHOLD) and spam flair auto-assignment. Letting a handful of
reports sink the score would make brigading trivial.
"""

# Hot score decay
HOT_SCORE_GRAVITY: Final[float] = 1.5
"""Exponent of the age penalty. Higher values push old sightings down faster."""

HOT_SCORE_AGE_OFFSET_HOURS: Final[float] = 2.0
"""Hours added to the age before applying gravity.

Keeps the denominator >= 2**1.5 so brand-new sightings do not get an
unbounded boost.
"""

# Visibility
SPAM_HIDE_THRESHOLD: Final[int] = 3
"""Spam reports at which a sighting is hidden pending review."""

HIDDEN_SCORE_THRESHOLD: Final[int] = -5
"""Base score at or below which a sighting is hidden."""

LOW_QUALITY_SCORE_THRESHOLD: Final[int] = 0
"""Base score below which a sighting is flagged as low quality."""

SECONDS_PER_HOUR: Final[float] = 3600.0
