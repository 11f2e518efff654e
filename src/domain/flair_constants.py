"""Consensus policy and validation limits for flairs."""

import re
from typing import Final

CONSENSUS_MIN_VOTES: Final[int] = 3
"""Absolute minimum votes before a suggestion can auto-apply."""

CONSENSUS_ENGAGEMENT_RATIO: Final[float] = 0.1
"""Share of a sighting's total engagement required as votes.

Example:
    - engagement 10  -> max(3, ceil(1.0))  = 3 votes
    - engagement 30  -> max(3, ceil(3.0000000000000004)) = 4 votes
    - engagement 45  -> max(3, ceil(4.5))  = 5 votes
    - engagement 200 -> max(3, ceil(20.0)) = 20 votes
"""

SUGGESTION_INITIAL_VOTES: Final[int] = 1
"""The suggester's implicit vote."""

MAX_FLAIR_LABEL_LENGTH: Final[int] = 50
MIN_SCORE_MODIFIER: Final[int] = -10
MAX_SCORE_MODIFIER: Final[int] = 10

FLAIR_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(r"^#[0-9A-Fa-f]{6}$")
"""Flair colors are six-digit hex (e.g. ``#ef4444``)."""
