"""Validation limits for signals and their condition sets."""

from typing import Final

# Signal metadata
MAX_SIGNAL_NAME_LENGTH: Final[int] = 100
MAX_SIGNAL_DESCRIPTION_LENGTH: Final[int] = 500
MAX_TRIGGERS: Final[int] = 10

# Condition set sizes
MAX_CATEGORY_IDS: Final[int] = 20
MAX_TYPE_IDS: Final[int] = 50
MAX_TAGS: Final[int] = 30

# Polygon targets
MIN_POLYGON_POINTS: Final[int] = 3
