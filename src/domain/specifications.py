"""Specification pattern for signal condition matching.

Specifications encapsulate business rules and conditions that can be:
- Combined with logical operators (AND, OR, NOT)
- Reused across different contexts
- Tested independently
- Documented as business logic

Each populated field of ``SignalConditions`` maps to one specification over
``SightingMatchData``; the condition matcher folds them with the set's
operator.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Generic, TypeVar

from src.domain.models import ReputationTier, SightingImportance, SightingMatchData
from src.domain.reputation_constants import TIER_ORDER

T = TypeVar("T")


class Specification(ABC, Generic[T]):
    """Base specification interface.

    A specification represents a business rule that can be checked
    against a candidate object. Specifications can be combined using
    logical operators to create complex conditions.
    """

    @abstractmethod
    def is_satisfied_by(self, candidate: T) -> bool:
        """Check if candidate satisfies this specification.

        Args:
            candidate: Object to check

        Returns:
            True if candidate satisfies the specification
        """
        pass

    def and_(self, other: "Specification[T]") -> "AllOfSpecification[T]":
        """Combine with AND logic."""
        return AllOfSpecification([self, other])

    def or_(self, other: "Specification[T]") -> "AnyOfSpecification[T]":
        """Combine with OR logic."""
        return AnyOfSpecification([self, other])

    def not_(self) -> "NotSpecification[T]":
        """Negate this specification."""
        return NotSpecification(self)


class AllOfSpecification(Specification[T]):
    """Every specification must be satisfied (vacuously true when empty)."""

    def __init__(self, specs: Iterable[Specification[T]]) -> None:
        self.specs = list(specs)

    def is_satisfied_by(self, candidate: T) -> bool:
        return all(spec.is_satisfied_by(candidate) for spec in self.specs)


class AnyOfSpecification(Specification[T]):
    """At least one specification must be satisfied (false when empty)."""

    def __init__(self, specs: Iterable[Specification[T]]) -> None:
        self.specs = list(specs)

    def is_satisfied_by(self, candidate: T) -> bool:
        return any(spec.is_satisfied_by(candidate) for spec in self.specs)


class NotSpecification(Specification[T]):
    """NOT negation of a specification."""

    def __init__(self, spec: Specification[T]) -> None:
        self.spec = spec

    def is_satisfied_by(self, candidate: T) -> bool:
        """Specification must NOT be satisfied."""
        return not self.spec.is_satisfied_by(candidate)


# Sighting condition specifications


class CategoryInSpec(Specification[SightingMatchData]):
    """Sighting category is one of the listed categories."""

    def __init__(self, category_ids: Iterable[str]) -> None:
        self.category_ids = frozenset(category_ids)

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return candidate.category_id in self.category_ids


class TypeInSpec(Specification[SightingMatchData]):
    """Sighting type is one of the listed types."""

    def __init__(self, type_ids: Iterable[str]) -> None:
        self.type_ids = frozenset(type_ids)

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return candidate.type_id in self.type_ids


class SharesTagSpec(Specification[SightingMatchData]):
    """Sighting carries at least one of the listed tags."""

    def __init__(self, tags: Iterable[str]) -> None:
        self.tags = frozenset(tags)

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return not self.tags.isdisjoint(candidate.tags)


class ImportanceInSpec(Specification[SightingMatchData]):
    def __init__(self, levels: Iterable[SightingImportance]) -> None:
        self.levels = frozenset(levels)

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return candidate.importance in self.levels


class MinTrustLevelSpec(Specification[SightingMatchData]):
    """Reporter's reputation tier is at least the required tier."""

    def __init__(self, required: ReputationTier) -> None:
        self.required = required

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return TIER_ORDER[candidate.reporter_trust_level] >= TIER_ORDER[self.required]


class MinScoreSpec(Specification[SightingMatchData]):
    """Score is at or above the bound."""

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return candidate.score >= self.threshold


class MaxScoreSpec(Specification[SightingMatchData]):
    """Score is at or below the bound."""

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def is_satisfied_by(self, candidate: SightingMatchData) -> bool:
        return candidate.score <= self.threshold
