"""Domain models for the engagement engine.

All models use Pydantic v2 for validation and serialization. Identifiers are
``NewType`` wrappers over ``str`` so a sighting id cannot be passed where a
user id is expected without a type checker noticing.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal, NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.domain.flair_constants import (
    FLAIR_COLOR_PATTERN,
    MAX_FLAIR_LABEL_LENGTH,
    MAX_SCORE_MODIFIER,
    MIN_SCORE_MODIFIER,
)
from src.domain.validation_constants import (
    MAX_CATEGORY_IDS,
    MAX_SIGNAL_DESCRIPTION_LENGTH,
    MAX_SIGNAL_NAME_LENGTH,
    MAX_TAGS,
    MAX_TRIGGERS,
    MAX_TYPE_IDS,
    MIN_POLYGON_POINTS,
)

SightingId = NewType("SightingId", str)
SightingTypeId = NewType("SightingTypeId", str)
CategoryId = NewType("CategoryId", str)
UserId = NewType("UserId", str)
ReputationEventId = NewType("ReputationEventId", str)
SignalId = NewType("SignalId", str)
GeofenceId = NewType("GeofenceId", str)
FlairId = NewType("FlairId", str)
FlairSuggestionId = NewType("FlairSuggestionId", str)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class SightingImportance(str, Enum):
    """Reporter-declared importance of a sighting."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class SightingStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class SightingVisibility(str, Enum):
    """How a sighting should be shown in feeds."""

    VISIBLE = "visible"
    LOW_QUALITY = "low_quality"
    HIDDEN = "hidden"


class ReactionType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"
    CONFIRMED = "confirmed"
    DISPUTED = "disputed"
    SPAM = "spam"


class ReputationReason(str, Enum):
    """Why a reputation event was recorded."""

    SIGHTING_CREATED = "sighting_created"
    SIGHTING_UPVOTED = "sighting_upvoted"
    SIGHTING_CONFIRMED = "sighting_confirmed"
    SIGHTING_DISPUTED = "sighting_disputed"
    SIGNAL_CREATED = "signal_created"
    SIGNAL_SUBSCRIBED = "signal_subscribed"
    SIGNAL_VERIFIED = "signal_verified"
    REPORT_UPHELD = "report_upheld"


class ReputationTier(str, Enum):
    """Coarse trust classification derived from reputation score."""

    UNVERIFIED = "unverified"
    NEW = "new"
    TRUSTED = "trusted"
    VERIFIED = "verified"


class TriggerType(str, Enum):
    """Sighting events a signal can subscribe to."""

    NEW_SIGHTING = "new_sighting"
    SIGHTING_CONFIRMED = "sighting_confirmed"
    SIGHTING_DISPUTED = "sighting_disputed"
    SCORE_THRESHOLD = "score_threshold"


class ConditionOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class FlairType(str, Enum):
    STATUS = "status"
    SAFETY = "safety"
    URGENCY = "urgency"
    RESOLUTION = "resolution"
    COMMUNITY = "community"


class VisibilityImpact(str, Enum):
    BOOST = "boost"
    NEUTRAL = "neutral"
    SUPPRESS = "suppress"
    HIDE = "hide"


class AssignmentMethod(str, Enum):
    """How a flair ended up on a sighting."""

    MANUAL = "manual"
    MODERATOR = "moderator"
    AUTO = "auto"
    CONSENSUS = "consensus"


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"


# === Sightings and reactions ===


class ReactionCounts(BaseModel):
    """Aggregate reaction counters for one sighting."""

    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    confirmations: int = Field(default=0, ge=0)
    disputes: int = Field(default=0, ge=0)
    spam_reports: int = Field(default=0, ge=0)


class Sighting(BaseModel):
    """An observed event report with its engagement counters.

    Counters, ``score`` and ``hot_score`` are only written by the score
    recalculation path and always together.
    """

    id: SightingId = Field(..., description="Sighting identifier")
    category_id: CategoryId = Field(..., description="Taxonomy category")
    type_id: SightingTypeId = Field(..., description="Taxonomy sighting type")
    importance: SightingImportance = Field(default=SightingImportance.NORMAL)
    status: SightingStatus = Field(default=SightingStatus.ACTIVE)
    reporter_id: UserId | None = Field(default=None, description="Reporting user")
    tags: list[str] = Field(default_factory=list, description="Matchable tags")
    created_at: datetime = Field(default_factory=utc_now)
    observed_at: datetime = Field(default_factory=utc_now)
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    confirmations: int = Field(default=0, ge=0)
    disputes: int = Field(default=0, ge=0)
    spam_reports: int = Field(default=0, ge=0)
    score: int = Field(default=0, description="Base engagement score")
    hot_score: float = Field(default=0.0, description="Time-decayed ranking score")

    @property
    def counts(self) -> ReactionCounts:
        """Current counters as a ``ReactionCounts`` value."""
        return ReactionCounts(
            upvotes=self.upvotes,
            downvotes=self.downvotes,
            confirmations=self.confirmations,
            disputes=self.disputes,
            spam_reports=self.spam_reports,
        )


class SightingReaction(BaseModel):
    """One user's reaction of one type on one sighting."""

    model_config = ConfigDict(frozen=True)

    sighting_id: SightingId
    user_id: UserId
    type: ReactionType
    created_at: datetime = Field(default_factory=utc_now)


# === Reputation ===


class UserReputation(BaseModel):
    """Current reputation of one user (clamped running sum of events)."""

    user_id: UserId
    score: int = Field(default=0, ge=0)
    is_verified: bool = Field(
        default=False, description="Admin-vetted flag; overrides score-based tier"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ReputationEvent(BaseModel):
    """Immutable, append-only reputation change."""

    model_config = ConfigDict(frozen=True)

    id: ReputationEventId
    user_id: UserId
    reason: ReputationReason
    amount: int
    reference_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class UserReputationSummary(BaseModel):
    """Reputation with derived tier and recent events."""

    reputation: UserReputation
    tier: ReputationTier
    events: list[ReputationEvent] = Field(default_factory=list)


# === Signals ===


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class GeofenceTarget(BaseModel):
    kind: Literal["geofence"] = "geofence"
    geofence_id: GeofenceId

    @field_validator("geofence_id")
    @classmethod
    def _geofence_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Geofence ID is required when target kind is geofence.")
        return value


class PolygonTarget(BaseModel):
    kind: Literal["polygon"] = "polygon"
    points: list[LatLng] = Field(..., min_length=MIN_POLYGON_POINTS)


class GlobalTarget(BaseModel):
    kind: Literal["global"] = "global"


SignalTarget = Annotated[
    GeofenceTarget | PolygonTarget | GlobalTarget, Field(discriminator="kind")
]
"""Geographic scope of a signal. Carried through the engine, never evaluated by it."""


class SignalConditions(BaseModel):
    """Declarative filter evaluated against a sighting.

    Every field is optional; ``None`` and empty lists leave the dimension
    unconstrained.
    """

    category_ids: list[str] | None = Field(default=None, max_length=MAX_CATEGORY_IDS)
    type_ids: list[str] | None = Field(default=None, max_length=MAX_TYPE_IDS)
    tags: list[str] | None = Field(default=None, max_length=MAX_TAGS)
    importance: list[SightingImportance] | None = None
    min_trust_level: ReputationTier | None = None
    min_score: float | None = None
    max_score: float | None = None
    operator: ConditionOperator = ConditionOperator.AND

    @model_validator(mode="after")
    def _check_score_range(self) -> "SignalConditions":
        if (
            self.min_score is not None
            and self.max_score is not None
            and self.min_score > self.max_score
        ):
            raise ValueError("Minimum score cannot be greater than maximum score.")
        return self


class Signal(BaseModel):
    """A saved rule: target area, trigger types and conditions."""

    id: SignalId
    name: str = Field(..., max_length=MAX_SIGNAL_NAME_LENGTH)
    description: str | None = Field(
        default=None, max_length=MAX_SIGNAL_DESCRIPTION_LENGTH
    )
    owner_id: UserId
    target: SignalTarget = Field(default_factory=GlobalTarget)
    triggers: list[TriggerType] = Field(..., min_length=1, max_length=MAX_TRIGGERS)
    conditions: SignalConditions = Field(default_factory=SignalConditions)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name", "owner_id")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("triggers")
    @classmethod
    def _unique_triggers(cls, value: list[TriggerType]) -> list[TriggerType]:
        if len(set(value)) != len(value):
            raise ValueError("Duplicate triggers are not allowed.")
        return value


class SightingMatchData(BaseModel):
    """The attributes of a sighting that signal conditions can see."""

    category_id: str
    type_id: str
    tags: list[str] = Field(default_factory=list)
    importance: SightingImportance = SightingImportance.NORMAL
    score: float = 0
    reporter_trust_level: ReputationTier = ReputationTier.UNVERIFIED


class SignalEvaluation(BaseModel):
    """Outcome of evaluating one signal, with the reason for debugging."""

    signal_id: SignalId
    matched: bool
    reason: str


# === Flairs ===


class AutoAssignConditions(BaseModel):
    """Bounds that make the engine attach a flair by itself."""

    min_score: float | None = None
    max_score: float | None = None
    min_age: float | None = Field(
        default=None, ge=0, description="Hours since observed_at"
    )
    max_age: float | None = Field(
        default=None, ge=0, description="Hours since observed_at"
    )
    min_engagement: int | None = Field(default=None, ge=0)
    spam_report_threshold: int | None = Field(default=None, ge=1)

    def is_empty(self) -> bool:
        """True when no bound is populated."""
        return all(value is None for value in self.model_dump().values())


class Flair(BaseModel):
    """A tag taxonomy entry."""

    id: FlairId
    label: str = Field(..., min_length=1, max_length=MAX_FLAIR_LABEL_LENGTH)
    description: str | None = None
    icon: str | None = None
    color: str
    category_id: CategoryId | None = Field(
        default=None, description="None means the flair applies to every category"
    )
    flair_type: FlairType
    score_modifier: int = Field(default=0, ge=MIN_SCORE_MODIFIER, le=MAX_SCORE_MODIFIER)
    visibility_impact: VisibilityImpact = VisibilityImpact.NEUTRAL
    auto_assign_conditions: AutoAssignConditions | None = None
    display_order: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Flair ID is required")
        return value

    @field_validator("label", "description", "icon", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        if not FLAIR_COLOR_PATTERN.match(value):
            raise ValueError("Flair color must be a valid hex color (e.g., #ef4444)")
        return value

    @field_validator("auto_assign_conditions")
    @classmethod
    def _reject_empty_rule(
        cls, value: AutoAssignConditions | None
    ) -> AutoAssignConditions | None:
        if value is not None and value.is_empty():
            raise ValueError(
                "auto_assign_conditions needs at least one bound; use None for no rule"
            )
        return value

    @property
    def is_system_wide(self) -> bool:
        return self.category_id is None


class SightingFlair(BaseModel):
    """A flair attached to a sighting."""

    sighting_id: SightingId
    flair_id: FlairId
    assigned_by: UserId | None = None
    assigned_at: datetime = Field(default_factory=utc_now)
    assignment_method: AssignmentMethod
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _require_assigner(self) -> "SightingFlair":
        human_methods = {AssignmentMethod.MANUAL, AssignmentMethod.MODERATOR}
        if self.assignment_method in human_methods and not self.assigned_by:
            raise ValueError(
                f"assigned_by is required for {self.assignment_method.value} assignment"
            )
        return self


class FlairSuggestion(BaseModel):
    """A pending community proposal to attach a flair."""

    id: FlairSuggestionId
    sighting_id: SightingId
    flair_id: FlairId
    suggested_by: UserId
    suggested_at: datetime = Field(default_factory=utc_now)
    vote_count: int = Field(default=0, ge=0)
    status: SuggestionStatus = SuggestionStatus.PENDING


class SuggestionOutcome(BaseModel):
    """Result of suggesting a flair."""

    suggestion_id: FlairSuggestionId
    auto_applied: bool


class VoteOutcome(BaseModel):
    """Result of voting on a suggestion."""

    applied: bool
    vote_count: int


class AutoAssignResult(BaseModel):
    """Result of a batch auto-assign run."""

    assigned_count: int = 0
    processed_sightings: int = 0
