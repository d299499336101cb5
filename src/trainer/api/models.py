"""
Backend response mirrors.

Typed views of the JSON the trainer backend returns. The backend owns these
resources; the client only renders them and threads their ids through later
calls, so every model here is a snapshot that gets replaced wholesale.
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from trainer.values import int_value, object_value, string_value

from .errors import DecodingError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Mirror(BaseModel):
    """Base for backend mirrors: tolerate new fields, allow field-name population."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =============================================================================
# Goals
# =============================================================================


class WeeklyCommitment(_Mirror):
    sessions_per_week: int
    minutes_per_session: int


class GoalContractDetail(_Mirror):
    primary_goal: str
    secondary_goal: str = ""
    timeline_weeks: int
    metrics: list[str] = Field(default_factory=list)
    weekly_commitment: WeeklyCommitment
    constraints: list[str] = Field(default_factory=list)
    tradeoffs: list[str] = Field(default_factory=list)
    assumptions: list[str] = Field(default_factory=list)


class GoalContract(_Mirror):
    """A drafted/edited/approved goal contract."""

    id: str
    status: str
    version: int
    contract: GoalContractDetail = Field(alias="contract_json")


class GoalOption(_Mirror):
    """One of the goal directions offered before a contract is drafted."""

    id: str
    title: str
    description: str
    primary_goal: str
    secondary_goal: str = ""
    timeline_weeks: int
    sessions_per_week: int
    minutes_per_session: int
    focus_areas: list[str] = Field(default_factory=list)


# =============================================================================
# Programs
# =============================================================================


class TrainingProgram(_Mirror):
    id: str
    status: str
    version: int
    program_markdown: str | None = None


# =============================================================================
# Intake
# =============================================================================


class IntakeSession(_Mirror):
    id: str
    user_id: str | None = None
    status: str = "in_progress"
    current_topic: str | None = None


class IntakeChecklistItem(_Mirror):
    id: str
    label: str
    topic: str
    required: bool = False
    status: str = "unchecked"  # unchecked | checked | skipped
    note: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status != "unchecked"


class IntakeTopicProgress(_Mirror):
    topic: str
    completed: int
    total: int


class IntakeProgress(_Mirror):
    required_done: int
    required_total: int
    topics: list[IntakeTopicProgress] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.required_total > 0 and self.required_done >= self.required_total


class IntakeSessionResponse(_Mirror):
    session: IntakeSession
    checklist: list[IntakeChecklistItem] | None = None
    prompt: str | None = None


class IntakeSummaryResponse(_Mirror):
    # Summary shape is owned by the intake engine and varies by version
    summary: dict[str, Any] | None = None
    version: int | None = None


class StructuredIntakeResponse(_Mirror):
    intake_id: str


# =============================================================================
# Assessment
# =============================================================================


class AssessmentSession(_Mirror):
    id: str
    user_id: str
    status: str
    current_step_id: str | None = None


class AssessmentStep(_Mirror):
    id: str
    title: str
    type: str
    prompt: str
    options: list[str] | None = None


class AssessmentBaseline(_Mirror):
    readiness: str
    strength: str
    mobility: str
    conditioning: str
    pain_flags: str
    confidence: str
    notes: str


# =============================================================================
# Workouts
# =============================================================================


class WorkoutSession(_Mirror):
    id: str
    user_id: str | None = None
    status: str
    coach_mode: str = "quiet"
    started_at: datetime | None = None
    completed_at: datetime | None = None
    metadata: dict[str, Any] | None = None


class WorkoutInstanceMetadata(_Mirror):
    intent: str | None = None
    request_text: str | None = None
    generated_at: str | None = None


class WorkoutInstance(_Mirror):
    title: str
    estimated_duration_min: int | None = None
    focus: list[str] | None = None
    # Exercise shape varies by exercise type (reps, hold, duration, intervals)
    exercises: list[dict[str, Any]] = Field(default_factory=list)
    metadata: WorkoutInstanceMetadata | None = None

    @property
    def exercise_names(self) -> list[str]:
        names = [string_value(object_value(exercise, "exercise_name")) for exercise in self.exercises]
        return [name for name in names if name]

    @property
    def total_sets(self) -> int:
        return sum(int_value(object_value(exercise, "sets")) or 0 for exercise in self.exercises)


class WorkoutSessionDetail(_Mirror):
    session: WorkoutSession
    instance: WorkoutInstance | None = None
    instance_version: int | None = None


class WorkoutActionResult(_Mirror):
    action: str
    instance: WorkoutInstance | None = None
    instance_version: int | None = None
    instance_updated: bool = False


class WorkoutCompletion(_Mirror):
    exercises: int
    total_sets: int


class WorkoutSessionSummary(_Mirror):
    title: str
    completion: WorkoutCompletion
    overall_rpe: int | None = None
    pain_notes: str | None = None
    wins: list[str] = Field(default_factory=list)
    next_session_focus: str = ""


class ExerciseCommandResult(_Mirror):
    exercise_id: str
    payload_version: int
    status: str
    payload_json: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Streaming
# =============================================================================


class StreamEvent(_Mirror):
    """One event from an SSE response."""

    type: str
    data: dict[str, Any] | None = None

    @property
    def text(self) -> str | None:
        if not self.data:
            return None
        value = self.data.get("text")
        return value if isinstance(value, str) else None


def parse_model(model: type[ModelT], data: Any) -> ModelT:
    """Validate a response fragment, reporting schema mismatches as DecodingError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodingError(f"Unexpected {model.__name__} response: {e.error_count()} invalid field(s)") from e
