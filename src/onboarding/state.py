"""
Onboarding State Management.

Tracks progress through onboarding phases and accumulates the intake answers
collected before sign-in. State is persisted locally after every change so an
interrupted onboarding can be resumed.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
import json


CURRENT_STATE_VERSION = 2


class OnboardingPhase(Enum):
    """Onboarding flow phases, in order."""
    INTRO = "intro"                                      # Intro screens
    INTAKE = "intake"                                    # Question screens
    INTAKE_COMPLETE = "intake_complete"                  # "All done" screen
    AUTH = "auth"                                        # Email entry
    AUTH_VERIFICATION = "auth_verification"              # OTP code entry
    PROCESS_OVERVIEW = "process_overview"                # What happens next
    GOAL_REVIEW = "goal_review"
    PROGRAM_REVIEW = "program_review"
    NOTIFICATION_PERMISSION = "notification_permission"
    SUCCESS = "success"
    COMPLETE = "complete"                                # Done

    @classmethod
    def parse(cls, value: Any) -> "OnboardingPhase":
        """
        Decode a stored phase.

        Phases from earlier versions of the flow, and anything unrecognised,
        restart at INTRO instead of failing the whole load.
        """
        if isinstance(value, cls):
            return value
        if value in LEGACY_PHASES:
            return cls.INTRO
        try:
            return cls(value)
        except ValueError:
            return cls.INTRO


LEGACY_PHASES = frozenset({
    "welcome",
    "assessment",
    "name_collection",
    "microphone_permission",
    "assessment_prompt",
    "goal_draft",
    "program_draft",
})

PHASE_ORDER = list(OnboardingPhase)

DISPLAY_TITLES = {
    OnboardingPhase.INTRO: "Welcome",
    OnboardingPhase.INTAKE: "Get to Know You",
    OnboardingPhase.INTAKE_COMPLETE: "Ready",
    OnboardingPhase.AUTH: "Sign In",
    OnboardingPhase.AUTH_VERIFICATION: "Verify Email",
    OnboardingPhase.PROCESS_OVERVIEW: "Getting Started",
    OnboardingPhase.GOAL_REVIEW: "Goal Review",
    OnboardingPhase.PROGRAM_REVIEW: "Program Review",
    OnboardingPhase.NOTIFICATION_PERMISSION: "Notifications",
    OnboardingPhase.SUCCESS: "All Set",
    OnboardingPhase.COMPLETE: "Complete",
}

# Back from intro/intake/intake_complete is step navigation, not phase navigation.
# process_overview cannot go back past sign-in.
_PREVIOUS_PHASE = {
    OnboardingPhase.AUTH: OnboardingPhase.INTAKE_COMPLETE,
    OnboardingPhase.AUTH_VERIFICATION: OnboardingPhase.AUTH,
    OnboardingPhase.GOAL_REVIEW: OnboardingPhase.PROCESS_OVERVIEW,
    OnboardingPhase.PROGRAM_REVIEW: OnboardingPhase.GOAL_REVIEW,
    OnboardingPhase.NOTIFICATION_PERMISSION: OnboardingPhase.PROGRAM_REVIEW,
}

_HIDE_BACK_BUTTON = frozenset({
    OnboardingPhase.INTRO,
    OnboardingPhase.INTAKE,
    OnboardingPhase.INTAKE_COMPLETE,
    OnboardingPhase.PROCESS_OVERVIEW,
    OnboardingPhase.NOTIFICATION_PERMISSION,
    OnboardingPhase.SUCCESS,
    OnboardingPhase.COMPLETE,
})

# Phases holding in-progress answers or review input
_CONFIRM_BACK = frozenset({
    OnboardingPhase.INTAKE,
    OnboardingPhase.GOAL_REVIEW,
    OnboardingPhase.PROGRAM_REVIEW,
})


def previous_phase(phase: OnboardingPhase) -> OnboardingPhase | None:
    """Phase that back navigation returns to, or None when back is not a phase change."""
    return _PREVIOUS_PHASE.get(phase)


def next_phase(phase: OnboardingPhase) -> OnboardingPhase | None:
    """Immediate successor along the fixed path."""
    index = PHASE_ORDER.index(phase)
    if index + 1 < len(PHASE_ORDER):
        return PHASE_ORDER[index + 1]
    return None


def requires_back_confirmation(phase: OnboardingPhase) -> bool:
    return phase in _CONFIRM_BACK


def hide_back_button(phase: OnboardingPhase) -> bool:
    return phase in _HIDE_BACK_BUTTON


def display_title(phase: OnboardingPhase) -> str:
    return DISPLAY_TITLES[phase]


# =============================================================================
# Intake data
# =============================================================================


class IntakeField(str, Enum):
    """Intake question fields, in question order."""
    NAME = "name"
    BIRTHDAY = "birthday"
    GENDER = "gender"
    GOALS = "goals"
    TIMELINE = "timeline"
    EXPERIENCE_LEVEL = "experienceLevel"
    FREQUENCY = "frequency"
    CURRENT_ROUTINE = "currentRoutine"
    PAST_ATTEMPTS = "pastAttempts"
    HOBBY_SPORTS = "hobbySports"
    HEIGHT_INCHES = "heightInches"
    WEIGHT_LBS = "weightLbs"
    BODY_COMP = "bodyComp"
    PHYSICAL_BASELINE = "physicalBaseline"
    MOBILITY = "mobility"
    INJURIES = "injuries"
    HEALTH_NUANCES = "healthNuances"
    SUPPLEMENTS = "supplements"
    ACTIVITY_LEVEL = "activityLevel"
    SLEEP = "sleep"
    NUTRITION = "nutrition"
    ENVIRONMENT = "environment"
    MOVEMENT_PREFS = "movementPrefs"
    COACHING_STYLE = "coachingStyle"
    ANYTHING_ELSE = "anythingElse"

    @classmethod
    def parse(cls, value: "IntakeField | str") -> "IntakeField":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown intake field: {value!r}") from None

    @property
    def attr(self) -> str:
        """IntakeData attribute (and backend key) for this field."""
        return _ATTR_NAMES[self]

    @property
    def is_text(self) -> bool:
        return self not in _TYPED_FIELDS


_TYPED_FIELDS = frozenset({IntakeField.BIRTHDAY, IntakeField.HEIGHT_INCHES, IntakeField.WEIGHT_LBS})


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


_ATTR_NAMES = {f: _snake(f.value) for f in IntakeField}


def _coerce(intake_field: IntakeField, value: Any) -> Any:
    """Check a non-None answer against its field's type."""
    kind = type(value).__name__

    if intake_field == IntakeField.BIRTHDAY:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            return date.fromisoformat(value.strip()[:10])
        raise TypeError(f"birthday expects a date or ISO date string, got {kind}")

    # bool is an int subclass but never a measurement
    if intake_field == IntakeField.HEIGHT_INCHES:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise TypeError(f"heightInches expects an int, got {kind}")

    if intake_field == IntakeField.WEIGHT_LBS:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise TypeError(f"weightLbs expects a number, got {kind}")

    if not isinstance(value, str):
        raise TypeError(f"{intake_field.value} expects text, got {kind}")
    return value


@dataclass
class IntakeData:
    """
    Answers collected on the intake screens before sign-in.

    Text answers are free-form strings (voice transcript or typed). Attribute
    names are the backend's snake_case keys.
    """
    # About you
    name: str | None = None
    birthday: date | None = None
    gender: str | None = None

    # Goals
    goals: str | None = None
    timeline: str | None = None

    # Training history
    experience_level: str | None = None
    frequency: str | None = None
    current_routine: str | None = None
    past_attempts: str | None = None
    hobby_sports: str | None = None

    # Body metrics
    height_inches: int | None = None
    weight_lbs: float | None = None
    body_comp: str | None = None

    # Fitness baseline
    physical_baseline: str | None = None
    mobility: str | None = None

    # Health
    injuries: str | None = None
    health_nuances: str | None = None
    supplements: str | None = None

    # Lifestyle
    activity_level: str | None = None
    sleep: str | None = None
    nutrition: str | None = None

    # Equipment
    environment: str | None = None

    # Preferences
    movement_prefs: str | None = None
    coaching_style: str | None = None

    # Almost done
    anything_else: str | None = None

    def get(self, intake_field: IntakeField | str) -> Any:
        return getattr(self, IntakeField.parse(intake_field).attr)

    def set(self, intake_field: IntakeField | str, value: Any) -> None:
        """
        Set one answer.

        Text fields accept str or None. Birthday takes a date or an ISO date
        string, height an int, weight an int or float. Anything else raises
        TypeError (or ValueError for a malformed ISO date) and leaves the
        data unchanged.
        """
        intake_field = IntakeField.parse(intake_field)
        if value is not None:
            value = _coerce(intake_field, value)
        setattr(self, intake_field.attr, value)

    def has_value(self, intake_field: IntakeField | str) -> bool:
        value = self.get(intake_field)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return True

    def to_payload(self) -> dict[str, Any]:
        """Backend submission body: set fields only, birthday as an ISO date."""
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            payload[f.name] = value
        return payload

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.birthday is not None:
            data["birthday"] = self.birthday.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "IntakeData":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if isinstance(values.get("birthday"), str):
            values["birthday"] = date.fromisoformat(values["birthday"][:10])
        if values.get("height_inches") is not None:
            values["height_inches"] = int(values["height_inches"])
        if values.get("weight_lbs") is not None:
            values["weight_lbs"] = float(values["weight_lbs"])
        return cls(**values)


# =============================================================================
# Onboarding state
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


_TIMESTAMP_FIELDS = ("agreed_to_terms_at", "notifications_skipped_at", "updated_at")


@dataclass
class OnboardingState:
    """
    Main onboarding state.

    Persisted as JSON after every change. Backend ids (intake, goal contract,
    program) are only ever cleared by a full reset.
    """
    state_version: int = CURRENT_STATE_VERSION
    current_phase: OnboardingPhase = OnboardingPhase.INTRO
    has_started_onboarding: bool = False

    # Screen index; meaningful during intro/intake only
    current_step: int = 0

    # Answers collected before sign-in
    intake_data: IntakeData = field(default_factory=IntakeData)

    # Auth
    pending_email: str | None = None
    agreed_to_terms_at: datetime | None = None

    # Permissions (None = not asked yet)
    microphone_enabled: bool | None = None
    notifications_enabled: bool | None = None
    notifications_skipped_at: datetime | None = None

    is_editing_intake: bool = False

    # Backend ids
    intake_id: str | None = None
    goal_contract_id: str | None = None
    program_id: str | None = None

    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def initial(cls) -> "OnboardingState":
        return cls()

    @property
    def user_name(self) -> str | None:
        return self.intake_data.name

    def to_dict(self) -> dict:
        """Serialize state to dict for JSON storage."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["current_phase"] = self.current_phase.value
        data["intake_data"] = self.intake_data.to_dict()
        for key in _TIMESTAMP_FIELDS:
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "OnboardingState":
        """
        Deserialize state from dict.

        Unknown keys are ignored; a missing state_version counts as version 0.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        values["state_version"] = int(values.get("state_version", 0))
        values["current_phase"] = OnboardingPhase.parse(values.get("current_phase"))
        values["current_step"] = int(values.get("current_step") or 0)
        intake_data = values.pop("intake_data", None)
        if isinstance(intake_data, dict):
            values["intake_data"] = IntakeData.from_dict(intake_data)
        for key in _TIMESTAMP_FIELDS:
            if key in values:
                values[key] = _parse_timestamp(values[key])
        if values.get("updated_at") is None:
            values.pop("updated_at", None)

        return cls(**values)

    def to_json(self) -> str:
        """Serialize state to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "OnboardingState":
        """Deserialize state from JSON string."""
        return cls.from_dict(json.loads(json_str))


def is_stale(state: OnboardingState) -> bool:
    """
    Whether a loaded state predates the current flow.

    Completed onboardings are never stale: a finished user is never sent
    back through onboarding by a version bump.
    """
    if state.current_phase == OnboardingPhase.COMPLETE:
        return False
    return state.state_version < CURRENT_STATE_VERSION
