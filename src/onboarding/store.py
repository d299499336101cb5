"""
Onboarding Store.

Owns the single OnboardingState and is the only thing that mutates it. Every
mutation is persisted: synchronous setters save inline, async operations save
on a worker thread so the event loop never blocks on disk I/O.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from onboarding.persistence import StateStorage
from onboarding.screens import (
    ALL_SCREENS,
    INTRO_COUNT,
    TOTAL_STEPS,
    Screen,
    phase_for_screen,
    screen_at,
    total_questions,
)
from onboarding.state import (
    IntakeField,
    OnboardingPhase,
    OnboardingState,
    previous_phase,
    utc_now,
)
from trainer.api import APIError, TrainerAPIClient
from trainer.stores.goals import GoalContractStore

logger = logging.getLogger(__name__)

NOTIFICATION_REMINDER_AFTER = timedelta(days=3)


class NavigationDirection(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class ResumeSummary:
    """What the "welcome back" gate shows."""
    questions_answered: int
    total_questions: int
    section_label: str | None
    user_name: str | None


class OnboardingStore:
    """
    Onboarding state machine over a persisted OnboardingState.

    Args:
        state: State to start from (normally from StateStorage.restore)
        storage: Where every change is written
        api: Backend client for the intake sync (built lazily when omitted)
        goal_store: Receives the goal options generated after sign-in
    """

    def __init__(
        self,
        state: OnboardingState,
        storage: StateStorage,
        api: TrainerAPIClient | None = None,
        goal_store: GoalContractStore | None = None,
    ):
        self.state = state
        self.storage = storage
        self._api = api
        self._goal_store = goal_store
        self._owns_api = False
        self._owns_goal_store = False

        self.is_loading = False
        self.error_message: str | None = None
        self.is_goal_loading = False
        self.navigation_direction = NavigationDirection.FORWARD
        self.needs_resume_gate = state.has_started_onboarding and not self.is_onboarding_complete

        self.background_tasks: set[asyncio.Task] = set()

        self._write_lock = threading.Lock()
        self._save_seq = 0
        self._written_seq = 0

    @classmethod
    def open(
        cls,
        storage: StateStorage | None = None,
        api: TrainerAPIClient | None = None,
        goal_store: GoalContractStore | None = None,
    ) -> "OnboardingStore":
        """Load saved state (version-gated) and decide whether to show the resume gate."""
        storage = storage or StateStorage()
        return cls(storage.restore(), storage, api=api, goal_store=goal_store)

    @property
    def api(self) -> TrainerAPIClient:
        if self._api is None:
            self._api = TrainerAPIClient()
            self._owns_api = True
        return self._api

    @property
    def goal_store(self) -> GoalContractStore:
        if self._goal_store is None:
            self._goal_store = GoalContractStore(self.api)
            self._owns_goal_store = True
        return self._goal_store

    async def aclose(self) -> None:
        """
        Wait for background work, then close what this store built.

        Injected clients and stores are left to their owners.
        """
        if self.background_tasks:
            await asyncio.gather(*self.background_tasks, return_exceptions=True)
        if self._owns_goal_store and self._goal_store is not None:
            await self._goal_store.aclose()
            self._goal_store = None
            self._owns_goal_store = False
        if self._owns_api and self._api is not None:
            await self._api.aclose()
            self._api = None
            self._owns_api = False

    # =========================================================================
    # Persistence
    # =========================================================================

    def _snapshot(self) -> tuple[int, dict]:
        """Stamp and serialize the state on the calling (loop) thread."""
        self.state.updated_at = utc_now()
        self._save_seq += 1
        return self._save_seq, self.state.to_dict()

    def _write(self, seq: int, data: dict) -> None:
        # A snapshot older than the last one on disk must never overwrite it
        with self._write_lock:
            if seq <= self._written_seq:
                logger.debug(f"Skipping stale onboarding snapshot #{seq}")
                return
            self.storage.write(data)
            self._written_seq = seq

    def save(self) -> None:
        self._write(*self._snapshot())

    async def _persist(self) -> None:
        seq, data = self._snapshot()
        await asyncio.to_thread(self._write, seq, data)

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def is_onboarding_complete(self) -> bool:
        return self.state.current_phase == OnboardingPhase.COMPLETE

    @property
    def is_in_intro(self) -> bool:
        return self.state.current_step < INTRO_COUNT

    @property
    def is_in_intake(self) -> bool:
        return self.state.current_phase == OnboardingPhase.INTAKE

    @property
    def current_screen(self) -> Screen:
        return screen_at(self.state.current_step)

    @property
    def total_steps(self) -> int:
        return TOTAL_STEPS

    def should_show_notification_reminder(self, now: datetime | None = None) -> bool:
        """Notifications are off and were skipped at least three days ago."""
        if self.state.notifications_enabled:
            return False
        skipped_at = self.state.notifications_skipped_at
        if skipped_at is None:
            return False
        return (now or utc_now()) - skipped_at >= NOTIFICATION_REMINDER_AFTER

    def resume_summary(self) -> ResumeSummary:
        section = self.current_screen.section
        name = self.state.user_name
        return ResumeSummary(
            questions_answered=max(0, self.state.current_step - INTRO_COUNT),
            total_questions=total_questions(),
            section_label=section.value if section else None,
            user_name=name or None,
        )

    # =========================================================================
    # Launch / resume
    # =========================================================================

    def resume(self) -> None:
        """Keep the loaded state and continue where the user left off."""
        self.needs_resume_gate = False

    def start_over(self) -> None:
        """Discard all progress, including backend ids."""
        self.state = OnboardingState.initial()
        self.save()
        self.needs_resume_gate = False
        logger.info("Onboarding restarted")

    def reset(self) -> None:
        self.start_over()

    def begin(self) -> None:
        self.state.has_started_onboarding = True
        self.save()

    # =========================================================================
    # Step navigation (intro + intake)
    # =========================================================================

    async def go_to_next_step(self) -> None:
        self.navigation_direction = NavigationDirection.FORWARD
        next_step = self.state.current_step + 1
        if next_step >= len(ALL_SCREENS):
            return
        self._move_to_step(next_step)
        await self._persist()

    async def advance_step(self) -> None:
        await self.go_to_next_step()

    async def go_to_previous_step(self) -> None:
        self.navigation_direction = NavigationDirection.BACKWARD
        if self.state.current_step <= 0:
            return
        self._move_to_step(self.state.current_step - 1)
        await self._persist()

    def _move_to_step(self, step: int) -> None:
        self.state.has_started_onboarding = True
        self.state.current_step = step
        self.state.current_phase = phase_for_screen(ALL_SCREENS[step])

    # =========================================================================
    # Phase navigation (after intake)
    # =========================================================================

    async def go_to_previous_phase(self) -> None:
        self.navigation_direction = NavigationDirection.BACKWARD
        phase = previous_phase(self.state.current_phase)
        if phase is None:
            return
        self.state.current_phase = phase
        await self._persist()

    async def set_phase(self, phase: OnboardingPhase) -> None:
        self.state.current_phase = phase
        await self._persist()

    async def complete_intake(self) -> None:
        self.navigation_direction = NavigationDirection.FORWARD
        self.state.current_phase = OnboardingPhase.AUTH
        await self._persist()

    async def complete_auth(self) -> None:
        """
        Called once the OTP is verified.

        Uploads the locally collected intake, starts goal option generation
        in the background, and moves on to goal review.
        """
        self.navigation_direction = NavigationDirection.FORWARD

        await self.sync_intake_to_backend()

        task = asyncio.create_task(self._generate_goal_options())
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)

        self.state.current_phase = OnboardingPhase.GOAL_REVIEW
        await self._persist()

    async def sync_intake_to_backend(self) -> None:
        self.is_loading = True
        self.error_message = None
        try:
            response = await self.api.submit_structured_intake(self.state.intake_data.to_payload())
            self.state.intake_id = response.intake_id
            logger.info(f"Intake synced: {response.intake_id}")
        except APIError as e:
            logger.warning(f"Intake sync failed: {e}")
            self.error_message = str(e)
        finally:
            self.is_loading = False

    async def _generate_goal_options(self) -> None:
        self.is_goal_loading = True
        try:
            await self.goal_store.fetch_options()
        finally:
            self.is_goal_loading = False

    async def approve_goals(self) -> None:
        self.navigation_direction = NavigationDirection.FORWARD
        self.state.current_phase = OnboardingPhase.PROGRAM_REVIEW
        await self._persist()

    async def activate_program(self) -> None:
        self.navigation_direction = NavigationDirection.FORWARD
        self.state.current_phase = OnboardingPhase.NOTIFICATION_PERMISSION
        await self._persist()

    async def complete_onboarding(self) -> None:
        self.navigation_direction = NavigationDirection.FORWARD
        self.state.current_phase = OnboardingPhase.COMPLETE
        await self._persist()

    # =========================================================================
    # Intake answers
    # =========================================================================

    def set_intake_field(self, intake_field: IntakeField | str, value: Any) -> None:
        self.state.intake_data.set(intake_field, value)
        self.save()

    def set_birthday(self, birthday: date) -> None:
        self.set_intake_field(IntakeField.BIRTHDAY, birthday)

    def set_height(self, inches: int) -> None:
        self.set_intake_field(IntakeField.HEIGHT_INCHES, inches)

    def set_weight(self, lbs: float) -> None:
        self.set_intake_field(IntakeField.WEIGHT_LBS, lbs)

    def set_editing_intake(self, editing: bool) -> None:
        self.state.is_editing_intake = editing
        self.save()

    # =========================================================================
    # Auth sub-state
    # =========================================================================

    def set_pending_email(self, email: str) -> None:
        self.state.pending_email = email
        self.save()

    def clear_pending_email(self) -> None:
        self.state.pending_email = None
        self.save()

    def accept_terms(self) -> None:
        self.state.agreed_to_terms_at = utc_now()
        self.save()

    # =========================================================================
    # Permissions
    # =========================================================================

    async def set_notification_permission(self, granted: bool) -> None:
        self.state.notifications_enabled = granted
        if not granted:
            self.state.notifications_skipped_at = utc_now()
        await self._persist()

    async def skip_notifications(self) -> None:
        self.state.notifications_enabled = False
        self.state.notifications_skipped_at = utc_now()
        await self._persist()

    async def set_microphone_permission(self, granted: bool) -> None:
        self.state.microphone_enabled = granted
        await self._persist()

    # =========================================================================
    # Backend ids
    # =========================================================================

    def set_goal_contract_id(self, goal_contract_id: str) -> None:
        self.state.goal_contract_id = goal_contract_id
        self.save()

    def set_program_id(self, program_id: str) -> None:
        self.state.program_id = program_id
        self.save()
