"""
Workout session store.

Tracks the one in-progress workout: the backend session, the generated
workout instance and its version. The active session id is remembered on
disk so a relaunch can restore the workout in progress.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from trainer.api.errors import APIError, VersionConflictError
from trainer.api.models import (
    ExerciseCommandResult,
    WorkoutInstance,
    WorkoutSession,
    WorkoutSessionSummary,
)
from trainer.storage import read_json, remove_document, write_json_atomic
from trainer.stores.base import BaseStore

logger = logging.getLogger(__name__)


class WorkoutSessionStore(BaseStore):
    """
    Args:
        api: Backend client (built from settings when omitted)
        session_path: Where the active session id is remembered; defaults to
            settings.workout_session_path
    """

    def __init__(self, api=None, session_path: Path | None = None):
        super().__init__(api)
        if session_path is None:
            from trainer.config import settings

            session_path = settings.workout_session_path
        self.session_path = Path(session_path)

        self.active_session: WorkoutSession | None = None
        self.instance: WorkoutInstance | None = None
        self.instance_version: int | None = None
        self.summary: WorkoutSessionSummary | None = None
        self.is_generating: bool = False
        self.is_completing: bool = False

    @property
    def has_active_workout(self) -> bool:
        return self.active_session is not None and self.instance is not None

    # =========================================================================
    # Session id persistence
    # =========================================================================

    def saved_session_id(self) -> str | None:
        data = read_json(self.session_path)
        if data is None:
            return None
        session_id = data.get("session_id")
        return session_id if isinstance(session_id, str) and session_id else None

    def _remember(self, session_id: str) -> None:
        write_json_atomic(self.session_path, {"session_id": session_id})

    def _forget(self) -> None:
        remove_document(self.session_path)

    # =========================================================================
    # Operations
    # =========================================================================

    async def restore(self, session_id: str | None = None) -> bool:
        """
        Reload the remembered in-progress workout.

        Returns True when a workout was restored. A session that is no longer
        in progress, or that the backend cannot return, is forgotten.
        """
        session_id = session_id or await asyncio.to_thread(self.saved_session_id)
        if not session_id:
            return False

        try:
            detail = await self.api.fetch_workout_session(session_id)
        except APIError as e:
            logger.warning(f"Could not restore workout session {session_id}: {e}")
            await asyncio.to_thread(self._forget)
            return False

        if detail.session.status != "in_progress":
            logger.info(f"Workout session {session_id} is {detail.session.status}, not restoring")
            self.active_session = None
            self.instance = None
            self.instance_version = None
            await asyncio.to_thread(self._forget)
            return False

        self.active_session = detail.session
        self.instance = detail.instance
        self.instance_version = detail.instance_version
        return True

    async def start_session(
        self,
        intent: str,
        request_text: str | None = None,
        time_available_min: int | None = None,
        readiness: dict[str, Any] | None = None,
        equipment: list[str] | None = None,
        coach_mode: str | None = None,
    ) -> None:
        """Create a fresh session and generate its workout."""
        request = {
            "intent": intent,
            "request_text": request_text,
            "time_available_min": time_available_min,
            "equipment": equipment,
            "readiness": readiness,
            "coach_mode": coach_mode,
        }
        request = {key: value for key, value in request.items() if value is not None}

        self.is_generating = True
        self.summary = None
        try:
            with self._operation("start workout session"):
                session = await self.api.create_workout_session(force_new=True, coach_mode=coach_mode)
                instance = await self.api.generate_workout_instance(session.id, request)
                self.active_session = session
                self.instance = instance
                self.instance_version = None
                await asyncio.to_thread(self._remember, session.id)
                logger.info(
                    f"Generated workout '{instance.title}': "
                    f"{len(instance.exercise_names)} exercises, {instance.total_sets} sets"
                )
        finally:
            self.is_generating = False

    async def apply_action(self, action_type: str, payload: dict[str, Any] | None = None) -> None:
        if self.active_session is None:
            return
        with self._operation(f"workout action {action_type}", track_loading=False):
            result = await self.api.send_workout_action(self.active_session.id, action_type, payload)
            if result.instance is not None:
                self.instance = result.instance
                self.instance_version = result.instance_version

    async def log_exercise_completion(self, index: int, exercise_name: str, completed_sets: int) -> None:
        await self.apply_action(
            "log_set_result",
            {"index": index, "exercise_name": exercise_name, "completed_sets": completed_sets},
        )

    async def send_exercise_command(
        self,
        exercise_id: str,
        expected_version: int,
        command: dict[str, Any],
    ) -> ExerciseCommandResult | None:
        """
        Apply one versioned command to an exercise.

        A stale expected_version is reported as a failure message; the caller
        decides whether to refetch.
        """
        result = None
        with self._operation("exercise command", track_loading=False):
            try:
                result = await self.api.apply_exercise_command(exercise_id, expected_version, command)
            except VersionConflictError as e:
                logger.info(
                    f"Exercise {exercise_id} command rejected: expected v{expected_version}, "
                    f"server has v{e.current_payload_version}"
                )
                raise
        return result

    async def complete_session(self, reflection: dict[str, Any], log: dict[str, Any]) -> None:
        if self.active_session is None:
            return
        self.is_completing = True
        try:
            with self._operation("complete workout session", track_loading=False):
                self.summary = await self.api.complete_workout_session(self.active_session.id, reflection, log)
                self.active_session = None
                self.instance = None
                self.instance_version = None
                await asyncio.to_thread(self._forget)
        finally:
            self.is_completing = False
