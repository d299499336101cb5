"""
Trainer backend HTTP client.

Thin async wrapper over httpx. Every call is authenticated with the current
Supabase session token, decodes the `{"success": ..., ...}` envelope the
backend uses, and maps every failure onto the APIError hierarchy.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from .errors import (
    APIError,
    AuthenticationRequiredError,
    DecodingError,
    ForbiddenError,
    HTTPStatusError,
    NetworkError,
    ServerReportedError,
    UnauthorizedError,
    VersionConflictError,
)
from .models import (
    AssessmentBaseline,
    AssessmentSession,
    AssessmentStep,
    ExerciseCommandResult,
    GoalContract,
    GoalOption,
    IntakeSessionResponse,
    IntakeSummaryResponse,
    StreamEvent,
    StructuredIntakeResponse,
    TrainingProgram,
    WorkoutActionResult,
    WorkoutInstance,
    WorkoutSession,
    WorkoutSessionDetail,
    WorkoutSessionSummary,
    parse_model,
)
from .sse import aiter_sse_events

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]


def _status_error(status_code: int, body: Any) -> HTTPStatusError:
    message = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        message = body["error"]

    if status_code == 401:
        return UnauthorizedError(message)
    if status_code == 403:
        return ForbiddenError(message)
    if status_code == 409:
        current = body.get("current_payload_version") if isinstance(body, dict) else None
        return VersionConflictError(message, current_payload_version=current)
    return HTTPStatusError(status_code, message)


class TrainerAPIClient:
    """
    Async client for the trainer backend.

    Args:
        base_url: Backend root; defaults to settings.api_base_url
        token_provider: Returns the current access token (None when signed out)
        timeout: Per-request timeout in seconds; defaults to settings
        transport: Optional httpx transport (tests mount a fake backend here)
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: TokenProvider | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if base_url is None or timeout is None:
            from trainer.config import settings

            base_url = base_url or settings.api_base_url
            timeout = timeout if timeout is not None else settings.request_timeout_seconds

        if token_provider is None:
            from trainer.auth import supabase_token_provider

            token_provider = supabase_token_provider

        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TrainerAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            raise AuthenticationRequiredError()
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = self._headers()
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError("The request timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}") from e

        return self._decode(response)

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            if not response.is_success:
                raise _status_error(response.status_code, None) from e
            raise DecodingError("Response was not valid JSON") from e

        if not response.is_success:
            raise _status_error(response.status_code, body)

        if not isinstance(body, dict):
            raise DecodingError("Response was not a JSON object")

        if body.get("success") is False:
            raise ServerReportedError(body.get("error") or "Request failed")

        return body

    async def _stream(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        headers = self._headers()
        headers["Accept"] = "text/event-stream"
        try:
            async with self._client.stream(method, path, json=json, headers=headers) as response:
                if not response.is_success:
                    await response.aread()
                    try:
                        body = response.json()
                    except ValueError:
                        body = None
                    raise _status_error(response.status_code, body)

                async for event in aiter_sse_events(response.aiter_lines()):
                    yield event
        except httpx.TimeoutException as e:
            raise NetworkError("The request timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}") from e

    async def ping(self) -> bool:
        """Unauthenticated reachability check against the backend root."""
        try:
            response = await self._client.get("/")
        except httpx.HTTPError as e:
            logger.warning(f"Backend unreachable at {self.base_url}: {e}")
            return False
        return response.is_success

    # =========================================================================
    # Intake
    # =========================================================================

    async def create_intake_session(self) -> IntakeSessionResponse:
        body = await self._request("POST", "/trainer/intake/sessions")
        return parse_model(IntakeSessionResponse, body)

    def stream_intake_answer(self, session_id: str, answer_text: str) -> AsyncIterator[StreamEvent]:
        return self._stream(
            "POST",
            f"/trainer/intake/sessions/{session_id}/answers",
            json={"answer_text": answer_text},
        )

    async def confirm_intake(self, session_id: str) -> IntakeSummaryResponse:
        body = await self._request("POST", f"/trainer/intake/sessions/{session_id}/confirm")
        return parse_model(IntakeSummaryResponse, body)

    async def edit_intake(self, session_id: str, changes: dict[str, Any]) -> IntakeSummaryResponse:
        body = await self._request("POST", f"/trainer/intake/sessions/{session_id}/edit", json={"changes": changes})
        return parse_model(IntakeSummaryResponse, body)

    async def fetch_intake_summary(self, session_id: str) -> IntakeSummaryResponse:
        body = await self._request("GET", f"/trainer/intake/sessions/{session_id}/summary")
        return parse_model(IntakeSummaryResponse, body)

    async def submit_structured_intake(self, answers: dict[str, Any]) -> StructuredIntakeResponse:
        body = await self._request("POST", "/trainer/intake/structured", json={"answers": answers})
        return parse_model(StructuredIntakeResponse, body)

    # =========================================================================
    # Assessment
    # =========================================================================

    async def create_assessment_session(self) -> AssessmentSession:
        body = await self._request("POST", "/trainer/assessment/sessions")
        return parse_model(AssessmentSession, body.get("session"))

    async def fetch_assessment_steps(self) -> list[AssessmentStep]:
        body = await self._request("GET", "/trainer/assessment/steps")
        return [parse_model(AssessmentStep, step) for step in body.get("steps") or []]

    async def submit_assessment_step(
        self, session_id: str, step_id: str, result: dict[str, Any]
    ) -> AssessmentStep | None:
        body = await self._request(
            "POST",
            f"/trainer/assessment/sessions/{session_id}/steps/{step_id}/submit",
            json={"result": result},
        )
        next_step = body.get("next_step")
        return parse_model(AssessmentStep, next_step) if next_step else None

    async def skip_assessment_step(self, session_id: str, step_id: str, reason: str) -> AssessmentStep | None:
        body = await self._request(
            "POST",
            f"/trainer/assessment/sessions/{session_id}/steps/{step_id}/skip",
            json={"reason": reason},
        )
        next_step = body.get("next_step")
        return parse_model(AssessmentStep, next_step) if next_step else None

    async def complete_assessment(self, session_id: str) -> AssessmentBaseline:
        body = await self._request("POST", f"/trainer/assessment/sessions/{session_id}/complete")
        return parse_model(AssessmentBaseline, body.get("baseline"))

    # =========================================================================
    # Goals
    # =========================================================================

    async def draft_goal_contract(self) -> GoalContract:
        body = await self._request("POST", "/trainer/goals/draft")
        return parse_model(GoalContract, body.get("goal"))

    async def edit_goal_contract(self, goal_id: str, instruction: str) -> GoalContract:
        body = await self._request("POST", f"/trainer/goals/{goal_id}/edit", json={"instruction": instruction})
        return parse_model(GoalContract, body.get("goal"))

    async def approve_goal_contract(self, goal_id: str) -> GoalContract:
        body = await self._request("POST", f"/trainer/goals/{goal_id}/approve")
        return parse_model(GoalContract, body.get("goal"))

    async def fetch_goal_options(self) -> list[GoalOption]:
        body = await self._request("POST", "/trainer/goals/options")
        return [parse_model(GoalOption, option) for option in body.get("options") or []]

    async def select_goal_option(self, option: GoalOption) -> GoalContract:
        body = await self._request("POST", "/trainer/goals/options/select", json={"option": option.model_dump()})
        return parse_model(GoalContract, body.get("goal"))

    async def refine_goal_options(self, instruction: str, current: list[GoalOption]) -> list[GoalOption]:
        body = await self._request(
            "POST",
            "/trainer/goals/options/refine",
            json={
                "instruction": instruction,
                "current_options": [option.model_dump() for option in current],
            },
        )
        return [parse_model(GoalOption, option) for option in body.get("options") or []]

    # =========================================================================
    # Programs
    # =========================================================================

    async def draft_training_program(self) -> TrainingProgram:
        body = await self._request("POST", "/trainer/programs/draft")
        return parse_model(TrainingProgram, body.get("program"))

    async def edit_training_program(self, program_id: str, instruction: str) -> TrainingProgram:
        body = await self._request("POST", f"/trainer/programs/{program_id}/edit", json={"instruction": instruction})
        return parse_model(TrainingProgram, body.get("program"))

    async def approve_training_program(self, program_id: str) -> TrainingProgram:
        body = await self._request("POST", f"/trainer/programs/{program_id}/approve")
        return parse_model(TrainingProgram, body.get("program"))

    async def activate_training_program(self, program_id: str) -> TrainingProgram:
        body = await self._request("POST", f"/trainer/programs/{program_id}/activate")
        return parse_model(TrainingProgram, body.get("program"))

    # =========================================================================
    # Workouts
    # =========================================================================

    async def create_workout_session(self, force_new: bool = False, coach_mode: str | None = None) -> WorkoutSession:
        payload: dict[str, Any] = {"force_new": force_new}
        if coach_mode:
            payload["coach_mode"] = coach_mode
        body = await self._request("POST", "/trainer/workouts/sessions", json=payload)
        return parse_model(WorkoutSession, body.get("session"))

    async def fetch_workout_session(self, session_id: str) -> WorkoutSessionDetail:
        body = await self._request("GET", f"/trainer/workouts/sessions/{session_id}")
        return parse_model(WorkoutSessionDetail, body)

    async def generate_workout_instance(self, session_id: str, request: dict[str, Any]) -> WorkoutInstance:
        body = await self._request("POST", f"/trainer/workouts/sessions/{session_id}/generate", json=request)
        return parse_model(WorkoutInstance, body.get("instance"))

    async def send_workout_action(
        self, session_id: str, action_type: str, payload: dict[str, Any] | None = None
    ) -> WorkoutActionResult:
        body = await self._request(
            "POST",
            f"/trainer/workouts/sessions/{session_id}/actions",
            json={"action_type": action_type, "payload": payload or {}},
        )
        return parse_model(WorkoutActionResult, body)

    async def complete_workout_session(
        self, session_id: str, reflection: dict[str, Any], log: dict[str, Any]
    ) -> WorkoutSessionSummary:
        body = await self._request(
            "POST",
            f"/trainer/workouts/sessions/{session_id}/complete",
            json={"reflection": reflection, "log": log},
        )
        return parse_model(WorkoutSessionSummary, body.get("summary"))

    async def apply_exercise_command(
        self,
        exercise_id: str,
        expected_version: int,
        command: dict[str, Any],
        command_id: str | None = None,
        client_meta: dict[str, Any] | None = None,
    ) -> ExerciseCommandResult:
        """
        Send one optimistic-concurrency command for a workout exercise.

        The server rejects the command with 409 (VersionConflictError) when
        expected_version is stale. command_id makes retries of the same
        command idempotent server-side.
        """
        body = await self._request(
            "POST",
            f"/trainer/workout-exercises/{exercise_id}/commands",
            json={
                "command_id": command_id or str(uuid.uuid4()),
                "expected_version": expected_version,
                "command": command,
                "client_meta": client_meta or {},
            },
        )
        return parse_model(ExerciseCommandResult, body)


__all__ = ["APIError", "TokenProvider", "TrainerAPIClient"]
