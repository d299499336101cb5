"""
Pytest configuration and fixtures for Trainer tests.

HTTP calls go to an in-process fake of the trainer backend (FastAPI, mounted
through httpx.ASGITransport), so the real client code runs end to end.
"""

import copy
import json
import os
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Set test environment before importing trainer modules
os.environ["TRAINER_ENV"] = "development"
os.environ["API_BASE_URL"] = "http://testserver"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
# Wide enough that rich tables in CLI output never wrap
os.environ["COLUMNS"] = "200"

from trainer.api import TrainerAPIClient  # noqa: E402

TEST_TOKEN = "test-token"


# ---------------------------------------------------------------------------
# Sample backend resources
# ---------------------------------------------------------------------------

GOAL = {
    "id": "goal-1",
    "status": "draft",
    "version": 1,
    "contract_json": {
        "primary_goal": "Build muscle",
        "secondary_goal": "Improve endurance",
        "timeline_weeks": 12,
        "metrics": ["Bench press 1RM", "Body weight"],
        "weekly_commitment": {"sessions_per_week": 3, "minutes_per_session": 45},
        "constraints": ["Home gym only"],
        "tradeoffs": [],
        "assumptions": [],
    },
}

GOAL_OPTIONS = [
    {
        "id": "option-1",
        "title": "Strength first",
        "description": "Build a strength base over three months.",
        "primary_goal": "Get stronger",
        "timeline_weeks": 12,
        "sessions_per_week": 3,
        "minutes_per_session": 45,
        "focus_areas": ["strength"],
    },
    {
        "id": "option-2",
        "title": "Lean and fit",
        "description": "Lose fat while keeping muscle.",
        "primary_goal": "Lose fat",
        "secondary_goal": "Keep muscle",
        "timeline_weeks": 16,
        "sessions_per_week": 4,
        "minutes_per_session": 40,
        "focus_areas": ["conditioning", "strength"],
    },
]

PROGRAM = {"id": "program-1", "status": "draft", "version": 1, "program_markdown": "# Week 1\n- Squat 3x8"}

ASSESSMENT_STEPS = [
    {"id": "step-1", "title": "Squat", "type": "count", "prompt": "How many squats?"},
    {"id": "step-2", "title": "Push-ups", "type": "count", "prompt": "How many push-ups?"},
    {"id": "step-3", "title": "Toe touch", "type": "choice", "prompt": "Can you touch your toes?",
     "options": ["Yes", "Almost", "No"]},
]

BASELINE = {
    "readiness": "good",
    "strength": "moderate",
    "mobility": "limited",
    "conditioning": "moderate",
    "pain_flags": "none",
    "confidence": "medium",
    "notes": "Tight hamstrings",
}

WORKOUT_INSTANCE = {
    "title": "Full body A",
    "estimated_duration_min": 40,
    "focus": ["strength"],
    "exercises": [
        {"exercise_name": "Goblet squat", "type": "reps", "sets": 3, "reps": [10, 10, 10]},
        {"exercise_name": "Plank", "type": "hold", "sets": 3, "hold_duration_sec": [30, 30, 30]},
    ],
    "metadata": {"intent": "planned", "request_text": None, "generated_at": "2026-01-05T10:00:00Z"},
}

WORKOUT_SUMMARY = {
    "title": "Full body A",
    "completion": {"exercises": 2, "total_sets": 6},
    "overall_rpe": 7,
    "wins": ["Finished every set"],
    "next_session_focus": "Upper body",
}


class _ReportedFailure(Exception):
    def __init__(self, message: str):
        self.message = message


class FakeBackend:
    """
    In-memory stand-in for the trainer backend.

    Set fail_status to make every authenticated endpoint return that HTTP
    status, or report_failure to return 200 with success=false.
    """

    def __init__(self):
        self.calls: list[tuple[str, str, dict | None]] = []
        self.fail_status: int | None = None
        self.report_failure: str | None = None

        self.goal = copy.deepcopy(GOAL)
        self.program = copy.deepcopy(PROGRAM)
        self.intake_complete_after_answer = False
        self.intake_events: list[dict] | None = None
        self.summary = {"goals": "Build muscle", "schedule": "3 days"}
        self.workout_status = "in_progress"
        self.exercise_version = 4

        self.app = self._build_app()

    def paths(self) -> list[str]:
        return [path for _, path, _ in self.calls]

    def default_intake_events(self) -> list[dict]:
        events = [
            {"type": "assistant_message", "data": {"text": "Got it. How many days a week can you train?"}},
            {"type": "checklist", "data": {"items": [
                {"id": "goals", "label": "Goals", "topic": "goals", "required": True, "status": "checked"},
                {"id": "schedule", "label": "Schedule", "topic": "schedule", "required": True},
            ]}},
            {"type": "progress", "data": {"progress": {"required_done": 1, "required_total": 2}}},
        ]
        if self.intake_complete_after_answer:
            events.append({"type": "conversation_complete", "data": None})
        events.append({"type": "done", "data": None})
        return events

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        backend = self

        @app.exception_handler(StarletteHTTPException)
        async def _http_error(request: Request, exc: StarletteHTTPException):
            return JSONResponse({"success": False, "error": exc.detail}, status_code=exc.status_code)

        @app.exception_handler(_ReportedFailure)
        async def _reported(request: Request, exc: _ReportedFailure):
            return JSONResponse({"success": False, "error": exc.message})

        async def authed(request: Request, authorization: str | None = Header(None)):
            if authorization != f"Bearer {TEST_TOKEN}":
                raise HTTPException(status_code=401, detail="Invalid token")
            body = None
            raw = await request.body()
            if raw:
                body = json.loads(raw)
            backend.calls.append((request.method, request.url.path, body))
            if backend.fail_status is not None:
                raise HTTPException(status_code=backend.fail_status, detail="Backend exploded")
            if backend.report_failure is not None:
                raise _ReportedFailure(backend.report_failure)
            return body or {}

        @app.get("/")
        async def root():
            return {"status": "ok"}

        # Intake --------------------------------------------------------------

        @app.post("/trainer/intake/sessions")
        async def create_intake(body: dict = Depends(authed)):
            return {
                "success": True,
                "session": {"id": "intake-session-1", "status": "in_progress"},
                "checklist": [{"id": "goals", "label": "Goals", "topic": "goals", "required": True}],
                "prompt": "What brings you here?",
            }

        @app.post("/trainer/intake/sessions/{session_id}/answers")
        async def answer(session_id: str, body: dict = Depends(authed)):
            events = backend.intake_events if backend.intake_events is not None else backend.default_intake_events()

            async def stream():
                for event in events:
                    yield f"data: {json.dumps(event)}\n\n"

            return StreamingResponse(stream(), media_type="text/event-stream")

        @app.post("/trainer/intake/sessions/{session_id}/confirm")
        async def confirm(session_id: str, body: dict = Depends(authed)):
            return {"success": True, "summary": backend.summary, "version": 1}

        @app.post("/trainer/intake/sessions/{session_id}/edit")
        async def edit_intake(session_id: str, body: dict = Depends(authed)):
            backend.summary = {**backend.summary, **body["changes"]}
            return {"success": True, "summary": backend.summary, "version": 2}

        @app.get("/trainer/intake/sessions/{session_id}/summary")
        async def summary(session_id: str, body: dict = Depends(authed)):
            return {"success": True, "summary": backend.summary, "version": 1}

        @app.post("/trainer/intake/structured")
        async def structured(body: dict = Depends(authed)):
            return {"success": True, "intake_id": "intake-42"}

        # Assessment ----------------------------------------------------------

        @app.post("/trainer/assessment/sessions")
        async def create_assessment(body: dict = Depends(authed)):
            return {"success": True, "session": {
                "id": "assessment-1", "user_id": "user-1", "status": "in_progress", "current_step_id": "step-2",
            }}

        @app.get("/trainer/assessment/steps")
        async def steps(body: dict = Depends(authed)):
            return {"success": True, "steps": ASSESSMENT_STEPS}

        def _next_step(step_id: str) -> dict | None:
            ids = [step["id"] for step in ASSESSMENT_STEPS]
            index = ids.index(step_id) + 1
            return ASSESSMENT_STEPS[index] if index < len(ids) else None

        @app.post("/trainer/assessment/sessions/{session_id}/steps/{step_id}/submit")
        async def submit_step(session_id: str, step_id: str, body: dict = Depends(authed)):
            return {"success": True, "next_step": _next_step(step_id)}

        @app.post("/trainer/assessment/sessions/{session_id}/steps/{step_id}/skip")
        async def skip_step(session_id: str, step_id: str, body: dict = Depends(authed)):
            return {"success": True, "next_step": _next_step(step_id)}

        @app.post("/trainer/assessment/sessions/{session_id}/complete")
        async def complete_assessment(session_id: str, body: dict = Depends(authed)):
            return {"success": True, "baseline": BASELINE}

        # Goals ---------------------------------------------------------------

        @app.post("/trainer/goals/draft")
        async def draft_goal(body: dict = Depends(authed)):
            return {"success": True, "goal": backend.goal}

        @app.post("/trainer/goals/options")
        async def goal_options(body: dict = Depends(authed)):
            return {"success": True, "options": GOAL_OPTIONS}

        @app.post("/trainer/goals/options/select")
        async def select_option(body: dict = Depends(authed)):
            option = body["option"]
            backend.goal["contract_json"]["primary_goal"] = option["primary_goal"]
            return {"success": True, "goal": backend.goal}

        @app.post("/trainer/goals/options/refine")
        async def refine_options(body: dict = Depends(authed)):
            refined = [{**option, "title": f"{option['title']} (refined)"} for option in body["current_options"]]
            return {"success": True, "options": refined}

        @app.post("/trainer/goals/{goal_id}/edit")
        async def edit_goal(goal_id: str, body: dict = Depends(authed)):
            backend.goal["version"] += 1
            backend.goal["contract_json"]["assumptions"].append(body["instruction"])
            return {"success": True, "goal": backend.goal}

        @app.post("/trainer/goals/{goal_id}/approve")
        async def approve_goal(goal_id: str, body: dict = Depends(authed)):
            backend.goal["status"] = "approved"
            return {"success": True, "goal": backend.goal}

        # Programs ------------------------------------------------------------

        @app.post("/trainer/programs/draft")
        async def draft_program(body: dict = Depends(authed)):
            return {"success": True, "program": backend.program}

        @app.post("/trainer/programs/{program_id}/edit")
        async def edit_program(program_id: str, body: dict = Depends(authed)):
            backend.program["version"] += 1
            backend.program["program_markdown"] += f"\n- {body['instruction']}"
            return {"success": True, "program": backend.program}

        @app.post("/trainer/programs/{program_id}/approve")
        async def approve_program(program_id: str, body: dict = Depends(authed)):
            backend.program["status"] = "approved"
            return {"success": True, "program": backend.program}

        @app.post("/trainer/programs/{program_id}/activate")
        async def activate_program(program_id: str, body: dict = Depends(authed)):
            backend.program["status"] = "active"
            return {"success": True, "program": backend.program}

        # Workouts ------------------------------------------------------------

        @app.post("/trainer/workouts/sessions")
        async def create_workout(body: dict = Depends(authed)):
            return {"success": True, "session": {
                "id": "workout-1", "status": "in_progress", "coach_mode": body.get("coach_mode") or "quiet",
            }}

        @app.get("/trainer/workouts/sessions/{session_id}")
        async def get_workout(session_id: str, body: dict = Depends(authed)):
            return {
                "success": True,
                "session": {"id": session_id, "status": backend.workout_status},
                "instance": WORKOUT_INSTANCE,
                "instance_version": 2,
            }

        @app.post("/trainer/workouts/sessions/{session_id}/generate")
        async def generate(session_id: str, body: dict = Depends(authed)):
            return {"success": True, "instance": WORKOUT_INSTANCE}

        @app.post("/trainer/workouts/sessions/{session_id}/actions")
        async def action(session_id: str, body: dict = Depends(authed)):
            instance = {**WORKOUT_INSTANCE, "title": f"Full body A ({body['action_type']})"}
            return {
                "success": True,
                "action": body["action_type"],
                "instance": instance,
                "instance_version": 3,
                "instance_updated": True,
            }

        @app.post("/trainer/workouts/sessions/{session_id}/complete")
        async def complete_workout(session_id: str, body: dict = Depends(authed)):
            return {"success": True, "summary": WORKOUT_SUMMARY}

        @app.post("/trainer/workout-exercises/{exercise_id}/commands")
        async def command(exercise_id: str, body: dict = Depends(authed)):
            if body["expected_version"] != backend.exercise_version:
                return JSONResponse(
                    {
                        "success": False,
                        "error": "Version conflict",
                        "current_payload_version": backend.exercise_version,
                    },
                    status_code=409,
                )
            backend.exercise_version += 1
            return {
                "success": True,
                "exercise_id": exercise_id,
                "payload_version": backend.exercise_version,
                "status": "applied",
                "payload_json": body["command"],
            }

        return app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def backend():
    """Fresh fake backend per test."""
    return FakeBackend()


@pytest.fixture
def api(backend):
    """Client wired to the fake backend with a valid token."""
    return TrainerAPIClient(
        base_url="http://testserver",
        token_provider=lambda: TEST_TOKEN,
        timeout=5.0,
        transport=httpx.ASGITransport(app=backend.app),
    )


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for OTP tests."""
    mock_client = MagicMock()
    mock_session = MagicMock()
    mock_session.access_token = "jwt-after-verify"
    mock_client.auth.verify_otp.return_value = MagicMock(session=mock_session)
    mock_client.auth.sign_in_with_otp.return_value = MagicMock()
    return mock_client
