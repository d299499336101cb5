"""Baseline assessment store."""

from typing import Any

from trainer.api.models import AssessmentBaseline, AssessmentSession, AssessmentStep
from trainer.stores.base import BaseStore


class AssessmentSessionStore(BaseStore):
    def __init__(self, api=None):
        super().__init__(api)
        self.session: AssessmentSession | None = None
        self.steps: list[AssessmentStep] = []
        self.current_step: AssessmentStep | None = None
        self.baseline: AssessmentBaseline | None = None

    async def start_or_resume(self) -> None:
        """Open (or reopen) the session and position on its current step."""
        with self._operation("start assessment session"):
            session = await self.api.create_assessment_session()
            steps = await self.api.fetch_assessment_steps()
            self.session = session
            self.steps = steps
            self.current_step = self._step_by_id(session.current_step_id)

    async def submit(self, result: dict[str, Any]) -> None:
        if self.session is None or self.current_step is None:
            return
        with self._operation("submit assessment step"):
            self.current_step = await self.api.submit_assessment_step(
                self.session.id, self.current_step.id, result
            )

    async def skip(self, reason: str) -> None:
        if self.session is None or self.current_step is None:
            return
        with self._operation("skip assessment step"):
            self.current_step = await self.api.skip_assessment_step(
                self.session.id, self.current_step.id, reason
            )

    async def complete(self) -> None:
        if self.session is None:
            return
        with self._operation("complete assessment"):
            self.baseline = await self.api.complete_assessment(self.session.id)

    def _step_by_id(self, step_id: str | None) -> AssessmentStep | None:
        if step_id:
            for step in self.steps:
                if step.id == step_id:
                    return step
        return self.steps[0] if self.steps else None
