"""
Conversational intake store.

Drives a backend intake session: the coach asks, the user answers, and the
backend streams back the next question, the checklist of topics covered so
far, and progress. When the backend signals the conversation is finished the
store confirms the intake once and caches the summary.
"""

import logging
from typing import Any

from trainer.api.models import (
    IntakeChecklistItem,
    IntakeProgress,
    IntakeSession,
    StreamEvent,
    parse_model,
)
from trainer.stores.base import BaseStore

logger = logging.getLogger(__name__)

# Event names as sent by the backend, plus the aliases older backends use
MESSAGE_EVENTS = {"assistant_message", "text"}
CHECKLIST_EVENTS = {"checklist", "checklist-update"}
COMPLETE_EVENTS = {"conversation_complete", "complete"}


class IntakeSessionStore(BaseStore):
    def __init__(self, api=None):
        super().__init__(api)
        self.session: IntakeSession | None = None
        self.checklist: list[IntakeChecklistItem] = []
        self.progress: IntakeProgress | None = None
        self.transcript: list[str] = []
        self.current_question: str = ""
        self.summary: dict[str, Any] | None = None
        self.is_confirming: bool = False
        self.safety_flags: list[dict[str, Any]] = []

    async def start_or_resume(self) -> None:
        with self._operation("start intake session"):
            response = await self.api.create_intake_session()
            self.session = response.session
            if response.checklist is not None:
                self.checklist = response.checklist
            if response.prompt:
                self._coach_says(response.prompt)

    async def submit_answer(self, text: str) -> None:
        """
        Send one answer and consume the streamed reply.

        Confirms the intake after the stream ends if the backend signalled
        completion, the stream finished cleanly, and no summary has been
        fetched yet.
        """
        if self.session is None:
            return

        self.transcript.append(f"You: {text}")
        should_confirm = False

        with self._operation("submit intake answer"):
            async for event in self.api.stream_intake_answer(self.session.id, text):
                if self._apply_event(event):
                    should_confirm = True

        # A failed stream keeps its error visible instead of confirming
        if self.error_message is not None:
            return
        if should_confirm and self.summary is None and not self.is_confirming:
            logger.info("Intake conversation complete, confirming")
            await self.confirm()

    async def confirm(self) -> None:
        if self.session is None:
            return
        self.is_confirming = True
        try:
            with self._operation("confirm intake", track_loading=False):
                response = await self.api.confirm_intake(self.session.id)
                self.summary = response.summary
        finally:
            self.is_confirming = False

    async def edit_summary(self, changes: dict[str, Any]) -> None:
        if self.session is None:
            return
        with self._operation("edit intake summary"):
            response = await self.api.edit_intake(self.session.id, changes)
            self.summary = response.summary

    async def fetch_summary(self) -> None:
        if self.session is None:
            return
        with self._operation("fetch intake summary"):
            response = await self.api.fetch_intake_summary(self.session.id)
            self.summary = response.summary

    # =========================================================================
    # Stream handling
    # =========================================================================

    def _coach_says(self, message: str) -> None:
        self.current_question = message
        self.transcript.append(f"Coach: {message}")

    def _apply_event(self, event: StreamEvent) -> bool:
        """Apply one stream event. Returns True when it signals completion."""
        data = event.data or {}

        if event.type in MESSAGE_EVENTS:
            if event.text:
                self._coach_says(event.text)
        elif event.type in CHECKLIST_EVENTS:
            items = data.get("items")
            if isinstance(items, list):
                self.checklist = [parse_model(IntakeChecklistItem, item) for item in items]
        elif event.type == "progress":
            progress = data.get("progress")
            if progress is not None:
                self.progress = parse_model(IntakeProgress, progress)
                logger.debug(
                    f"Intake progress {self.progress.required_done}/{self.progress.required_total}"
                )
        elif event.type in COMPLETE_EVENTS:
            return True
        elif event.type == "safety_flag":
            logger.warning(f"Intake safety flag: {data}")
            self.safety_flags.append(data)
        elif event.type == "done":
            self.is_loading = False
        else:
            logger.debug(f"Ignoring intake event {event.type}")
        return False
