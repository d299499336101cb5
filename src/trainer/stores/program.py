"""Training program store."""

from trainer.api.models import TrainingProgram
from trainer.stores.base import BaseStore


class TrainingProgramStore(BaseStore):
    def __init__(self, api=None):
        super().__init__(api)
        self.program: TrainingProgram | None = None

    async def draft(self) -> None:
        with self._operation("draft training program"):
            self.program = await self.api.draft_training_program()

    async def edit(self, instruction: str) -> None:
        if self.program is None:
            return
        with self._operation("edit training program"):
            self.program = await self.api.edit_training_program(self.program.id, instruction)

    async def approve(self) -> None:
        if self.program is None:
            return
        with self._operation("approve training program"):
            self.program = await self.api.approve_training_program(self.program.id)

    async def activate(self) -> None:
        if self.program is None:
            return
        with self._operation("activate training program"):
            self.program = await self.api.activate_training_program(self.program.id)
