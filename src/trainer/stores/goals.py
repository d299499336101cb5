"""
Goal contract store.

Caches the user's goal contract and the goal options offered before one is
drafted. The backend owns both; every response replaces the cached copy.
"""

import logging

from trainer.api.models import GoalContract, GoalOption
from trainer.stores.base import BaseStore

logger = logging.getLogger(__name__)


class GoalContractStore(BaseStore):
    def __init__(self, api=None):
        super().__init__(api)
        self.contract: GoalContract | None = None
        self.options: list[GoalOption] = []

    async def draft(self) -> None:
        with self._operation("draft goal contract"):
            self.contract = await self.api.draft_goal_contract()

    async def edit(self, instruction: str) -> None:
        if self.contract is None:
            return
        with self._operation("edit goal contract"):
            self.contract = await self.api.edit_goal_contract(self.contract.id, instruction)

    async def approve(self) -> None:
        if self.contract is None:
            return
        with self._operation("approve goal contract"):
            self.contract = await self.api.approve_goal_contract(self.contract.id)

    # =========================================================================
    # Goal options (offered right after sign-in)
    # =========================================================================

    async def fetch_options(self) -> None:
        with self._operation("fetch goal options"):
            self.options = await self.api.fetch_goal_options()
            logger.info(f"Fetched {len(self.options)} goal options")

    async def select_option(self, option: GoalOption) -> None:
        """Turn one offered option into a drafted contract."""
        with self._operation("select goal option"):
            self.contract = await self.api.select_goal_option(option)

    async def refine_options(self, instruction: str) -> None:
        with self._operation("refine goal options"):
            self.options = await self.api.refine_goal_options(instruction, self.options)
