"""
Onboarding state persistence.

The whole OnboardingState is stored as one JSON document under a fixed key.
Loading is fail-safe: a missing, truncated or undecodable document means
"no saved state", never an error.
"""

import logging
from pathlib import Path

from onboarding.state import OnboardingState, is_stale
from trainer.storage import read_json, remove_document, write_json_atomic

logger = logging.getLogger(__name__)

STATE_KEY = "onboarding_state"


class StateStorage:
    """
    Local store for onboarding state.

    Args:
        path: JSON document location; defaults to settings.onboarding_state_path
    """

    def __init__(self, path: Path | None = None):
        if path is None:
            from trainer.config import settings

            path = settings.onboarding_state_path
        self.path = Path(path)

    def save(self, state: OnboardingState) -> None:
        self.write(state.to_dict())

    def write(self, data: dict) -> None:
        """Write an already serialized state."""
        write_json_atomic(self.path, {STATE_KEY: data})

    def load(self) -> OnboardingState | None:
        document = read_json(self.path)
        if document is None:
            return None

        data = document.get(STATE_KEY)
        if not isinstance(data, dict):
            logger.warning(f"No onboarding state in {self.path}")
            return None

        try:
            return OnboardingState.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding undecodable onboarding state: {e}")
            return None

    def restore(self) -> OnboardingState:
        """
        Saved state for launch, after the version gate.

        Falls back to a fresh initial state when nothing usable is saved or
        the saved state predates the current flow.
        """
        state = self.load()
        if state is None:
            return OnboardingState.initial()
        if is_stale(state):
            logger.info(
                f"Resetting onboarding state v{state.state_version} "
                f"(phase {state.current_phase.value})"
            )
            return OnboardingState.initial()
        return state

    def clear(self) -> None:
        remove_document(self.path)
