"""
Trainer - Backend proxy stores.

Each store caches one backend-owned resource and exposes is_loading and
error_message for the UI.
"""

from trainer.stores.assessment import AssessmentSessionStore
from trainer.stores.base import BaseStore
from trainer.stores.goals import GoalContractStore
from trainer.stores.intake import IntakeSessionStore
from trainer.stores.program import TrainingProgramStore
from trainer.stores.workout import WorkoutSessionStore

__all__ = [
    "AssessmentSessionStore",
    "BaseStore",
    "GoalContractStore",
    "IntakeSessionStore",
    "TrainingProgramStore",
    "WorkoutSessionStore",
]
