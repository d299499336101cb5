"""
Trainer Onboarding System.

Isolated module for new user setup. Walks the user through a fixed flow and
keeps its state on disk so an interrupted onboarding can be resumed.

Phases:
1. Intro & Intake - Intro screens, then one question per screen (local only)
2. Auth - Email one-time code via Supabase; intake is uploaded after sign-in
3. Goal & Program Review - Backend-drafted goal contract and training program
4. Notifications & Success - Permission prompt, then done
"""

from .state import CURRENT_STATE_VERSION, IntakeData, IntakeField, OnboardingPhase, OnboardingState
from .persistence import StateStorage
from .store import OnboardingStore

__all__ = [
    "CURRENT_STATE_VERSION",
    "IntakeData",
    "IntakeField",
    "OnboardingPhase",
    "OnboardingState",
    "OnboardingStore",
    "StateStorage",
]
