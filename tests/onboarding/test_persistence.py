"""
Tests for StateStorage: atomic save, fail-safe load, version gate.
"""

import json
import os
from unittest.mock import patch

import pytest

from onboarding.persistence import STATE_KEY, StateStorage
from onboarding.state import IntakeData, OnboardingPhase, OnboardingState


@pytest.fixture
def storage(tmp_path):
    return StateStorage(tmp_path / "state" / "onboarding_state.json")


def _write_raw(storage: StateStorage, text: str) -> None:
    storage.path.parent.mkdir(parents=True, exist_ok=True)
    storage.path.write_text(text, encoding="utf-8")


class TestSaveLoad:

    def test_missing_file_loads_none(self, storage):
        assert storage.load() is None

    def test_save_then_load(self, storage):
        state = OnboardingState(
            current_phase=OnboardingPhase.INTAKE,
            has_started_onboarding=True,
            current_step=7,
            intake_data=IntakeData(name="Sam"),
        )
        storage.save(state)

        assert storage.load() == state

    def test_document_is_keyed(self, storage):
        storage.save(OnboardingState.initial())
        document = json.loads(storage.path.read_text(encoding="utf-8"))
        assert list(document) == [STATE_KEY]
        assert document[STATE_KEY]["state_version"] == 2

    def test_clear(self, storage):
        storage.save(OnboardingState.initial())
        storage.clear()
        assert not storage.path.exists()
        storage.clear()  # already gone


class TestFailSafeLoad:

    def test_truncated_document(self, storage):
        storage.save(OnboardingState.initial())
        text = storage.path.read_text(encoding="utf-8")
        _write_raw(storage, text[: len(text) // 2])

        assert storage.load() is None

    def test_not_an_object(self, storage):
        _write_raw(storage, "[1, 2, 3]")
        assert storage.load() is None

    def test_missing_key(self, storage):
        _write_raw(storage, json.dumps({"something_else": {}}))
        assert storage.load() is None

    def test_undecodable_values(self, storage):
        _write_raw(storage, json.dumps({STATE_KEY: {"state_version": 2, "updated_at": "not a date"}}))
        assert storage.load() is None

    def test_restore_falls_back_to_initial(self, storage):
        _write_raw(storage, "{not json")
        state = storage.restore()
        assert state.current_phase == OnboardingPhase.INTRO
        assert state.current_step == 0


class TestAtomicWrite:

    def test_failed_write_keeps_previous_document(self, storage):
        first = OnboardingState(current_phase=OnboardingPhase.AUTH, current_step=28)
        storage.save(first)

        with patch("trainer.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                storage.save(OnboardingState(current_phase=OnboardingPhase.GOAL_REVIEW))

        assert storage.load() == first
        leftovers = [name for name in os.listdir(storage.path.parent) if name.endswith(".tmp")]
        assert leftovers == []


class TestVersionGate:

    def test_old_in_progress_state_is_reset(self, storage):
        storage.save(OnboardingState(
            state_version=1,
            current_phase=OnboardingPhase.GOAL_REVIEW,
            has_started_onboarding=True,
            current_step=12,
        ))
        state = storage.restore()
        assert state.current_phase == OnboardingPhase.INTRO
        assert state.current_step == 0
        assert state.has_started_onboarding is False

    def test_old_completed_state_is_kept(self, storage):
        storage.save(OnboardingState(
            state_version=1,
            current_phase=OnboardingPhase.COMPLETE,
            program_id="program-1",
        ))
        state = storage.restore()
        assert state.current_phase == OnboardingPhase.COMPLETE
        assert state.program_id == "program-1"

    def test_current_version_is_restored(self, storage):
        storage.save(OnboardingState(current_phase=OnboardingPhase.AUTH, current_step=28))
        state = storage.restore()
        assert state.current_phase == OnboardingPhase.AUTH
        assert state.current_step == 28
