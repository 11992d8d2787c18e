"""Unit tests for the forward-only status rule table."""

import pytest

from app.models import GAME_STATUSES
from app.services.progress_calculator import DerivedProgress
from app.services.status_transitions import ChangeTo, NoChange, evaluate_transition


def progress(main=0, full=0, completionist=0):
    return DerivedProgress(
        main=main,
        full=full,
        completionist=completionist,
        achievement_percentage=100,
        has_dlcs=False,
    )


class TestPromotion:
    @pytest.mark.parametrize("current", ["backlog", "playing", "finished", "dropped", None])
    def test_completionist_maxed_completes(self, current):
        result = evaluate_transition(current, progress(main=100, full=100, completionist=100))
        assert result == ChangeTo("completed")
        assert result.status_changed is True
        assert result.new_status == "completed"

    def test_already_completed_is_a_no_op(self):
        result = evaluate_transition("completed", progress(main=100, full=100, completionist=100))
        assert isinstance(result, NoChange)
        assert result.to_dict() == {"status_changed": False, "new_status": None}

    def test_full_maxed_finishes(self):
        result = evaluate_transition("playing", progress(main=100, full=100, completionist=75))
        assert result == ChangeTo("finished")

    def test_backlog_with_main_progress_starts_playing(self):
        result = evaluate_transition("backlog", progress(main=5, full=5, completionist=5))
        assert result == ChangeTo("playing")

    def test_missing_status_is_treated_as_backlog(self):
        result = evaluate_transition(None, progress(main=1, full=1, completionist=1))
        assert result == ChangeTo("playing")

    def test_backlog_without_progress_stays(self):
        assert isinstance(evaluate_transition("backlog", progress()), NoChange)

    def test_playing_below_thresholds_stays(self):
        assert isinstance(evaluate_transition("playing", progress(50, 50, 50)), NoChange)


class TestNoDemotion:
    def test_completed_never_reverts_when_completionist_drops(self):
        result = evaluate_transition("completed", progress(main=100, full=100, completionist=75))
        assert isinstance(result, NoChange)

    def test_completed_never_reverts_when_full_drops(self):
        result = evaluate_transition("completed", progress(main=40, full=40, completionist=40))
        assert isinstance(result, NoChange)

    def test_finished_never_reverts_to_playing(self):
        result = evaluate_transition("finished", progress(main=60, full=60, completionist=60))
        assert isinstance(result, NoChange)

    def test_dropped_with_progress_is_left_alone(self):
        result = evaluate_transition("dropped", progress(main=30, full=30, completionist=30))
        assert isinstance(result, NoChange)

    def test_dropped_is_never_a_target(self):
        samples = [progress(m, f, c) for m in (0, 50, 100) for f in (0, 50, 100) for c in (0, 50, 100)]
        for current in GAME_STATUSES:
            for sample in samples:
                result = evaluate_transition(current, sample)
                assert result.new_status != "dropped"
