"""
Unit tests for the pure progress calculator.

Covers the weighted full-completion blend, DLC ownership exclusion and the
achievement axis of the completionist score.
"""

from app.services.progress_calculator import (
    AchievementTotals,
    achievement_percentage,
    calculate_progress,
)


class TestFullCompletion:
    """Weighted blend of main and owned, required DLC."""

    def test_no_dlc_no_achievements_full_equals_main(self):
        for main in (0, 1, 37, 99, 100):
            progress = calculate_progress(main, [], set(), {})
            assert progress.full == main
            assert progress.completionist == progress.full
            assert progress.has_dlcs is False

    def test_missing_main_defaults_to_zero(self):
        progress = calculate_progress(None, [], set(), {})
        assert progress.main == 0
        assert progress.full == 0

    def test_owned_required_dlc_is_weighted(self, addition):
        dlc = addition("dlc-1", weight=1)
        progress = calculate_progress(60, [dlc], {"dlc-1"}, {"dlc-1": 100})
        # (60 + 100 * 1) / (1 + 1)
        assert progress.full == 80
        assert progress.has_dlcs is True

    def test_unowned_required_dlc_is_excluded_not_zeroed(self, addition):
        dlc = addition("dlc-1", weight=1)
        owned = calculate_progress(60, [dlc], set(), {"dlc-1": 100})
        without_dlc = calculate_progress(60, [], set(), {})
        assert owned.full == 60
        assert owned.full == without_dlc.full
        assert owned.has_dlcs is False

    def test_owned_dlc_without_log_counts_as_zero(self, addition):
        dlc = addition("dlc-1", weight=1)
        progress = calculate_progress(100, [dlc], {"dlc-1"}, {})
        assert progress.full == 50

    def test_non_required_dlc_never_affects_full(self, addition):
        dlc = addition("dlc-1", required_for_full=False)
        progress = calculate_progress(40, [dlc], {"dlc-1"}, {"dlc-1": 100})
        assert progress.full == 40
        assert progress.has_dlcs is False

    def test_non_dlc_additions_are_ignored(self, addition):
        edition = addition("ed-1", addition_type="edition", is_complete_edition=True)
        progress = calculate_progress(40, [edition], {"ed-1"}, {"ed-1": 100})
        assert progress.full == 40

    def test_fractional_weights_floor_the_result(self, addition):
        dlcs = [addition("dlc-1", weight=0.5), addition("dlc-2", weight=2)]
        progress = calculate_progress(
            50, dlcs, {"dlc-1", "dlc-2"}, {"dlc-1": 75, "dlc-2": 33}
        )
        # (50 + 37.5 + 66) / 3.5 = 43.857...
        assert progress.full == 43

    def test_full_is_truncated_not_rounded(self, addition):
        dlcs = [addition("dlc-1"), addition("dlc-2")]
        progress = calculate_progress(100, dlcs, {"dlc-1", "dlc-2"}, {"dlc-1": 100, "dlc-2": 99})
        # 299 / 3 = 99.67
        assert progress.full == 99


class TestCompletionist:
    """Blend of full completion with the achievement ratio."""

    def test_no_achievements_reads_as_fully_satisfied(self):
        assert achievement_percentage(AchievementTotals(total=0, completed=0)) == 100

    def test_achievement_percentage_floors(self):
        assert achievement_percentage(AchievementTotals(total=3, completed=2)) == 66

    def test_completionist_averages_full_and_achievements(self):
        progress = calculate_progress(100, [], set(), {}, AchievementTotals(total=10, completed=5))
        assert progress.achievement_percentage == 50
        assert progress.completionist == 75

    def test_completionist_equals_full_without_achievements(self):
        progress = calculate_progress(63, [], set(), {}, AchievementTotals(total=0, completed=0))
        assert progress.achievement_percentage == 100
        assert progress.completionist == 63

    def test_completionist_floor_on_odd_sum(self):
        progress = calculate_progress(99, [], set(), {}, AchievementTotals(total=1, completed=1))
        # (99 + 100) / 2 = 99.5
        assert progress.completionist == 99

    def test_all_maxed_is_one_hundred(self, addition):
        dlc = addition("dlc-1", weight=3)
        progress = calculate_progress(
            100, [dlc], {"dlc-1"}, {"dlc-1": 100}, AchievementTotals(total=4, completed=4)
        )
        assert progress.full == 100
        assert progress.completionist == 100
