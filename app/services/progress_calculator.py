from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional


@dataclass(frozen=True)
class AchievementTotals:
    total: int = 0
    completed: int = 0


NO_ACHIEVEMENTS = AchievementTotals()


@dataclass(frozen=True)
class DerivedProgress:
    main: int
    full: int
    completionist: int
    achievement_percentage: int
    has_dlcs: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "main": self.main,
            "full": self.full,
            "completionist": self.completionist,
            "achievement_percentage": self.achievement_percentage,
            "has_dlcs": self.has_dlcs,
        }


def is_required_dlc(addition: Any) -> bool:
    return getattr(addition, "addition_type", None) == "dlc" and bool(
        getattr(addition, "required_for_full", False)
    )


def achievement_percentage(totals: AchievementTotals) -> int:
    # no tracked achievements counts as fully satisfied on that axis
    if totals.total <= 0:
        return 100
    return math.floor(totals.completed / totals.total * 100)


def calculate_progress(
    main: Optional[int],
    additions: Iterable[Any],
    owned_ids: Iterable[str],
    dlc_percentages: Mapping[str, int],
    achievements: AchievementTotals = NO_ACHIEVEMENTS,
) -> DerivedProgress:
    """Blend main, owned required DLC and achievements into derived scores.

    Unowned required DLCs are left out of both the weighted sum and the
    denominator. Every division truncates with floor.
    """
    main_pct = main or 0
    owned = set(owned_ids)
    owned_required = [
        addition
        for addition in additions
        if is_required_dlc(addition) and addition.id in owned
    ]

    weighted_sum = main_pct
    total_weight = 1
    for dlc in owned_required:
        weighted_sum += (dlc_percentages.get(dlc.id) or 0) * dlc.weight
        total_weight += dlc.weight

    full = math.floor(weighted_sum / total_weight) if total_weight > 0 else main_pct

    achievement_pct = achievement_percentage(achievements)
    if achievements.total > 0:
        completionist = math.floor((full + achievement_pct) / 2)
    else:
        completionist = full

    return DerivedProgress(
        main=main_pct,
        full=int(full),
        completionist=int(completionist),
        achievement_percentage=achievement_pct,
        has_dlcs=len(owned_required) > 0,
    )
