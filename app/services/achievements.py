from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.config import ACHIEVEMENTS_ENABLED
from ..models import Achievement, UserAchievement
from .progress_calculator import NO_ACHIEVEMENTS, AchievementTotals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementHistoryPoint:
    percentage: int
    logged_at: datetime
    notes: str = "Achievement unlocked"


class SqlAchievementProvider:
    """Aggregate achievement counts for a game, as seen by one user."""

    def __init__(self, db: Session, enabled: bool = ACHIEVEMENTS_ENABLED):
        self.db = db
        self.enabled = enabled

    def _game_filter(self, game_id: str, platform_id: str):
        return (
            Achievement.game_id == game_id,
            or_(Achievement.platform_id.is_(None), Achievement.platform_id == platform_id),
        )

    def totals(self, user_id: str, game_id: str, platform_id: str) -> AchievementTotals:
        if not self.enabled:
            return NO_ACHIEVEMENTS
        # a failed read rolls back to the savepoint, leaving the caller's transaction usable
        with self.db.begin_nested():
            total = (
                self.db.query(func.count(Achievement.id))
                .filter(*self._game_filter(game_id, platform_id))
                .scalar()
            ) or 0
            completed = (
                self.db.query(func.count(UserAchievement.id))
                .join(Achievement, UserAchievement.achievement_id == Achievement.id)
                .filter(
                    UserAchievement.user_id == user_id,
                    UserAchievement.unlocked.is_(True),
                    *self._game_filter(game_id, platform_id),
                )
                .scalar()
            ) or 0
        return AchievementTotals(total=int(total), completed=int(completed))

    def unlock_times(self, user_id: str, game_id: str, platform_id: str) -> list[datetime]:
        if not self.enabled:
            return []
        with self.db.begin_nested():
            rows = (
                self.db.query(UserAchievement.unlocked_at)
                .join(Achievement, UserAchievement.achievement_id == Achievement.id)
                .filter(
                    UserAchievement.user_id == user_id,
                    UserAchievement.unlocked.is_(True),
                    UserAchievement.unlocked_at.isnot(None),
                    *self._game_filter(game_id, platform_id),
                )
                .order_by(UserAchievement.unlocked_at.asc())
                .all()
            )
        return [row.unlocked_at for row in rows]


class AdvisoryAchievements:
    """Wraps a provider so that any failure reads as "no achievement data".

    ``full`` and ``main`` must stay computable when the achievement source is
    down, so errors degrade to ``total = 0`` instead of propagating.
    """

    def __init__(self, provider):
        self.provider = provider

    def totals(self, user_id: str, game_id: str, platform_id: str) -> AchievementTotals:
        try:
            totals = self.provider.totals(user_id, game_id, platform_id)
        except Exception:
            logger.warning(
                "achievement totals unavailable user=%s game=%s platform=%s; treating as none",
                user_id,
                game_id,
                platform_id,
                exc_info=True,
            )
            return NO_ACHIEVEMENTS
        if totals is None or totals.total <= 0:
            return NO_ACHIEVEMENTS
        return totals

    def history(self, user_id: str, game_id: str, platform_id: str) -> list[AchievementHistoryPoint]:
        totals = self.totals(user_id, game_id, platform_id)
        if totals.total <= 0:
            return []
        try:
            unlocks = self.provider.unlock_times(user_id, game_id, platform_id)
        except Exception:
            logger.warning(
                "achievement history unavailable user=%s game=%s platform=%s",
                user_id,
                game_id,
                platform_id,
                exc_info=True,
            )
            return []
        return [
            AchievementHistoryPoint(
                percentage=math.floor((index + 1) / totals.total * 100),
                logged_at=unlocked_at,
            )
            for index, unlocked_at in enumerate(sorted(unlocks))
        ]
