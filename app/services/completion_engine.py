"""Completion progress pipeline.

Every log mutation (new ``main``/``dlc`` entry, deletion, explicit
recalculation) runs the same steps: resolve owned DLCs, compute derived
scores, persist changed ``full``/``completionist`` values, then promote the
game status. The engine never commits; the caller owns the transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationError
from ..models import DERIVED_COMPLETION_TYPES
from .achievements import AdvisoryAchievements, SqlAchievementProvider
from .catalog import SqlGameAdditionCatalog, SqlLibraryStore, SqlOwnershipStore
from .completion_store import SqlCompletionLogStore
from .derived_log import DerivedLogWriter
from .ownership import OwnershipResolver
from .progress_calculator import DerivedProgress, calculate_progress, is_required_dlc
from .progress_store import SqlProgressStore
from .status_transitions import NoChange, Transition, evaluate_transition

logger = logging.getLogger(__name__)

USER_COMPLETION_TYPES = ("main", "dlc")
DLC_OWNERSHIP_RESET_NOTE = "Auto-reset: DLC removed from ownership"


@dataclass
class PipelineResult:
    derived: DerivedProgress
    transition: Transition
    derived_entries: list = field(default_factory=list)


@dataclass
class RecordResult:
    entry: Any
    derived: DerivedProgress
    transition: Transition


@dataclass(frozen=True)
class DlcSummary:
    dlc_id: str
    name: str
    percentage: int
    weight: float
    required_for_full: bool
    owned: bool


@dataclass(frozen=True)
class CompletionSummary:
    main: int
    full: int
    completionist: int
    achievement_percentage: int
    has_dlcs: bool
    dlcs: list


def validate_entry(completion_type: str, percentage: Any, dlc_id: Optional[str]) -> None:
    if percentage is None:
        raise ValidationError("Percentage is required")
    if isinstance(percentage, bool) or not isinstance(percentage, int):
        raise ValidationError("Percentage must be an integer")
    if percentage < 0 or percentage > 100:
        raise ValidationError("Percentage must be between 0 and 100")
    if completion_type in DERIVED_COMPLETION_TYPES:
        raise ValidationError("Full and completionist progress are auto-calculated")
    if completion_type not in USER_COMPLETION_TYPES:
        raise ValidationError("Invalid completion type. Use main or dlc.")
    if completion_type == "dlc" and not dlc_id:
        raise ValidationError("DLC ID is required for dlc completion type")
    if completion_type != "dlc" and dlc_id:
        raise ValidationError("DLC ID should only be provided for dlc completion type")


class CompletionProgressEngine:
    def __init__(
        self,
        log_store,
        catalog,
        ownership_store,
        achievements,
        progress_store,
        library=None,
    ):
        self.log_store = log_store
        self.catalog = catalog
        self.ownership = OwnershipResolver(catalog, ownership_store)
        self.achievements = AdvisoryAchievements(achievements)
        self.progress_store = progress_store
        self.library = library
        self.derived_writer = DerivedLogWriter(log_store)

    @classmethod
    def for_session(cls, db: Session) -> "CompletionProgressEngine":
        return cls(
            log_store=SqlCompletionLogStore(db),
            catalog=SqlGameAdditionCatalog(db),
            ownership_store=SqlOwnershipStore(db),
            achievements=SqlAchievementProvider(db),
            progress_store=SqlProgressStore(db),
            library=SqlLibraryStore(db),
        )

    def _require_library_game(self, user_id: str, game_id: str, platform_id: str) -> None:
        if self.library is not None and not self.library.has_game(user_id, game_id, platform_id):
            raise NotFoundError("Game", game_id, message="Game not found in your library")

    def _latest_percentage(
        self,
        user_id: str,
        game_id: str,
        platform_id: str,
        completion_type: str,
        dlc_id: Optional[str] = None,
    ) -> int:
        entry = self.log_store.latest(user_id, game_id, platform_id, completion_type, dlc_id)
        return entry.percentage if entry is not None else 0

    def compute(self, user_id: str, game_id: str, platform_id: str) -> DerivedProgress:
        """Derived scores from persisted state only; writes nothing."""
        additions = self.catalog.dlcs(game_id)
        owned = self.ownership.owned_dlc_ids(user_id, game_id, platform_id)
        dlc_percentages = {
            dlc.id: self._latest_percentage(user_id, game_id, platform_id, "dlc", dlc.id)
            for dlc in additions
            if is_required_dlc(dlc) and dlc.id in owned
        }
        progress = calculate_progress(
            main=self._latest_percentage(user_id, game_id, platform_id, "main"),
            additions=additions,
            owned_ids=owned,
            dlc_percentages=dlc_percentages,
            achievements=self.achievements.totals(user_id, game_id, platform_id),
        )
        logger.debug(
            "progress computed user=%s game=%s platform=%s %s",
            user_id,
            game_id,
            platform_id,
            progress.to_dict(),
        )
        return progress

    def apply_status(
        self, user_id: str, game_id: str, platform_id: str, progress: DerivedProgress
    ) -> Transition:
        current = self.progress_store.get_status(user_id, game_id, platform_id)
        transition = evaluate_transition(current, progress)
        if isinstance(transition, NoChange):
            return transition
        self.progress_store.upsert_status(user_id, game_id, platform_id, transition.status)
        logger.info(
            "status changed user=%s game=%s platform=%s %s -> %s",
            user_id,
            game_id,
            platform_id,
            current or "backlog",
            transition.status,
        )
        return transition

    def run_pipeline(self, user_id: str, game_id: str, platform_id: str) -> PipelineResult:
        progress = self.compute(user_id, game_id, platform_id)
        written = self.derived_writer.write_all(user_id, game_id, platform_id, progress)
        transition = self.apply_status(user_id, game_id, platform_id, progress)
        return PipelineResult(derived=progress, transition=transition, derived_entries=written)

    def record_entry(
        self,
        user_id: str,
        game_id: str,
        platform_id: str,
        completion_type: str,
        percentage: int,
        dlc_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> RecordResult:
        validate_entry(completion_type, percentage, dlc_id)
        self._require_library_game(user_id, game_id, platform_id)
        if dlc_id:
            addition = self.catalog.find_for_game(game_id, dlc_id)
            if addition is None or addition.addition_type != "dlc":
                raise NotFoundError("DLC", dlc_id, message="DLC not found for this game")

        entry = self.log_store.append(
            user_id=user_id,
            game_id=game_id,
            platform_id=platform_id,
            completion_type=completion_type,
            percentage=percentage,
            dlc_id=dlc_id,
            notes=notes or None,
        )
        if completion_type == "main":
            self.progress_store.upsert_completion_percentage(user_id, game_id, platform_id, percentage)

        result = self.run_pipeline(user_id, game_id, platform_id)
        return RecordResult(entry=entry, derived=result.derived, transition=result.transition)

    def delete_entry(self, user_id: str, game_id: str, log_id: int) -> PipelineResult:
        entry = self.log_store.get_for_user(log_id, user_id, game_id)
        if entry is None:
            raise NotFoundError("Completion log", log_id, message="Completion log not found")

        platform_id = entry.platform_id
        completion_type = entry.completion_type
        self.log_store.delete(entry)

        if completion_type == "main":
            self.progress_store.upsert_completion_percentage(
                user_id,
                game_id,
                platform_id,
                self._latest_percentage(user_id, game_id, platform_id, "main"),
            )
        return self.run_pipeline(user_id, game_id, platform_id)

    def reset_unowned_dlcs(self, user_id: str, game_id: str, platform_id: str) -> list:
        owned = self.ownership.owned_dlc_ids(user_id, game_id, platform_id)
        resets = []
        for dlc in self.catalog.dlcs(game_id):
            if dlc.id in owned:
                continue
            if self._latest_percentage(user_id, game_id, platform_id, "dlc", dlc.id) > 0:
                resets.append(
                    self.log_store.append(
                        user_id=user_id,
                        game_id=game_id,
                        platform_id=platform_id,
                        completion_type="dlc",
                        percentage=0,
                        dlc_id=dlc.id,
                        notes=DLC_OWNERSHIP_RESET_NOTE,
                    )
                )
        return resets

    def recalculate(self, user_id: str, game_id: str, platform_id: str) -> PipelineResult:
        self._require_library_game(user_id, game_id, platform_id)
        self.reset_unowned_dlcs(user_id, game_id, platform_id)
        return self.run_pipeline(user_id, game_id, platform_id)

    def summary(self, user_id: str, game_id: str, platform_id: str) -> CompletionSummary:
        derived = self.compute(user_id, game_id, platform_id)
        owned = self.ownership.owned_dlc_ids(user_id, game_id, platform_id)
        dlcs = [
            DlcSummary(
                dlc_id=dlc.id,
                name=dlc.name,
                percentage=self._latest_percentage(user_id, game_id, platform_id, "dlc", dlc.id),
                weight=dlc.weight,
                required_for_full=bool(dlc.required_for_full),
                owned=dlc.id in owned,
            )
            for dlc in self.catalog.dlcs(game_id)
        ]
        return CompletionSummary(
            main=derived.main,
            full=derived.full,
            completionist=derived.completionist,
            achievement_percentage=derived.achievement_percentage,
            has_dlcs=any(dlc.owned for dlc in dlcs),
            dlcs=dlcs,
        )

    def achievement_history(self, user_id: str, game_id: str, platform_id: str) -> list:
        return self.achievements.history(user_id, game_id, platform_id)
