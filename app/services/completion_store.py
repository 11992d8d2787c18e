from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ..models import CompletionLog

logger = logging.getLogger(__name__)


class SqlCompletionLogStore:
    """Append-only completion log.

    The current value for a (type, dlc_id) key is always read as the newest
    row; nothing caches it.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        *,
        user_id: str,
        game_id: str,
        platform_id: str,
        completion_type: str,
        percentage: int,
        dlc_id: Optional[str] = None,
        notes: Optional[str] = None,
        logged_at: Optional[datetime] = None,
    ) -> CompletionLog:
        entry = CompletionLog(
            user_id=user_id,
            game_id=game_id,
            platform_id=platform_id,
            completion_type=completion_type,
            dlc_id=dlc_id,
            percentage=percentage,
            notes=notes,
            logged_at=logged_at or datetime.utcnow(),
        )
        self.db.add(entry)
        self.db.flush()
        logger.info(
            "completion log appended id=%s user=%s game=%s platform=%s type=%s dlc=%s pct=%s",
            entry.id,
            user_id,
            game_id,
            platform_id,
            completion_type,
            dlc_id,
            percentage,
        )
        return entry

    def latest(
        self,
        user_id: str,
        game_id: str,
        platform_id: str,
        completion_type: str,
        dlc_id: Optional[str] = None,
    ) -> Optional[CompletionLog]:
        query = self.db.query(CompletionLog).filter(
            CompletionLog.user_id == user_id,
            CompletionLog.game_id == game_id,
            CompletionLog.platform_id == platform_id,
            CompletionLog.completion_type == completion_type,
        )
        if dlc_id is None:
            query = query.filter(CompletionLog.dlc_id.is_(None))
        else:
            query = query.filter(CompletionLog.dlc_id == dlc_id)
        return query.order_by(CompletionLog.logged_at.desc(), CompletionLog.id.desc()).first()

    def get_for_user(self, log_id: int, user_id: str, game_id: str) -> Optional[CompletionLog]:
        return (
            self.db.query(CompletionLog)
            .filter(
                CompletionLog.id == log_id,
                CompletionLog.user_id == user_id,
                CompletionLog.game_id == game_id,
            )
            .first()
        )

    def delete(self, entry: CompletionLog) -> None:
        self.db.delete(entry)
        self.db.flush()
        logger.info(
            "completion log deleted id=%s user=%s game=%s type=%s",
            entry.id,
            entry.user_id,
            entry.game_id,
            entry.completion_type,
        )

    def _game_query(
        self,
        user_id: str,
        game_id: str,
        completion_type: Optional[str] = None,
        dlc_id: Optional[str] = None,
        platform_id: Optional[str] = None,
    ):
        query = self.db.query(CompletionLog).filter(
            CompletionLog.user_id == user_id,
            CompletionLog.game_id == game_id,
        )
        if completion_type:
            query = query.filter(CompletionLog.completion_type == completion_type)
        if dlc_id:
            query = query.filter(CompletionLog.dlc_id == dlc_id)
        if platform_id:
            query = query.filter(CompletionLog.platform_id == platform_id)
        return query

    def list_for_game(
        self,
        user_id: str,
        game_id: str,
        *,
        completion_type: Optional[str] = None,
        dlc_id: Optional[str] = None,
        platform_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CompletionLog]:
        return (
            self._game_query(user_id, game_id, completion_type, dlc_id, platform_id)
            .options(
                joinedload(CompletionLog.game),
                joinedload(CompletionLog.platform),
                joinedload(CompletionLog.dlc),
            )
            .order_by(CompletionLog.logged_at.desc(), CompletionLog.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_for_game(self, user_id: str, game_id: str) -> int:
        return self._game_query(user_id, game_id).count()
