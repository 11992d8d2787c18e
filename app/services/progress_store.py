from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..models import UserGameProgress, generate_id

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ["user_id", "game_id", "platform_id"]


class SqlProgressStore:
    """UserGameProgress access; every write is a single atomic upsert."""

    def __init__(self, db: Session):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(UserGameProgress.__table__)
        if dialect == "sqlite":
            return sqlite_insert(UserGameProgress.__table__)
        raise RuntimeError(f"Unsupported dialect for progress upsert: {dialect}")

    def get(self, user_id: str, game_id: str, platform_id: str) -> Optional[UserGameProgress]:
        return (
            self.db.query(UserGameProgress)
            .filter(
                UserGameProgress.user_id == user_id,
                UserGameProgress.game_id == game_id,
                UserGameProgress.platform_id == platform_id,
            )
            .populate_existing()
            .first()
        )

    def get_status(self, user_id: str, game_id: str, platform_id: str) -> Optional[str]:
        row = self.get(user_id, game_id, platform_id)
        return row.status if row else None

    def upsert_status(self, user_id: str, game_id: str, platform_id: str, status: str) -> None:
        now = datetime.utcnow()
        table = UserGameProgress.__table__
        values = {
            "id": generate_id(),
            "user_id": user_id,
            "game_id": game_id,
            "platform_id": platform_id,
            "status": status,
            "completion_percentage": 0,
            "started_at": now if status == "playing" else None,
            "completed_at": now if status in ("finished", "completed") else None,
            "updated_at": now,
        }
        updates = {"status": status, "updated_at": now}
        if status == "playing":
            updates["started_at"] = func.coalesce(table.c.started_at, now)
        if status in ("finished", "completed"):
            updates["completed_at"] = func.coalesce(table.c.completed_at, now)

        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=_CONFLICT_KEYS, set_=updates)
        self.db.execute(stmt)
        logger.info(
            "game status upserted user=%s game=%s platform=%s status=%s",
            user_id,
            game_id,
            platform_id,
            status,
        )

    def upsert_completion_percentage(
        self, user_id: str, game_id: str, platform_id: str, percentage: int
    ) -> None:
        now = datetime.utcnow()
        stmt = self._insert().values(
            id=generate_id(),
            user_id=user_id,
            game_id=game_id,
            platform_id=platform_id,
            status="backlog",
            completion_percentage=percentage,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_KEYS,
            set_={"completion_percentage": percentage, "updated_at": now},
        )
        self.db.execute(stmt)
