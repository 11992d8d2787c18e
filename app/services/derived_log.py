from __future__ import annotations

import logging
from typing import Optional

from ..models import DERIVED_COMPLETION_TYPES

logger = logging.getLogger(__name__)

AUTO_CALCULATED_NOTE = "Auto-calculated"


class DerivedLogWriter:
    def __init__(self, log_store):
        self.log_store = log_store

    def write(
        self,
        user_id: str,
        game_id: str,
        platform_id: str,
        derived_type: str,
        percentage: int,
    ) -> Optional[object]:
        """Append a derived entry only when the value moved.

        Returns the new entry, or None when the latest derived value already
        equals ``percentage``.
        """
        if derived_type not in DERIVED_COMPLETION_TYPES:
            raise ValueError(f"Unsupported derived completion type: {derived_type}")

        last = self.log_store.latest(user_id, game_id, platform_id, derived_type)
        if last is not None and last.percentage == percentage:
            logger.debug(
                "derived %s unchanged at %s for user=%s game=%s platform=%s",
                derived_type,
                percentage,
                user_id,
                game_id,
                platform_id,
            )
            return None

        entry = self.log_store.append(
            user_id=user_id,
            game_id=game_id,
            platform_id=platform_id,
            completion_type=derived_type,
            percentage=percentage,
            notes=AUTO_CALCULATED_NOTE,
        )
        logger.info(
            "derived %s logged %s -> %s for user=%s game=%s platform=%s",
            derived_type,
            last.percentage if last is not None else None,
            percentage,
            user_id,
            game_id,
            platform_id,
        )
        return entry

    def write_all(self, user_id: str, game_id: str, platform_id: str, progress) -> list:
        written = []
        for derived_type, value in (("full", progress.full), ("completionist", progress.completionist)):
            entry = self.write(user_id, game_id, platform_id, derived_type, value)
            if entry is not None:
                written.append(entry)
        return written
