from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..models import GameAddition, UserGame, UserGameAddition, UserGameEdition


class SqlGameAdditionCatalog:
    """Read-only DLC and edition metadata per game."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, addition_id: str) -> Optional[GameAddition]:
        return self.db.query(GameAddition).filter(GameAddition.id == addition_id).first()

    def find_for_game(self, game_id: str, addition_id: str) -> Optional[GameAddition]:
        return (
            self.db.query(GameAddition)
            .filter(GameAddition.id == addition_id, GameAddition.game_id == game_id)
            .first()
        )

    def dlcs(self, game_id: str) -> list[GameAddition]:
        return (
            self.db.query(GameAddition)
            .filter(GameAddition.game_id == game_id, GameAddition.addition_type == "dlc")
            .order_by(GameAddition.created_at.asc(), GameAddition.id.asc())
            .all()
        )


class SqlOwnershipStore:
    def __init__(self, db: Session):
        self.db = db

    def edition_for(self, user_id: str, game_id: str, platform_id: str) -> Optional[str]:
        row = (
            self.db.query(UserGameEdition)
            .filter(
                UserGameEdition.user_id == user_id,
                UserGameEdition.game_id == game_id,
                UserGameEdition.platform_id == platform_id,
            )
            .first()
        )
        return row.edition_id if row else None

    def owned_addition_ids(self, user_id: str, game_id: str, platform_id: str) -> set[str]:
        rows = (
            self.db.query(UserGameAddition.addition_id)
            .filter(
                UserGameAddition.user_id == user_id,
                UserGameAddition.game_id == game_id,
                UserGameAddition.platform_id == platform_id,
                UserGameAddition.owned.is_(True),
            )
            .all()
        )
        return {row.addition_id for row in rows}


class SqlLibraryStore:
    def __init__(self, db: Session):
        self.db = db

    def has_game(self, user_id: str, game_id: str, platform_id: str) -> bool:
        return (
            self.db.query(UserGame.id)
            .filter(
                UserGame.user_id == user_id,
                UserGame.game_id == game_id,
                UserGame.platform_id == platform_id,
            )
            .first()
            is not None
        )
