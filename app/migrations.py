import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from .db import engine as default_engine

logger = logging.getLogger(__name__)


def _bool_default(bind: Engine, value: bool) -> str:
    if bind.dialect.name == "postgresql":
        return "TRUE" if value else "FALSE"
    return "1" if value else "0"


def _timestamp_type(bind: Engine) -> str:
    return "TIMESTAMP" if bind.dialect.name == "postgresql" else "DATETIME"


def ensure_schema(bind: Engine | None = None) -> list[str]:
    """Add columns introduced after a table was first created.

    Only additive ALTERs; returns the statements that were applied.
    """
    bind = bind or default_engine
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())
    timestamp_type = _timestamp_type(bind)
    applied: list[str] = []

    if "user_game_progress" in tables:
        columns = {col["name"] for col in inspector.get_columns("user_game_progress")}
        alters = []
        if "completion_percentage" not in columns:
            alters.append(
                "ALTER TABLE user_game_progress ADD COLUMN completion_percentage INTEGER DEFAULT 0"
            )
        if "started_at" not in columns:
            alters.append(f"ALTER TABLE user_game_progress ADD COLUMN started_at {timestamp_type}")
        if "completed_at" not in columns:
            alters.append(f"ALTER TABLE user_game_progress ADD COLUMN completed_at {timestamp_type}")
        if "updated_at" not in columns:
            alters.append(f"ALTER TABLE user_game_progress ADD COLUMN updated_at {timestamp_type}")
        applied.extend(_apply_alters(bind, alters))

    if "game_additions" in tables:
        columns = {col["name"] for col in inspector.get_columns("game_additions")}
        alters = []
        if "weight" not in columns:
            alters.append("ALTER TABLE game_additions ADD COLUMN weight REAL DEFAULT 1")
        if "required_for_full" not in columns:
            alters.append(
                "ALTER TABLE game_additions ADD COLUMN required_for_full BOOLEAN "
                f"DEFAULT {_bool_default(bind, True)}"
            )
        if "is_complete_edition" not in columns:
            alters.append(
                "ALTER TABLE game_additions ADD COLUMN is_complete_edition BOOLEAN "
                f"DEFAULT {_bool_default(bind, False)}"
            )
        applied.extend(_apply_alters(bind, alters))

    if "completion_logs" in tables:
        columns = {col["name"] for col in inspector.get_columns("completion_logs")}
        alters = []
        if "notes" not in columns:
            alters.append("ALTER TABLE completion_logs ADD COLUMN notes TEXT")
        if "dlc_id" not in columns:
            alters.append("ALTER TABLE completion_logs ADD COLUMN dlc_id VARCHAR(36)")
        applied.extend(_apply_alters(bind, alters))

    return applied


def _apply_alters(bind: Engine, statements: list[str]) -> list[str]:
    if not statements:
        return []
    with bind.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
            logger.info("schema migration applied: %s", statement)
    return statements
