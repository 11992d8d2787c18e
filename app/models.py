import uuid
from datetime import datetime
from sqlalchemy import (
    CheckConstraint,
    Column,
    String,
    DateTime,
    Float,
    Integer,
    Boolean,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


COMPLETION_TYPES = ("main", "dlc", "full", "completionist")
DERIVED_COMPLETION_TYPES = ("full", "completionist")
ADDITION_TYPES = ("dlc", "edition", "other")
GAME_STATUSES = ("backlog", "playing", "finished", "completed", "dropped")


def _one_of(column: str, values: tuple) -> str:
    return f"{column} IN ({', '.join(repr(value) for value in values)})"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    display_name = Column(String(120), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)

    library = relationship("UserGame", back_populates="user", cascade="all, delete")
    completion_logs = relationship("CompletionLog", back_populates="user", cascade="all, delete")
    achievements = relationship("UserAchievement", back_populates="user", cascade="all, delete")


class Platform(Base):
    __tablename__ = "platforms"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    additions = relationship("GameAddition", back_populates="game", cascade="all, delete")
    achievements = relationship("Achievement", back_populates="game", cascade="all, delete")


class UserGame(Base):
    __tablename__ = "user_games"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", "platform_id", name="uq_user_game_platform"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="library")
    game = relationship("Game")
    platform = relationship("Platform")


class GameAddition(Base):
    __tablename__ = "game_additions"
    __table_args__ = (
        CheckConstraint("weight > 0", name="ck_game_addition_weight_positive"),
        CheckConstraint(_one_of("addition_type", ADDITION_TYPES), name="ck_game_addition_type"),
        Index("idx_game_additions_game", "game_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    name = Column(String(200), nullable=False)
    addition_type = Column(String(20), nullable=False, default="dlc")
    is_complete_edition = Column(Boolean, default=False, nullable=False)
    weight = Column(Float, default=1.0, nullable=False)
    required_for_full = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    game = relationship("Game", back_populates="additions")


class UserGameEdition(Base):
    __tablename__ = "user_game_editions"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", "platform_id", name="uq_user_game_edition"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=False)
    edition_id = Column(String(36), ForeignKey("game_additions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    edition = relationship("GameAddition")


class UserGameAddition(Base):
    __tablename__ = "user_game_additions"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "game_id", "platform_id", "addition_id", name="uq_user_game_addition"
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=False)
    addition_id = Column(String(36), ForeignKey("game_additions.id"), nullable=False)
    owned = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    addition = relationship("GameAddition")


class UserGameProgress(Base):
    __tablename__ = "user_game_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", "platform_id", name="uq_user_game_progress"),
        CheckConstraint(_one_of("status", GAME_STATUSES), name="ck_user_game_progress_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=False)
    status = Column(String(20), nullable=False, default="backlog")
    completion_percentage = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CompletionLog(Base):
    __tablename__ = "completion_logs"
    __table_args__ = (
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_completion_log_percentage"),
        CheckConstraint(_one_of("completion_type", COMPLETION_TYPES), name="ck_completion_log_type"),
        Index("idx_completion_logs_lookup", "user_id", "game_id", "platform_id", "completion_type"),
        Index("idx_completion_logs_date", "logged_at"),
        Index("idx_completion_logs_dlc", "dlc_id"),
    )

    # integer ids break logged_at ties so "latest" is always deterministic
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=False)
    completion_type = Column(String(20), nullable=False, default="main")
    dlc_id = Column(String(36), ForeignKey("game_additions.id"), nullable=True)
    percentage = Column(Integer, nullable=False)
    logged_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="completion_logs")
    game = relationship("Game")
    platform = relationship("Platform")
    dlc = relationship("GameAddition")

    @property
    def game_name(self):
        return self.game.name if self.game else None

    @property
    def platform_name(self):
        return self.platform.name if self.platform else None

    @property
    def dlc_name(self):
        return self.dlc.name if self.dlc else None


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(String(36), primary_key=True, default=generate_id)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    platform_id = Column(String(36), ForeignKey("platforms.id"), nullable=True)
    key = Column(String(120), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    game = relationship("Game", back_populates="achievements")


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    achievement_id = Column(String(36), ForeignKey("achievements.id"), nullable=False)
    unlocked = Column(Boolean, default=False, nullable=False)
    unlocked_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="achievements")
    achievement = relationship("Achievement")
