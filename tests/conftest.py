"""
Shared fixtures for the completion progress test suite.

Unit tests drive the engine through in-memory doubles of each store; the
integration tests run the SQLAlchemy stores and the FastAPI app against an
in-memory SQLite database.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import datetime, timedelta
from itertools import count
from types import SimpleNamespace
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

from app.core.config import ALGORITHM, SECRET_KEY
from app.db import Base, engine, get_db
from app.main import app
from app.models import Game, GameAddition, Platform, User, UserGame
from app.services.completion_engine import CompletionProgressEngine
from app.services.progress_calculator import NO_ACHIEVEMENTS, AchievementTotals


# ============================================================================
# IN-MEMORY STORE DOUBLES (unit tests)
# ============================================================================


class FakeLogStore:
    """Append-only log kept in a list; "latest" is the newest by time then id."""

    def __init__(self):
        self.entries: list[SimpleNamespace] = []
        self._ids = count(1)
        self._clock = datetime(2024, 1, 1)

    def append(
        self,
        *,
        user_id,
        game_id,
        platform_id,
        completion_type,
        percentage,
        dlc_id=None,
        notes=None,
        logged_at=None,
    ):
        self._clock += timedelta(seconds=1)
        entry = SimpleNamespace(
            id=next(self._ids),
            user_id=user_id,
            game_id=game_id,
            platform_id=platform_id,
            completion_type=completion_type,
            dlc_id=dlc_id,
            percentage=percentage,
            notes=notes,
            logged_at=logged_at or self._clock,
        )
        self.entries.append(entry)
        return entry

    def latest(self, user_id, game_id, platform_id, completion_type, dlc_id=None):
        matches = [
            entry
            for entry in self.entries
            if entry.user_id == user_id
            and entry.game_id == game_id
            and entry.platform_id == platform_id
            and entry.completion_type == completion_type
            and entry.dlc_id == dlc_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda entry: (entry.logged_at, entry.id))

    def get_for_user(self, log_id, user_id, game_id):
        for entry in self.entries:
            if entry.id == log_id and entry.user_id == user_id and entry.game_id == game_id:
                return entry
        return None

    def delete(self, entry):
        self.entries.remove(entry)

    def of_type(self, completion_type):
        return [entry for entry in self.entries if entry.completion_type == completion_type]


class FakeCatalog:
    def __init__(self, additions=()):
        self.additions = list(additions)

    def get(self, addition_id):
        return next((a for a in self.additions if a.id == addition_id), None)

    def find_for_game(self, game_id, addition_id):
        addition = self.get(addition_id)
        if addition is not None and addition.game_id == game_id:
            return addition
        return None

    def dlcs(self, game_id):
        return [a for a in self.additions if a.game_id == game_id and a.addition_type == "dlc"]


class FakeOwnershipStore:
    def __init__(self, edition_id: Optional[str] = None, owned=()):
        self.edition_id = edition_id
        self.owned = set(owned)

    def edition_for(self, user_id, game_id, platform_id):
        return self.edition_id

    def owned_addition_ids(self, user_id, game_id, platform_id):
        return set(self.owned)


class FakeAchievements:
    def __init__(self, total=0, completed=0, unlocks=()):
        self.total = total
        self.completed = completed
        self.unlocks = list(unlocks)

    def totals(self, user_id, game_id, platform_id):
        if self.total <= 0:
            return NO_ACHIEVEMENTS
        return AchievementTotals(total=self.total, completed=self.completed)

    def unlock_times(self, user_id, game_id, platform_id):
        return list(self.unlocks)


class BrokenAchievements:
    def totals(self, user_id, game_id, platform_id):
        raise ConnectionError("achievement backend unreachable")

    def unlock_times(self, user_id, game_id, platform_id):
        raise ConnectionError("achievement backend unreachable")


class FakeProgressStore:
    def __init__(self, status: Optional[str] = None):
        self.status = status
        self.completion_percentage = 0
        self.status_writes: list[str] = []

    def get_status(self, user_id, game_id, platform_id):
        return self.status

    def upsert_status(self, user_id, game_id, platform_id, status):
        self.status = status
        self.status_writes.append(status)

    def upsert_completion_percentage(self, user_id, game_id, platform_id, percentage):
        self.completion_percentage = percentage


class FakeLibrary:
    def __init__(self, games=()):
        self.games = set(games)

    def has_game(self, user_id, game_id, platform_id):
        return (user_id, game_id, platform_id) in self.games


def make_addition(
    addition_id,
    *,
    game_id="game-1",
    weight=1,
    required_for_full=True,
    addition_type="dlc",
    is_complete_edition=False,
    name=None,
):
    return SimpleNamespace(
        id=addition_id,
        game_id=game_id,
        name=name or addition_id,
        weight=weight,
        required_for_full=required_for_full,
        addition_type=addition_type,
        is_complete_edition=is_complete_edition,
    )


USER_ID = "user-1"
GAME_ID = "game-1"
PLATFORM_ID = "platform-1"


def wire_engine(
    *,
    additions=(),
    edition_id=None,
    owned=(),
    achievements=None,
    status=None,
    in_library=True,
):
    """Wire a CompletionProgressEngine over fresh in-memory stores."""
    stores = SimpleNamespace(
        log_store=FakeLogStore(),
        catalog=FakeCatalog(additions),
        ownership=FakeOwnershipStore(edition_id=edition_id, owned=owned),
        achievements=achievements if achievements is not None else FakeAchievements(),
        progress=FakeProgressStore(status=status),
        library=FakeLibrary([(USER_ID, GAME_ID, PLATFORM_ID)] if in_library else []),
    )
    stores.engine = CompletionProgressEngine(
        log_store=stores.log_store,
        catalog=stores.catalog,
        ownership_store=stores.ownership,
        achievements=stores.achievements,
        progress_store=stores.progress,
        library=stores.library,
    )
    return stores


# ============================================================================
# DATABASE FIXTURES (integration tests)
# ============================================================================


TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded(db_session):
    """A user owning one game on one platform, plus one required DLC."""
    user = User(id="user-1", email="player@example.com", username="player")
    other = User(id="user-2", email="other@example.com", username="other")
    platform = Platform(id="platform-1", name="PC")
    game = Game(id="game-1", name="Hollow Depths")
    dlc = GameAddition(
        id="dlc-1",
        game_id="game-1",
        name="Abyssal Tides",
        addition_type="dlc",
        weight=1.0,
        required_for_full=True,
    )
    db_session.add_all([user, other, platform, game, dlc])
    db_session.add(UserGame(user_id="user-1", game_id="game-1", platform_id="platform-1"))
    db_session.add(UserGame(user_id="user-2", game_id="game-1", platform_id="platform-1"))
    db_session.commit()
    return SimpleNamespace(user=user, other=other, platform=platform, game=game, dlc=dlc)


def make_token(user_id: str) -> str:
    return jwt.encode({"sub": user_id}, SECRET_KEY, algorithm=ALGORITHM)


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def wire():
    return wire_engine


@pytest.fixture
def addition():
    return make_addition


@pytest.fixture
def broken_achievements():
    return BrokenAchievements()


@pytest.fixture
def achievements():
    return FakeAchievements


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {make_token('user-2')}"}
