"""
Shared fixtures for the KartRank test suite.

Orchestrator tests run against a throwaway SQLite database per test, created
through Database.initialize() so the track catalog is seeded the same way it
is in production.
"""

import os
import random
import tempfile
from datetime import datetime, timedelta, timezone

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "kartrank-test-logs"))

import pytest
import pytest_asyncio

from kartrank.database.database import Database
from kartrank.database.match_operations import MatchOperations
from kartrank.operations.tournament_operations import TournamentOperations
from kartrank.services.notification_service import NotificationService


class FakeClock:
    """Returns strictly increasing timestamps, one minute apart"""
    
    def __init__(self, start: datetime = None):
        self.current = start or datetime(2026, 3, 1, 19, 0, tzinfo=timezone.utc)
    
    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'kartrank_test.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def group(db):
    return await db.create_group("Friday Night Karts")


@pytest_asyncio.fixture
async def players(db, group):
    """Four players with distinct all-time ratings, strongest first"""
    ratings = [("Alice", 1400), ("Bob", 1300), ("Carol", 1200), ("Dave", 1100)]
    return [await db.create_player(group.id, name, elo) for name, elo in ratings]


@pytest_asyncio.fixture
async def tournament(db, group):
    return await db.create_tournament(group.id)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifications():
    service = NotificationService()
    service.received = []
    service.subscribe(service.received.append)
    return service


@pytest.fixture
def match_ops(db, notifications, clock):
    return MatchOperations(db, notifications=notifications, clock=clock, rng=random.Random(42))


@pytest.fixture
def tournament_ops(db, clock):
    return TournamentOperations(db, clock=clock)
