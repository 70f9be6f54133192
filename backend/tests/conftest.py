import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from tournament_scheduler.database import get_session  # noqa: E402
from tournament_scheduler.main import app  # noqa: E402
from tournament_scheduler.models.roster_player import RosterPlayer  # noqa: E402
from tournament_scheduler.models.team import TEAM_APPROVED, Team  # noqa: E402
from tournament_scheduler.models.tournament import Tournament  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so the test session and the app share one DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are created per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on fresh tables"""
    import tournament_scheduler.models  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_tournament(session: Session):
    """Factory for tournaments with sensible defaults"""

    def _make(**overrides) -> Tournament:
        fields = {
            "name": "City Cup",
            "sport": "Football",
            "format": "knockout",
            "num_teams": 8,
            "start_datetime": datetime(2026, 11, 7, 9, 0),
            "turf_id": "turf-1",
            "created_by": "organizer-1",
        }
        fields.update(overrides)
        tournament = Tournament(**fields)
        session.add(tournament)
        session.commit()
        session.refresh(tournament)
        return tournament

    return _make


@pytest.fixture
def make_team(session: Session):
    """Factory for teams; `players` is a list of (player_name, user_id) pairs"""

    def _make(tournament: Tournament, name: str, status: str = TEAM_APPROVED, players=()) -> Team:
        team = Team(tournament_id=tournament.id, team_name=name, status=status, payment_status="paid")
        team.players = [RosterPlayer(player_name=player_name, user_id=user_id) for player_name, user_id in players]
        session.add(team)
        session.commit()
        session.refresh(team)
        return team

    return _make
