"""
Football Academy Backend — Test Configuration (conftest.py)
=============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file database (tmp_path) with all
       tables created from the ORM metadata, so tests never share state.

Fixture Hierarchy:
    engine ─┬─ db_session: AsyncSession for service-level tests and set-up
            └─ test_client: HTTPX AsyncClient whose requests use the same database

    Domain fixtures (committed rows):
        team, other_team
        admin_user, coach_user (team), parent_user, player_user
        player (on team, linked to parent_user and player_user)

    auth: auth(user) → {"Authorization": "Bearer <access token>"}
"""

import os
import tempfile
from datetime import date
from typing import AsyncGenerator

# Settings are read at import time: configure before any academy import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="academy_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_CREATE_ALL"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import academy.models  # noqa: F401
from academy.database import Base, build_engine, get_db_session
from academy.models.player import ParentChildRelationship, Player
from academy.models.team import Team
from academy.models.user import Role, User
from academy.services.security import create_access_token, hash_password

DEFAULT_PASSWORD = "secret123"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'academy.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX client talking to a fresh app instance.

    A fresh app per test also means a fresh in-memory rate limiter.
    """
    from academy.main import create_app

    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    async def _make(
        role: str,
        username: str,
        team_id=None,
        player_id=None,
        active: bool = True,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@academy.hu",
            password_hash=hash_password(password),
            full_name=username.replace("_", " ").title(),
            role=role,
            team_id=team_id,
            player_id=player_id,
            active=active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_team(db_session):
    async def _make(name: str, max_players: int = 25, **fields) -> Team:
        fields.setdefault("age_group", "U12")
        fields.setdefault("season", "2024/25")
        team = Team(name=name, max_players=max_players, **fields)
        db_session.add(team)
        await db_session.commit()
        return team

    return _make


@pytest.fixture
def make_player(db_session):
    async def _make(name: str, team_id=None, birth_date: date = date(2012, 5, 20), **fields) -> Player:
        player = Player(name=name, birth_date=birth_date, team_id=team_id, **fields)
        db_session.add(player)
        await db_session.commit()
        return player

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Domain Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def team(make_team) -> Team:
    return await make_team("U12 Eagles")


@pytest_asyncio.fixture
async def other_team(make_team) -> Team:
    return await make_team("U14 Falcons", age_group="U14")


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user(Role.ADMIN.value, "head_admin")


@pytest_asyncio.fixture
async def coach_user(make_user, team) -> User:
    return await make_user(Role.COACH.value, "coach_kovacs", team_id=team.id)


@pytest_asyncio.fixture
async def player(make_player, team) -> Player:
    return await make_player("Bence Nagy", team_id=team.id, position="forward")


@pytest_asyncio.fixture
async def parent_user(make_user, db_session, player) -> User:
    parent = await make_user(Role.PARENT.value, "parent_nagy")
    db_session.add(ParentChildRelationship(parent_id=parent.id, child_id=player.id))
    await db_session.commit()
    return parent


@pytest_asyncio.fixture
async def player_user(make_user, team, player) -> User:
    return await make_user(Role.PLAYER.value, "bence", team_id=team.id, player_id=player.id)


@pytest.fixture
def sample_png_bytes():
    """Smallest well-formed PNG header; MIME detection is mocked where it matters."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
