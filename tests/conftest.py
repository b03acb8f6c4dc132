"""Shared test fixtures for RaceDesk."""

from datetime import date, datetime
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from racedesk.models.database import Base
from racedesk.records import RawRunnerRecord, ResultRecord, ScratchingRecord

RACE_DATE = date(2026, 2, 7)
PRECEDENCE = ["puntingform", "rvo", "ttr", "tab"]


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def race_date() -> date:
    return RACE_DATE


@pytest.fixture
def precedence() -> list[str]:
    return list(PRECEDENCE)


@pytest.fixture
def rosehill_r5_records() -> list[RawRunnerRecord]:
    """Backbone field plus ratings and market lines for Rosehill R5.

    Ratings spell "Dont Tell Me" without the apostrophe and omit tab numbers;
    the market feed knows the venue as "Rosehill Gardens".
    """
    backbone = [
        RawRunnerRecord("puntingform", "Rosehill", 5, "Fast Lane", tab_number=1, jockey="J. McDonald"),
        RawRunnerRecord("puntingform", "Rosehill", 5, "Zaaki (GB)", tab_number=2, jockey="T. Berry"),
        RawRunnerRecord("puntingform", "Rosehill", 5, "Sun-Hat", tab_number=3, trainer="C. Waller"),
        RawRunnerRecord("puntingform", "Rosehill", 5, "Don't Tell Me", tab_number=4, jockey="N. Rawiller"),
    ]
    ratings = [
        RawRunnerRecord("rvo", "Rosehill", 5, "Fast Lane", rating=95.0, price=6.0),
        RawRunnerRecord("rvo", "Rosehill", 5, "Zaaki", rating=130.0, price=2.5),
        RawRunnerRecord("rvo", "Rosehill", 5, "Sun Hat", rating=80.0, price=12.0),
        RawRunnerRecord("rvo", "Rosehill", 5, "Dont Tell Me", rating=118.0, price=3.40),
    ]
    market = [
        RawRunnerRecord("tab", "Rosehill Gardens", 5, "FAST LANE", tab_number=1, win_price=5.5, place_price=1.9),
        RawRunnerRecord("tab", "Rosehill Gardens", 5, "ZAAKI", tab_number=2, win_price=2.6, place_price=1.3),
        RawRunnerRecord("tab", "Rosehill Gardens", 5, "DON'T TELL ME", tab_number=4, win_price=3.6, place_price=1.5),
    ]
    return backbone + ratings + market


@pytest.fixture
def dont_tell_me_scratching() -> ScratchingRecord:
    return ScratchingRecord(
        track="Rosehill",
        race_number=5,
        horse_name="Don't Tell Me",
        tab_number=4,
        reason="Lame",
        timestamp=datetime(2026, 2, 7, 11, 30),
    )


@pytest.fixture
def rosehill_r5_results() -> list[ResultRecord]:
    return [
        ResultRecord("Rosehill", 5, "Zaaki", finishing_position=1, starting_price=2.8, margin_to_winner=0.0),
        ResultRecord("Rosehill", 5, "Fast Lane", finishing_position=2, starting_price=5.0, margin_to_winner=1.2),
        ResultRecord("Rosehill", 5, "Sun Hat", finishing_position=3, starting_price=15.0, margin_to_winner=2.5),
    ]
