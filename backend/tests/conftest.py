"""
Shared fixtures: in-memory SQLite, a per-test session, a TestClient with
``get_db`` overridden, caller identity headers and a small seeded planning book.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("ENABLE_REQUEST_LOGGING", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import planbook.models  # noqa: F401
from planbook.database import Base, get_db
from planbook.main import app
from planbook.schemas.key_figure import KeyFigureCreate
from planbook.schemas.planning_data import CellUpdate
from planbook.schemas.planning_version import PlanningVersionCreate
from planbook.schemas.time_setting import TimeSettingCreate
from planbook.services.key_figure_service import KeyFigureService
from planbook.services.planning_data_service import PlanningDataService
from planbook.services.time_setting_service import TimeSettingService
from planbook.services.version_service import VersionService
from planbook.utils.events import get_event_bus

USER = "planner@example.com"


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_event_bus():
    get_event_bus().clear()
    yield
    get_event_bus().clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": USER}


# ── Seed data ─────────────────────────────────────────────────────────────────

@pytest.fixture
def monthly_setting(db):
    return TimeSettingService(db).create_setting(
        TimeSettingCreate(
            name="Q1 2024",
            kind="fixed",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 31),
            time_hierarchy=["month"],
        ),
        user_id=USER,
    )


@pytest.fixture
def version(db):
    return VersionService(db).create_version(PlanningVersionCreate(name="Baseline"), user_id=USER)


@pytest.fixture
def demand(db):
    return KeyFigureService(db).register(
        KeyFigureCreate(code="DEMAND", name="Demand", kf_type="base", source_table="sales", source_field="qty"),
    )


@pytest.fixture
def demand_plus_10pct(db, demand):
    return KeyFigureService(db).register(
        KeyFigureCreate(code="DEMAND_PLUS_10PCT", name="Demand +10%", kf_type="calculated", formula="DEMAND * 1.1"),
    )


@pytest.fixture
def seeded_demand(db, version, demand):
    PlanningDataService(db).bulk_upsert(
        version.id,
        [
            CellUpdate(key_figure_id=demand.id, period="2024-01", period_type="month", value=Decimal("100")),
            CellUpdate(key_figure_id=demand.id, period="2024-02", period_type="month", value=Decimal("120")),
            CellUpdate(key_figure_id=demand.id, period="2024-03", period_type="month", value=Decimal("90")),
        ],
        user_id=USER,
    )
    return demand
