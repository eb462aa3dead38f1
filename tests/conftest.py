"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import get_db
# Import all models to ensure all tables are created
from app.db.models import Base, Building, FinancialSnapshot


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def test_building(db_session):
    """Create a test building."""
    building = Building(
        name="Edificio Serrano",
        address="Calle de Serrano 45",
        city="Madrid",
        postal_code="28001",
        market_value=2_000_000,
        estimated_value=2_300_000,
        rehabilitation_cost=150_000,
    )
    db_session.add(building)
    db_session.commit()
    db_session.refresh(building)
    return building


@pytest.fixture
def test_snapshot(db_session, test_building):
    """Create a financial snapshot for the test building."""
    snapshot = FinancialSnapshot(
        building_id=test_building.id,
        period_start=date(2024, 1, 1),
        period_end=date(2024, 12, 31),
        currency="EUR",
        gross_annual_revenue=180_000,
        other_annual_revenue=20_000,
        total_annual_opex=60_000,
        annual_energy_opex=24_000,
        annual_debt_service=70_000,
        estimated_rehab_capex=150_000,
        estimated_energy_savings_pct=25,
        estimated_price_uplift_pct=10,
    )
    db_session.add(snapshot)
    db_session.commit()
    db_session.refresh(snapshot)
    return snapshot
