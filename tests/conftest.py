"""
Shared test fixtures: in-memory SQLite database, baseline conveyor inputs.
"""

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENFORCE_PCI_CHECKS"] = "false"

from conveyor.database import Base
from conveyor import models  # noqa: F401


# One in-memory database shared by every session in a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def base_inputs():
    """A valid 10 ft × 24" sliderbed in belt speed mode."""
    return {
        "conveyor_length_cc_in": 120,
        "belt_width_in": 24,
        "conveyor_incline_deg": 0,
        "drive_pulley_diameter_in": 4,
        "tail_pulley_diameter_in": 4,
        "speed_mode": "belt_speed",
        "belt_speed_fpm": 50,
        "part_weight_lbs": 5,
        "part_length_in": 12,
        "part_width_in": 6,
        "part_spacing_in": 6,
        "orientation": "Lengthwise",
    }
