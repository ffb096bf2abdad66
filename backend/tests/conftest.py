"""
Pytest configuration and shared fixtures.

Settings are read once and cached, so the environment must be prepared
before anything under ``app`` is imported.
"""

import os
import sys
from pathlib import Path

import pytest

os.environ["ECO_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ECO_SECRET_KEY"] = "test_secret_key_at_least_32_characters_long"
os.environ["ECO_SCHEDULER_ENABLED"] = "false"
os.environ["ECO_SESSION_COOKIE_SECURE"] = "false"
os.environ["ECO_LOG_LEVEL"] = "WARNING"

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point export, backup and upload directories at a per-test folder."""
    from app.core.config import get_settings

    settings = get_settings()
    monkeypatch.setattr(settings, "export_dir", str(tmp_path / "exports"))
    monkeypatch.setattr(settings, "backup_dir", str(tmp_path / "backups"))
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path / "uploads"))
    return tmp_path


@pytest.fixture
async def db_session():
    """
    Provide a database session for tests.

    Creates tables before the test and drops them afterwards.
    """
    from app import models  # noqa: F401 - registers tables
    from app.db.base import Base
    from app.db.session import async_session_factory, engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session):
    """HTTP client bound to the ASGI app; shares the in-memory database."""
    from httpx import ASGITransport, AsyncClient

    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
def make_user(db_session):
    """Create a committed user with the given role."""
    from app.models.enums import Role
    from app.schemas.user import UserCreate
    from app.services.users import create_user

    async def _make(email: str = "user@example.com", password: str = "password123", role: Role = Role.OBSERVER):
        user = await create_user(db_session, UserCreate(email=email, password=password, role=role))
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def login(client, make_user):
    """Create a user and log the shared client in as that user."""
    from app.models.enums import Role

    async def _login(role: Role = Role.OBSERVER, email: str | None = None):
        email = email or f"{role.value.lower()}@example.com"
        user = await make_user(email=email, role=role)
        response = await client.post("/api/auth/login", json={"email": email, "password": "password123"})
        assert response.status_code == 200, response.text
        return user

    return _login


@pytest.fixture
def make_station_with_sensor(db_session):
    """Create a committed station with one sensor of the requested type."""
    from app.models.enums import SensorType
    from app.schemas.station import SensorCreate, StationCreate
    from app.services.sensors import create_sensor
    from app.services.stations import create_station

    async def _make(
        sensor_type: SensorType = SensorType.TEMPERATURE,
        serial_number: str = "SN-001",
        latitude: float = 50.45,
        longitude: float = 30.52,
        name: str = "Kyiv Center",
    ):
        station = await create_station(db_session, StationCreate(name=name, latitude=latitude, longitude=longitude))
        sensor = await create_sensor(
            db_session,
            SensorCreate(station_id=station.id, type=sensor_type, name="Probe", serial_number=serial_number),
        )
        await db_session.commit()
        return station, sensor

    return _make
