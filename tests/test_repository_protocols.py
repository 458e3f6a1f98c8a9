"""Both registry implementations satisfy the repository protocol."""

from __future__ import annotations

from fastapi.testclient import TestClient

from cohort.core.config import AuditConfig, DatabaseConfig, Settings
from cohort.db.engine import DatabaseManager
from cohort.registration.store import RegistryStore
from cohort.repositories.postgres.registry import PostgresRegistryRepository
from cohort.repositories.protocols import RegistryRepository
from cohort.verification.delivery import CodeDelivery, LoggingCodeDelivery
from cohort.web.app import create_app
from tests.conftest import registration_payload


def test_memory_store_satisfies_protocol():
    assert isinstance(RegistryStore(), RegistryRepository)


async def test_sql_repository_satisfies_protocol():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    try:
        assert isinstance(PostgresRegistryRepository(db), RegistryRepository)
    finally:
        await db.close()


def test_logging_delivery_satisfies_protocol():
    assert isinstance(LoggingCodeDelivery(), CodeDelivery)


def test_app_uses_sql_repository_when_configured(tmp_path):
    settings = Settings(
        db=DatabaseConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'cohort.db'}"),
        audit=AuditConfig(log_dir=str(tmp_path / "audit")),
    )
    app = create_app(settings=settings)
    assert isinstance(app.state.repository, PostgresRegistryRepository)


def test_sql_backed_app_registers(tmp_path):
    settings = Settings(
        db=DatabaseConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'cohort.db'}"),
        audit=AuditConfig(log_dir=str(tmp_path / "audit")),
    )
    with TestClient(create_app(settings=settings)) as client:
        sent = client.post(
            "/api/verification/send", json={"identifier": "ada@example.com", "method": "email"}
        ).json()
        resp = client.post("/api/trainees/register", json=registration_payload(sent["code"]))
        assert resp.status_code == 200
        assert resp.json()["data"]["tagNumber"] == "001"
        assert client.get("/api/health").json()["storage"] == "PostgresRegistryRepository"
