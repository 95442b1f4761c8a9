import os
import tempfile
from pathlib import Path

# The app reads its settings at import time, so point it at a throwaway
# SQLite file before anything under app/ is imported.
_tmpdir = tempfile.mkdtemp(prefix="estetica-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_tmpdir) / 'estetica.db'}"
os.environ["APP_ENV"] = "test"
os.environ["SEED_SERVICES"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db.session import Base, create_db, engine  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def _schema():
    create_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def cliente(client):
    r = client.post("/clients", json={
        "full_name": "Ana Silva",
        "email": "ana.silva@gmail.com",
        "phone": "(11) 99999-0001",
    })
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def servico(client):
    r = client.post("/services", json={
        "name": "Limpeza de Pele",
        "category": "Estética Facial",
        "price": 120.00,
        "duration_minutes": 60,
    })
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def agendar(client):
    """Book an appointment through the API and return the response."""
    def _agendar(client_id, service_id, appointment_date="2025-01-15", appointment_time="10:00", **extra):
        body = {
            "client_id": client_id,
            "service_id": service_id,
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
        }
        body.update(extra)
        return client.post("/appointments", json=body)
    return _agendar
