# tests/conftest.py
import os
import sys
import shutil
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# --- Asegurar que podemos importar 'app' desde la raíz del repo ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TMP = (ROOT / ".pytest_tmp").absolute()


def _prepare_test_env() -> None:
    # Directorio efímero limpio en cada sesión
    shutil.rmtree(TMP, ignore_errors=True)
    TMP.mkdir(exist_ok=True)

    # BD SQLite temporal para pruebas
    db_path = (TMP / "test.sqlite3").as_posix()
    os.environ["DB_URL"] = f"sqlite+aiosqlite:///{db_path}"

    os.environ["UPLOAD_DIR"] = (TMP / "uploads").as_posix()
    os.environ["ERROR_LOG_PATH"] = (TMP / "errors.log").as_posix()
    os.environ["SEED_FILE"] = (ROOT / "app" / "data" / "credentials.json").as_posix()
    os.environ["SEED_ON_STARTUP"] = "true"
    os.environ["REPORT_TITLE"] = "Test Portal"
    os.environ["REPORT_REFERENCE"] = '{"Support contact": "ops@example.com"}'


# Antes de recoger los tests: Settings y el engine leen el entorno al importarse
_prepare_test_env()


@pytest.fixture(scope="session")
def client():
    """
    Cliente de pruebas con entorno efímero:
    - BD sqlite y subidas en .pytest_tmp/
    - ENV configurado sin depender de .env
    """
    from app.main import app
    # Con 'with' forzamos lifespan: crea tablas y siembra credenciales
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def weekdays(client):
    """Días laborables reservables (desde mañana hasta hoy+60), en orden."""
    from app.services.booking import business_today
    today = business_today()
    days = [today + timedelta(days=n) for n in range(1, 61)]
    return [d for d in days if d.weekday() < 5]


@pytest.fixture(scope="session")
def next_saturday(client):
    from app.services.booking import business_today
    d = business_today() + timedelta(days=1)
    while d.weekday() != 5:
        d += timedelta(days=1)
    return d


@pytest.fixture
def seeded_credential_id(client):
    creds = client.get("/api/credentials").json()
    return creds[0]["id"]


# --- Reset de settings después de cada test (autouse) ---
@pytest.fixture(autouse=True)
def _reset_settings_between_tests():
    from app.core.config import settings
    snapshot = (settings.max_file_size, settings.environment, settings.report_reference)
    yield
    settings.max_file_size, settings.environment, settings.report_reference = snapshot
