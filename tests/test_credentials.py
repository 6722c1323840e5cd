# tests/test_credentials.py
import json
from pathlib import Path

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

SEED = json.loads((Path(__file__).resolve().parent.parent / "app" / "data" / "credentials.json").read_text())


def _credential_by_name(client, name):
    return next(c for c in client.get("/api/credentials").json() if c["name"] == name)


def test_seeded_credentials_listed_in_id_order(client):
    r = client.get("/api/credentials")
    assert r.status_code == 200
    creds = r.json()
    names = {c["name"] for c in creds}
    assert {s["name"] for s in SEED} <= names
    ids = [c["id"] for c in creds]
    assert ids == sorted(ids)
    for key in ("id", "name", "description", "instructions", "status", "credential_data",
                "file_path", "file_type", "created_at", "updated_at"):
        assert key in creds[0]


def test_get_one_and_not_found(client):
    cred = _credential_by_name(client, "AWS S3 Credentials")
    r = client.get(f"/api/credentials/{cred['id']}")
    assert r.status_code == 200
    assert r.json()["name"] == "AWS S3 Credentials"

    r = client.get("/api/credentials/999999")
    assert r.status_code == 404
    assert r.json()["error"] == "Credential not found"


def test_non_integer_id_is_bad_request(client):
    r = client.get("/api/credentials/abc")
    assert r.status_code == 400
    assert "error" in r.json()


def test_upload_text_completes_credential(client):
    cred = _credential_by_name(client, "Pinecone Account Setup")
    assert cred["status"] == "needed"
    assert cred["credential_data"] is None

    r = client.post(f"/api/credentials/{cred['id']}/upload", data={"credential_text": "abc123"})
    assert r.status_code == 200
    out = r.json()
    assert out["status"] == "completed"
    assert out["credential_data"] == "abc123"
    assert out["file_path"] is None
    assert out["file_type"] is None

    # Persistido
    again = client.get(f"/api/credentials/{cred['id']}").json()
    assert again["status"] == "completed"
    assert again["credential_data"] == "abc123"


def test_upload_file_wins_over_text(client):
    cred = _credential_by_name(client, "Database Access Credentials")
    r = client.post(
        f"/api/credentials/{cred['id']}/upload",
        data={"credential_text": "ignored"},
        files={"file": ("db.txt", b"postgresql://u:p@host:5432/db", "text/plain")},
    )
    assert r.status_code == 200
    out = r.json()
    assert out["status"] == "completed"
    assert out["credential_data"] == "File uploaded: db.txt"
    assert out["file_type"] == "text/plain"
    stored = Path(out["file_path"])
    assert stored.exists()
    assert stored.parent == Path(settings.upload_dir)
    assert stored.name.endswith("-db.txt")
    assert stored.read_bytes() == b"postgresql://u:p@host:5432/db"


def test_reupload_overwrites_previous_fulfillment(client):
    cred = _credential_by_name(client, "Email Service Configuration")
    client.post(
        f"/api/credentials/{cred['id']}/upload",
        files={"file": ("smtp.pdf", b"%PDF-1.4 fake", "application/pdf")},
    )
    r = client.post(f"/api/credentials/{cred['id']}/upload", data={"credential_text": "smtp://mail:587"})
    assert r.status_code == 200
    out = r.json()
    assert out["credential_data"] == "smtp://mail:587"
    assert out["file_path"] is None
    assert out["file_type"] is None


def test_upload_without_data_fails(client):
    cred = _credential_by_name(client, "Render Account Setup")
    r = client.post(f"/api/credentials/{cred['id']}/upload", data={"credential_text": ""})
    assert r.status_code == 400
    assert r.json()["error"] == "No credential data provided (send a file or non-blank text)"

    # Solo espacios cuenta como vacío, y el mensaje lo dice
    r = client.post(f"/api/credentials/{cred['id']}/upload", data={"credential_text": "   "})
    assert r.status_code == 400
    assert "non-blank text" in r.json()["error"]

    assert client.get(f"/api/credentials/{cred['id']}").json()["status"] == "needed"


def test_upload_to_unknown_credential_is_not_found(client):
    r = client.post("/api/credentials/999999/upload", data={"credential_text": "abc123"})
    assert r.status_code == 404
    assert r.json()["error"] == "Credential not found"


def test_upload_rejects_disallowed_type(client):
    cred = _credential_by_name(client, "Render Account Setup")
    r = client.post(
        f"/api/credentials/{cred['id']}/upload",
        files={"file": ("tool.exe", b"MZ\x90\x00", "application/octet-stream")},
    )
    assert r.status_code == 400
    assert "Invalid file type" in r.json()["error"]
    assert client.get(f"/api/credentials/{cred['id']}").json()["status"] == "needed"


def test_upload_rejects_oversized_file_and_leaves_nothing_on_disk(client):
    cred = _credential_by_name(client, "Render Account Setup")
    settings.max_file_size = 16
    before = set(Path(settings.upload_dir).iterdir())

    r = client.post(
        f"/api/credentials/{cred['id']}/upload",
        files={"file": ("big.png", b"\x89PNG" + b"0" * 64, "image/png")},
    )
    assert r.status_code == 400
    assert "File too large" in r.json()["error"]
    assert set(Path(settings.upload_dir).iterdir()) == before
    assert client.get(f"/api/credentials/{cred['id']}").json()["status"] == "needed"


def test_unsafe_filename_is_sanitised(client):
    cred = _credential_by_name(client, "AWS S3 Credentials")
    r = client.post(
        f"/api/credentials/{cred['id']}/upload",
        files={"file": ("../../etc/aws keys.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert r.status_code == 200
    stored = Path(r.json()["file_path"])
    assert stored.parent == Path(settings.upload_dir)
    assert stored.name.endswith("-aws_keys.jpg")


def test_completed_iff_credential_data_present(client):
    for c in client.get("/api/credentials").json():
        assert (c["status"] == "completed") == (c["credential_data"] is not None)


def test_failed_commit_removes_stored_file(monkeypatch, client):
    cred = _credential_by_name(client, "Render Account Setup")
    before = set(Path(settings.upload_dir).iterdir())

    async def _commit_fails(self):
        raise OperationalError("UPDATE credentials", {}, Exception("database is locked"))

    monkeypatch.setattr(AsyncSession, "commit", _commit_fails)
    r = client.post(
        f"/api/credentials/{cred['id']}/upload",
        files={"file": ("render.txt", b"render-admin-invite", "text/plain")},
    )
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to upload credential"
    assert set(Path(settings.upload_dir).iterdir()) == before
    assert client.get(f"/api/credentials/{cred['id']}").json()["status"] == "needed"
