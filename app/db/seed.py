# app/db/seed.py
import json
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import logger
from app.db.models import Credential, CREDENTIAL_NEEDED

_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def load_seed_credentials(path: str) -> list[dict]:
    """
    Lee la lista de credenciales iniciales del JSON.
    Devuelve [] si el fichero no existe; un JSON mal formado sí es un error.
    """
    seed_path = Path(path)
    if not seed_path.exists():
        logger.warning(f"Seed file '{path}' not found, skipping credential seed")
        return []

    try:
        data = json.loads(seed_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.critical(f"Invalid JSON in seed file '{path}': {e}")
        raise ValueError(f"Invalid JSON in seed file: {e}")

    if not isinstance(data, list):
        raise ValueError("Seed file must contain a JSON list of credentials")
    return data


async def seed_credentials(session: AsyncSession, entries: list[dict]) -> int:
    """
    Inserta las credenciales con INSERT ... ON CONFLICT (name) DO NOTHING.
    Varios procesos pueden sembrar a la vez: la restricción UNIQUE decide y
    el que llega tarde simplemente inserta 0 filas.
    """
    now = datetime.now(timezone.utc)
    rows = [
        {
            "name": entry["name"],
            "description": entry.get("description"),
            "instructions": entry.get("instructions"),
            "status": CREDENTIAL_NEEDED,
            "created_at": now,
            "updated_at": now,
        }
        for entry in entries
        if entry.get("name")
    ]
    if not rows:
        return 0

    dialect = session.get_bind().dialect.name
    if dialect not in _UPSERT_INSERTS:
        raise ValueError(f"Unsupported database dialect for seeding: {dialect}")

    stmt = _UPSERT_INSERTS[dialect](Credential).values(rows).on_conflict_do_nothing(index_elements=["name"])
    res = await session.execute(stmt)
    await session.commit()

    added = max(res.rowcount or 0, 0)
    logger.info(f"Credentials seeded ({added} new, {len(rows) - added} already present)")
    return added
