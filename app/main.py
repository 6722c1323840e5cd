# app/main.py
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from app.api.credentials import router as credentials_router
from app.api.appointments import router as appointments_router
from app.api.admin import router as admin_router

from app.core.config import settings
from app.core.errors import register_error_handlers
from app.core.logger import setup_logging, logger
from app.db.session import engine, SessionLocal
from app.db.models import Base
from app.db.seed import load_seed_credentials, seed_credentials
from app.services.uploads import ensure_upload_dir

STATIC_DIR = Path(__file__).resolve().parent / "static"

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === STARTUP ===
    logger.info(f"Starting onboarding portal ({settings.environment})")
    ensure_upload_dir()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.seed_on_startup:
        entries = load_seed_credentials(settings.seed_file)
        if entries:
            async with SessionLocal() as s:
                await seed_credentials(s, entries)
    yield
    # === SHUTDOWN ===
    await engine.dispose()
    logger.info("Onboarding portal stopped")


app = FastAPI(title="Credential & Onboarding Portal", version="0.1.0", lifespan=lifespan)
register_error_handlers(app)

app.include_router(credentials_router, prefix="/api/credentials", tags=["credentials"])
app.include_router(appointments_router, prefix="/api/appointments", tags=["appointments"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", include_in_schema=False)
def index():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
