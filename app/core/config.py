from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    # Base de datos
    db_url: str = Field("sqlite+aiosqlite:///./portal.sqlite3", alias="DB_URL")

    # Servidor
    environment: str = Field("development", alias="ENVIRONMENT")
    port: int = Field(8000, alias="PORT")

    # Subidas de ficheros
    upload_dir: str = Field("./uploads", alias="UPLOAD_DIR")
    max_file_size: int = Field(10 * 1024 * 1024, alias="MAX_FILE_SIZE")

    # Agenda: franjas de 30 min entre 10:00 y 16:00, hora de negocio fija
    business_timezone: str = Field("America/Los_Angeles", alias="BUSINESS_TIMEZONE")
    slot_start_hour: int = Field(10, alias="SLOT_START_HOUR")
    slot_end_hour: int = Field(16, alias="SLOT_END_HOUR")
    slot_minutes: int = Field(30, alias="SLOT_MINUTES")
    booking_window_days: int = Field(60, alias="BOOKING_WINDOW_DAYS")

    # Datos iniciales
    seed_file: str = Field("app/data/credentials.json", alias="SEED_FILE")
    seed_on_startup: bool = Field(True, alias="SEED_ON_STARTUP")

    # Informes de administración
    report_title: str = Field("Onboarding Portal", alias="REPORT_TITLE")
    report_reference: dict[str, str] = Field(default_factory=dict, alias="REPORT_REFERENCE")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    error_log_path: str = Field("logs/errors.log", alias="ERROR_LOG_PATH")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,  # permite defaults si no hay variable de entorno
    )

    @field_validator("db_url")
    @classmethod
    def _async_driver(cls, v: str) -> str:
        # Heroku/Render exportan postgres:// o postgresql:// sin driver async
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
