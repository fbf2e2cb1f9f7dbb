from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_db_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not configured.")

    # Heroku/Railway style: postgres://...
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)

    # postgresql://... without a driver
    if url.startswith("postgresql://") and "+psycopg2" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)

    return url


class Settings(BaseSettings):
    DATABASE_URL: str

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60

    # late fee rules (QAR); a lease's own daily_late_fee wins over the default
    DEFAULT_DAILY_LATE_FEE: Decimal = Decimal("120.00")
    MAX_LATE_FEE: Decimal = Decimal("3000.00")

    LOG_LEVEL: str = "INFO"

    # comma-separated list of allowed origins
    FRONTEND_URLS: str = ""

    ADMIN_EMAIL: str = "admin@admin.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_NAME: str = "Admin"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    def __init__(self, **values):
        super().__init__(**values)
        self.DATABASE_URL = normalize_db_url(self.DATABASE_URL)

    @property
    def allowed_origins(self) -> list[str]:
        if self.FRONTEND_URLS:
            return [o.strip() for o in self.FRONTEND_URLS.split(",") if o.strip()]
        return [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]


settings = Settings()
