import os


def _getenv(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _getenv_bool(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _getenv_csv_set(name: str) -> set[str]:
    raw = _getenv(name)
    if raw is None:
        return set()
    parts = [p.strip().lower() for p in raw.split(",")]
    return {p for p in parts if p}


class Settings:
    def __init__(self) -> None:
        self.environment = (_getenv("ENVIRONMENT", "development") or "development").lower()
        self.database_url = _getenv("DATABASE_URL", "sqlite:///./sql_app.db") or "sqlite:///./sql_app.db"
        self.db_auto_create = _getenv_bool("DB_AUTO_CREATE", default=True)
        self.log_level = (_getenv("LOG_LEVEL", "INFO") or "INFO").upper()

        self.auth_jwt_secret = _getenv("AUTH_JWT_SECRET") or _getenv("NEXTAUTH_SECRET")
        self.auth_jwt_algorithms = [
            a.strip().upper() for a in (_getenv("AUTH_JWT_ALGORITHMS", "HS256") or "HS256").split(",") if a.strip()
        ]
        self.auth_jwt_audience = _getenv("AUTH_JWT_AUDIENCE")
        self.auth_jwt_issuer = _getenv("AUTH_JWT_ISSUER")

        self.cors_allow_origins = _getenv("CORS_ALLOW_ORIGINS")
        self.frontend_url = _getenv("FRONTEND_URL", "http://localhost:3000") or "http://localhost:3000"

        self.catalog_categories_ttl_s = max(1, _getenv_int("CATALOG_CATEGORIES_TTL_S", 300))
        self.catalog_featured_ttl_s = max(1, _getenv_int("CATALOG_FEATURED_TTL_S", 120))

        self.admin_emails = _getenv_csv_set("ADMIN_EMAILS")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def resolved_cors_origins(self) -> list[str]:
        raw = self.cors_allow_origins
        if raw is None:
            return [self.frontend_url, "http://localhost:8000"]
        if raw.strip() == "*":
            return ["*"]
        origins = [o.strip() for o in raw.split(",") if o.strip()]
        return origins


settings = Settings()
