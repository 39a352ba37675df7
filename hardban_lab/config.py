# config.py
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]


def normalize_database_url(url: str) -> str:
    # Heroku/Render/Supabase style URLs still use the old scheme
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass
class Settings:
    database_url: str = "sqlite:///./hardban_lab.db"
    jwt_secret: str = "dev-secret-change-me"
    refresh_token_secret: str = "dev-refresh-secret-change-me"
    access_token_minutes: int = 60
    refresh_token_days: int = 7
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    cache_ttl_seconds: float = 300.0
    upload_dir: str = "uploads"
    public_base_url: str = "http://localhost:8000"
    environment: str = "development"
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "300 per 15 minutes"
    rate_limit_uploads: str = "20 per hour"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        defaults = cls()

        origins = env.get("CORS_ORIGINS")
        cors_origins = [o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins

        return cls(
            database_url=normalize_database_url(env.get("DATABASE_URL", defaults.database_url)),
            jwt_secret=env.get("JWT_SECRET", defaults.jwt_secret),
            refresh_token_secret=env.get("REFRESH_TOKEN_SECRET", defaults.refresh_token_secret),
            access_token_minutes=int(env.get("ACCESS_TOKEN_MINUTES", defaults.access_token_minutes)),
            refresh_token_days=int(env.get("REFRESH_TOKEN_DAYS", defaults.refresh_token_days)),
            cors_origins=cors_origins,
            cache_ttl_seconds=float(env.get("CACHE_TTL_SECONDS", defaults.cache_ttl_seconds)),
            upload_dir=env.get("UPLOAD_DIR", defaults.upload_dir),
            public_base_url=env.get("PUBLIC_BASE_URL", defaults.public_base_url).rstrip("/"),
            environment=env.get("ENVIRONMENT", defaults.environment),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            rate_limit_enabled=env.get("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no"),
            rate_limit_default=env.get("RATE_LIMIT_DEFAULT", defaults.rate_limit_default),
            rate_limit_uploads=env.get("RATE_LIMIT_UPLOADS", defaults.rate_limit_uploads),
        )


settings = Settings.from_env()


def configure(overrides: Mapping[str, str]) -> Settings:
    """Rebuild the module-level settings in place from an explicit mapping."""
    fresh = Settings.from_env(overrides)
    for name in fresh.__dataclass_fields__:
        setattr(settings, name, getattr(fresh, name))
    return settings
