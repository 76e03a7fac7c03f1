import os
from functools import lru_cache
from pathlib import Path as _Path

from dotenv import load_dotenv as _load_dotenv
from pydantic import BaseModel, Field

_load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "vibematch"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    cors_origin: str = Field(default_factory=lambda: os.getenv("CORS_ORIGIN", "http://localhost:5173"))
    port: int = Field(default_factory=lambda: int(os.getenv("PY_BACKEND_PORT", "8081")))

    # Every profile document is scoped to one tenant namespace
    tenant_id: str = Field(
        default_factory=lambda: (
            os.getenv("VIBEMATCH_TENANT_ID")
            or os.getenv("APP_ID")
            or "default-app-id"
        )
    )
    store_timeout_ms: int = Field(default_factory=lambda: int(os.getenv("PROFILE_STORE_TIMEOUT_MS", "5000")))

    # Matching
    match_cache_ttl_seconds: int = Field(default_factory=lambda: int(os.getenv("MATCH_CACHE_TTL_SECONDS", "30")))
    match_include_unlocated: bool = Field(default_factory=lambda: _env_flag("MATCH_INCLUDE_UNLOCATED", "true"))

    # Redis (shared match cache tier)
    redis_url: str = Field(default_factory=lambda: os.getenv("REDIS_URL", ""))
    redis_prefix: str = Field(default_factory=lambda: os.getenv("REDIS_PREFIX", "vm"))

    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    @property
    def store_timeout_seconds(self) -> float:
        return max(0, self.store_timeout_ms) / 1000.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
