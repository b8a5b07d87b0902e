from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2024-01.v1"
    database_url: str = "sqlite:///./roomy.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Console client ----
    api_base_url: str = "http://localhost:8000/api"
    request_timeout_seconds: float = 30.0
    search_debounce_ms: int = 300

    # ---- Listing ----
    default_page_size: int = 50
    max_page_size: int = 500

    # ---- Files ----
    upload_dir: str = "./uploads"
    max_upload_bytes: int = 25 * 1024 * 1024  # 25 MB
    file_url_ttl_seconds: int = 60 * 60
    file_signing_secret: str = "dev-change-me"
    public_base_url: str = "http://localhost:8000"

    # ---- Identity (no auth, only attribution) ----
    default_actor_email: str = "admin@roomy.local"
    actor_header: str = "X-User-Email"

    # ---- Money ----
    default_currency: str = "AED"

    # ---- Logging ----
    log_level: str = "INFO"
    sql_log_level: str = "WARNING"

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if self.file_signing_secret == "dev-change-me":
                raise ValueError("SECURITY: file_signing_secret must be set in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
