"""OTP Gateway — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── OTP ───────────────────────────────────────────────
    otp_ttl_seconds: int = 600
    otp_max_attempts: int = 5

    # ── Credential store (Redis) ──────────────────────────
    # Empty means local-only mode: Redis is never attempted.
    redis_url: str = ""
    redis_connect_timeout_seconds: float = 5.0
    store_reprobe_interval_seconds: float = 30.0

    # ── SMTP ──────────────────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 10.0
    email_from: str = ""
    brand_name: str = "Vibe"

    # ── Firebase ──────────────────────────────────────────
    firebase_service_account: str = ""
    firebase_service_account_path: str = ""

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Gateway"
    environment: str = "production"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# Singleton settings instance
settings = Settings()
