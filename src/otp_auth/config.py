"""OTP Auth Service — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./otp_auth.db"

    # ── Sessions (JWT) ────────────────────────────────────
    jwt_secret: str = "change-this-secret-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # ── Passwords ─────────────────────────────────────────
    bcrypt_rounds: int = 12

    # ── OTP ───────────────────────────────────────────────
    otp_ttl_minutes: int = 10

    # ── Lockout ───────────────────────────────────────────
    max_failed_attempts: int = 3
    lockout_hours: int = 3
    counter_sweep_interval_hours: int = 3
    counter_sweep_enabled: bool = True

    # ── SMTP ──────────────────────────────────────────────
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    email_from: str = "no-reply@example.com"

    # ── Rate limiting ─────────────────────────────────────
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Auth Service"
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
