import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///money_tracker.db")
    sql_echo: bool = _env_bool("SQL_ECHO")

    # Session tokens
    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_ttl_minutes: int = int(os.getenv("JWT_TTL_MINUTES", "60"))

    # Password reset
    password_reset_ttl_minutes: int = int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "60"))
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # New accounts
    default_currency_symbol: str = os.getenv("DEFAULT_CURRENCY_SYMBOL", "₱")

    # Outbound mail
    mail_backend: str = os.getenv("MAIL_BACKEND", "log")  # 'log' or 'smtp'
    mail_from: str = os.getenv("MAIL_FROM", "no-reply@moneytracker.local")
    smtp_host: str = os.getenv("SMTP_HOST", "localhost")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: Optional[str] = os.getenv("SMTP_USERNAME")
    smtp_password: Optional[str] = os.getenv("SMTP_PASSWORD")
    smtp_use_tls: bool = _env_bool("SMTP_USE_TLS", "true")

    @property
    def allowed_origins(self) -> List[str]:
        """FRONTEND_URL may hold a comma-separated list of origins."""
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]

    @property
    def reset_base_url(self) -> str:
        """The first configured origin hosts the reset-password page."""
        origins = self.allowed_origins
        return origins[0].rstrip("/") if origins else ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
