"""Application configuration.

Environment variables override all defaults.
SECRET_KEY must be set in production - startup fails fast if it is missing.
"""

import os
from pathlib import Path
from typing import List


# Load .env for local development (safe no-op if the file is absent)
try:
    from dotenv import load_dotenv  # type: ignore

    _PROJECT_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)
except ImportError:
    pass


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./duesbook.db")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Session tokens
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if ENVIRONMENT == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value.",
            RuntimeWarning
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    # A shopkeeper keeps the ledger open for the working day
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))
    AUTH_COOKIE_NAME: str = "duesbook_session"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _split_csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173")
    )

    # Cookies
    SECURE_COOKIES: bool = ENVIRONMENT == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Password Policy
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Ledger
    DEFAULT_DESCRIPTION: str = os.getenv("DEFAULT_DESCRIPTION", "No description")
    RECENT_TRANSACTIONS_LIMIT: int = int(os.getenv("RECENT_TRANSACTIONS_LIMIT", "5"))


settings = Settings()
