"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "SMB Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/smb_ledger"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Accounting
    # Currency minor-unit tolerance used by every balance comparison
    BALANCE_EPSILON: Decimal = Decimal(os.getenv("BALANCE_EPSILON", "0.01"))
    JOURNAL_NUMBER_PREFIX: str = os.getenv("JOURNAL_NUMBER_PREFIX", "JE")
    SUSPENSE_ACCOUNT_CODE: str = os.getenv("SUSPENSE_ACCOUNT_CODE", "3999")
    SUSPENSE_ACCOUNT_NAME: str = os.getenv(
        "SUSPENSE_ACCOUNT_NAME", "Reconciliation Suspense"
    )
    OPENING_BALANCE_EQUITY_CODE: str = os.getenv(
        "OPENING_BALANCE_EQUITY_CODE", "3000"
    )
    OPENING_BALANCE_EQUITY_NAME: str = os.getenv(
        "OPENING_BALANCE_EQUITY_NAME", "Owners Equity"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()
