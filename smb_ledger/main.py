"""
SMB Ledger: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from smb_ledger.config import get_settings
from smb_ledger.logging_config import configure_logging
from smb_ledger.api.health import router as health_router
from smb_ledger.api.accounts import router as accounts_router
from smb_ledger.api.journal import router as journal_router
from smb_ledger.api.reports import router as reports_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry general ledger for small businesses",
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(journal_router)
app.include_router(reports_router)
