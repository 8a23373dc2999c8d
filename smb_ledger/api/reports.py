"""
Financial report and reconciliation endpoints.

Reports default to today's date. An empty ledger yields an
empty report with `has_data` false, never an error.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smb_ledger.api.errors import http_error
from smb_ledger.exceptions import LedgerError
from smb_ledger.models.base import get_db
from smb_ledger.schemas.aging import AgingReport
from smb_ledger.schemas.reconciliation import AutoBalanceResult, VarianceReport
from smb_ledger.schemas.reports import BalanceSheet, IncomeStatement, TrialBalance
from smb_ledger.services.aging_engine import AgingEngine
from smb_ledger.services.reconciliation_service import ReconciliationService
from smb_ledger.services.report_engine import ReportEngine

router = APIRouter(tags=["Reports"])


@router.get("/reports/trial-balance", response_model=TrialBalance)
def trial_balance(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    return ReportEngine(db).trial_balance(as_of_date or date.today())


@router.get("/reports/balance-sheet", response_model=BalanceSheet)
def balance_sheet(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    return ReportEngine(db).balance_sheet(as_of_date or date.today())


@router.get("/reports/income-statement", response_model=IncomeStatement)
def income_statement(
    start_date: date,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Profit and loss for movements dated within the period."""
    try:
        return ReportEngine(db).income_statement(
            start_date, end_date or date.today()
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/reports/ar-aging", response_model=AgingReport)
def ar_aging(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    return AgingEngine(db).ar_aging(as_of_date or date.today())


@router.get("/reports/ap-aging", response_model=AgingReport)
def ap_aging(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    return AgingEngine(db).ap_aging(as_of_date or date.today())


@router.get("/reconciliation/variance", response_model=VarianceReport)
def variance(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    return ReconciliationService(db).compute_variance(as_of_date)


@router.post("/reconciliation/auto-balance", response_model=AutoBalanceResult)
def auto_balance(
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    """
    Book any balance sheet variance to the suspense account.

    Nothing is posted when the books are already balanced.
    """
    try:
        return ReconciliationService(db).auto_balance(as_of_date)
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
