"""
Chart of accounts API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smb_ledger.api.errors import http_error
from smb_ledger.exceptions import LedgerError
from smb_ledger.models.base import get_db
from smb_ledger.models.enums import AccountType
from smb_ledger.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    AccountBalanceResponse,
)
from smb_ledger.schemas.reports import AccountLedger
from smb_ledger.services.account_registry import AccountRegistry
from smb_ledger.services.report_engine import ReportEngine

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """
    Add an account to the chart of accounts.

    A normal balance that departs from the account type's
    convention is accepted and reported in `warnings`.
    """
    registry = AccountRegistry(db)
    try:
        account = registry.create_account(request)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    account_type: AccountType | None = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    """List accounts ordered by code."""
    registry = AccountRegistry(db)
    if account_type is None:
        return registry.list_active() if active_only else registry.list_accounts()
    accounts = registry.list_by_type(account_type)
    if active_only:
        accounts = [a for a in accounts if a.is_active]
    return accounts


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    registry = AccountRegistry(db)
    try:
        return registry.get(account_id)
    except LedgerError as e:
        raise http_error(e)


@router.get("/{account_id}/children", response_model=list[AccountResponse])
def list_children(
    account_id: int,
    db: Session = Depends(get_db),
):
    registry = AccountRegistry(db)
    try:
        return registry.list_children(account_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: AccountUpdate,
    db: Session = Depends(get_db),
):
    """
    Edit an account.

    Type and normal balance are locked once the account has
    postings.
    """
    registry = AccountRegistry(db)
    try:
        account = registry.update_account(account_id, request)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Stop an account from receiving new postings."""
    registry = AccountRegistry(db)
    try:
        account = registry.deactivate(account_id)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Delete an account that has never been used."""
    registry = AccountRegistry(db)
    try:
        registry.delete_account(account_id)
        db.commit()
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("/{account_id}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    account_id: int,
    as_of_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Balance signed by the account's normal balance."""
    reports = ReportEngine(db)
    try:
        account = AccountRegistry(db).get(account_id)
        balance = reports.account_balance(account_id, as_of_date)
        return AccountBalanceResponse(
            account_id=account.id,
            account_code=account.code,
            account_type=account.account_type,
            normal_balance=account.normal_balance,
            balance=balance,
            as_of_date=as_of_date,
        )
    except LedgerError as e:
        raise http_error(e)


@router.get("/{account_id}/ledger", response_model=AccountLedger)
def get_account_ledger(
    account_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """General-ledger detail for one account."""
    reports = ReportEngine(db)
    try:
        return reports.account_ledger(account_id, start_date, end_date)
    except LedgerError as e:
        raise http_error(e)
