"""
Report engine: financial statements derived from the ledger.

Reports are read-only. They are computed from posted ledger rows
only, never from drafts, and every total is accumulated as an
exact Decimal in Python. Nothing is rounded here; rounding is a
display concern.

Signs:
- The trial balance uses each account's own normal balance to
  decide between the debit and credit column.
- Statements use the conventional sign of the account's type, so
  a contra account (e.g. accumulated depreciation, a DEBIT-type
  asset carried with a CREDIT normal balance) reduces its section.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from smb_ledger.config import get_settings
from smb_ledger.exceptions import FieldError, NotFoundError, ValidationError
from smb_ledger.models.account import Account
from smb_ledger.models.enums import (
    AccountSubtype,
    AccountType,
    JournalKind,
    NormalBalance,
    CONVENTIONAL_NORMAL_BALANCE,
)
from smb_ledger.models.journal_entry import JournalEntry
from smb_ledger.models.ledger_entry import LedgerEntry
from smb_ledger.schemas.reports import (
    AccountLedger,
    AccountLedgerLine,
    BalanceSheet,
    BalanceSheetAssets,
    BalanceSheetEquity,
    BalanceSheetLiabilities,
    BalanceSheetTotals,
    IncomeStatement,
    StatementLine,
    StatementSection,
    TrialBalance,
    TrialBalanceLine,
    TrialBalanceTotals,
)
from smb_ledger.services.ledger_poster import signed_movement

ZERO = Decimal("0")


@dataclass
class _Movement:
    """Debit and credit totals for one account over a date range."""
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    def balance(self, normal_balance: NormalBalance) -> Decimal:
        return signed_movement(normal_balance, self.debit, self.credit)


@dataclass
class _Snapshot:
    movements: dict[int, _Movement]
    # Net debit minus credit booked by RECONCILIATION entries
    reconciliation_net: Decimal
    # Per-account movement booked by OPENING_BALANCE entries
    opening: dict[int, _Movement]


def _statement_amount(account: Account, movement: _Movement) -> Decimal:
    return movement.balance(CONVENTIONAL_NORMAL_BALANCE[account.account_type])


def _section(lines: list[StatementLine]) -> StatementSection:
    return StatementSection(
        accounts=lines,
        total=sum((line.amount for line in lines), ZERO),
    )


class ReportEngine:

    def __init__(self, db: Session):
        self.db = db
        self.epsilon = get_settings().BALANCE_EPSILON

    # --- Ledger reads ---

    def _snapshot(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        include_opening: bool = True,
    ) -> _Snapshot:
        """
        Sum posted movements per account with start <= date <= end.

        Opening balance entries are tallied separately as well;
        with include_opening=False they are left out entirely.
        """
        query = (
            select(
                LedgerEntry.account_id,
                LedgerEntry.debit_amount,
                LedgerEntry.credit_amount,
                JournalEntry.kind,
            )
            .join(JournalEntry, LedgerEntry.journal_entry_id == JournalEntry.id)
        )
        if start_date is not None:
            query = query.where(LedgerEntry.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(LedgerEntry.transaction_date <= end_date)
        if not include_opening:
            query = query.where(JournalEntry.kind != JournalKind.OPENING_BALANCE)

        movements: dict[int, _Movement] = {}
        opening: dict[int, _Movement] = {}
        reconciliation_net = ZERO
        for account_id, debit, credit, kind in self.db.execute(query):
            debit = Decimal(debit)
            credit = Decimal(credit)
            movement = movements.setdefault(account_id, _Movement())
            movement.debit += debit
            movement.credit += credit
            if kind == JournalKind.RECONCILIATION:
                reconciliation_net += debit - credit
            elif kind == JournalKind.OPENING_BALANCE:
                booked = opening.setdefault(account_id, _Movement())
                booked.debit += debit
                booked.credit += credit

        return _Snapshot(movements, reconciliation_net, opening)

    def _accounts_with_movement(self, snapshot: _Snapshot) -> list[Account]:
        if not snapshot.movements:
            return []
        accounts = self.db.execute(
            select(Account)
            .where(Account.id.in_(snapshot.movements.keys()))
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    # --- Trial balance ---

    def trial_balance(self, as_of_date: date) -> TrialBalance:
        """
        Every account's balance as of a date, in its debit or
        credit column. Debits and credits must agree.
        """
        snapshot = self._snapshot(end_date=as_of_date)

        lines = []
        total_debits = ZERO
        total_credits = ZERO
        for account in self._accounts_with_movement(snapshot):
            balance = snapshot.movements[account.id].balance(account.normal_balance)

            # A negative balance sits on the side opposite its normal one
            on_debit_side = (
                (account.normal_balance == NormalBalance.DEBIT) == (balance >= 0)
            )
            debit_balance = abs(balance) if on_debit_side else ZERO
            credit_balance = ZERO if on_debit_side else abs(balance)
            opening = snapshot.opening.get(account.id, _Movement())

            lines.append(TrialBalanceLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                normal_balance=account.normal_balance,
                debit_balance=debit_balance,
                credit_balance=credit_balance,
                opening_balance=opening.balance(account.normal_balance),
            ))
            total_debits += debit_balance
            total_credits += credit_balance

        return TrialBalance(
            as_of_date=as_of_date,
            accounts=lines,
            totals=TrialBalanceTotals(
                total_debits=total_debits,
                total_credits=total_credits,
                is_balanced=abs(total_debits - total_credits) < self.epsilon,
            ),
            reconciliation_adjustments=snapshot.reconciliation_net,
            has_data=bool(snapshot.movements),
        )

    # --- Balance sheet ---

    def balance_sheet(self, as_of_date: date) -> BalanceSheet:
        """
        Assets against liabilities plus equity as of a date.

        Revenue and expense accounts are not closed into retained
        earnings by any posting, so their cumulative net is shown
        as current_earnings within equity.
        """
        snapshot = self._snapshot(end_date=as_of_date)

        current_assets: list[StatementLine] = []
        fixed_assets: list[StatementLine] = []
        current_liabilities: list[StatementLine] = []
        long_term_liabilities: list[StatementLine] = []
        equity: list[StatementLine] = []
        current_earnings = ZERO

        for account in self._accounts_with_movement(snapshot):
            movement = snapshot.movements[account.id]

            if account.account_type in (AccountType.REVENUE, AccountType.EXPENSE):
                current_earnings += movement.credit - movement.debit
                continue

            line = StatementLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                subtype=account.subtype,
                amount=_statement_amount(account, movement),
            )
            if account.account_type == AccountType.ASSET:
                if account.subtype == AccountSubtype.CURRENT_ASSET:
                    current_assets.append(line)
                else:
                    fixed_assets.append(line)
            elif account.account_type == AccountType.LIABILITY:
                if account.subtype == AccountSubtype.CURRENT_LIABILITY:
                    current_liabilities.append(line)
                else:
                    long_term_liabilities.append(line)
            else:
                equity.append(line)

        assets = BalanceSheetAssets(
            current_assets=_section(current_assets),
            fixed_assets=_section(fixed_assets),
            total=sum((l.amount for l in current_assets + fixed_assets), ZERO),
        )
        liabilities = BalanceSheetLiabilities(
            current_liabilities=_section(current_liabilities),
            long_term_liabilities=_section(long_term_liabilities),
            total=sum(
                (l.amount for l in current_liabilities + long_term_liabilities),
                ZERO,
            ),
        )
        equity_total = sum((l.amount for l in equity), ZERO) + current_earnings
        equity_section = BalanceSheetEquity(
            accounts=equity,
            current_earnings=current_earnings,
            total=equity_total,
        )

        liabilities_and_equity = liabilities.total + equity_total
        variance = assets.total - liabilities_and_equity

        return BalanceSheet(
            as_of_date=as_of_date,
            assets=assets,
            liabilities=liabilities,
            equity=equity_section,
            totals=BalanceSheetTotals(
                total_assets=assets.total,
                total_liabilities=liabilities.total,
                total_equity=equity_total,
                total_liabilities_and_equity=liabilities_and_equity,
                variance=variance,
                is_balanced=abs(variance) < self.epsilon,
            ),
            reconciliation_adjustments=snapshot.reconciliation_net,
            has_data=bool(snapshot.movements),
        )

    # --- Income statement ---

    def income_statement(self, start_date: date, end_date: date) -> IncomeStatement:
        """
        Profit and loss for a period.

        Only movements dated inside the period count; balances
        carried in from earlier periods do not.
        Opening balance entries are carried-in balances too, so
        they are excluded even when dated inside the period.
        """
        if start_date > end_date:
            raise ValidationError([FieldError(
                "start_date", "start date must not be after end date"
            )])

        snapshot = self._snapshot(
            start_date=start_date, end_date=end_date, include_opening=False
        )

        revenue: list[StatementLine] = []
        cost_of_goods_sold: list[StatementLine] = []
        operating_expenses: list[StatementLine] = []
        other_expenses: list[StatementLine] = []

        for account in self._accounts_with_movement(snapshot):
            if account.account_type not in (AccountType.REVENUE, AccountType.EXPENSE):
                continue

            line = StatementLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                subtype=account.subtype,
                amount=_statement_amount(account, snapshot.movements[account.id]),
            )
            if account.account_type == AccountType.REVENUE:
                revenue.append(line)
            elif account.subtype == AccountSubtype.COST_OF_GOODS_SOLD:
                cost_of_goods_sold.append(line)
            elif account.subtype == AccountSubtype.OTHER_EXPENSE:
                other_expenses.append(line)
            else:
                operating_expenses.append(line)

        revenue_section = _section(revenue)
        cogs_section = _section(cost_of_goods_sold)
        operating_section = _section(operating_expenses)
        other_section = _section(other_expenses)

        gross_profit = revenue_section.total - cogs_section.total
        operating_income = gross_profit - operating_section.total
        net_income = operating_income - other_section.total

        return IncomeStatement(
            start_date=start_date,
            end_date=end_date,
            revenue=revenue_section,
            cost_of_goods_sold=cogs_section,
            operating_expenses=operating_section,
            other_expenses=other_section,
            gross_profit=gross_profit,
            operating_income=operating_income,
            net_income=net_income,
            has_data=bool(revenue or cost_of_goods_sold
                          or operating_expenses or other_expenses),
        )

    # --- Single account views ---

    def _get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def account_balance(
        self, account_id: int, as_of_date: date | None = None
    ) -> Decimal:
        """
        An account's balance, signed by its normal balance.

        Without a date this is the running balance of the latest
        ledger row; with a date it is the sum of movements up to
        and including that date.
        """
        account = self._get_account(account_id)

        if as_of_date is None:
            latest = self.db.execute(
                select(LedgerEntry.running_balance)
                .where(LedgerEntry.account_id == account_id)
                .order_by(LedgerEntry.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            return ZERO if latest is None else Decimal(latest)

        movement = self._account_movement(account_id, end_date=as_of_date)
        return movement.balance(account.normal_balance)

    def _account_movement(
        self,
        account_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        before_date: date | None = None,
    ) -> _Movement:
        query = select(LedgerEntry.debit_amount, LedgerEntry.credit_amount).where(
            LedgerEntry.account_id == account_id
        )
        if start_date is not None:
            query = query.where(LedgerEntry.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(LedgerEntry.transaction_date <= end_date)
        if before_date is not None:
            query = query.where(LedgerEntry.transaction_date < before_date)

        movement = _Movement()
        for debit, credit in self.db.execute(query):
            movement.debit += Decimal(debit)
            movement.credit += Decimal(credit)
        return movement

    def account_ledger(
        self,
        account_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AccountLedger:
        """
        General-ledger view of one account for a period.

        The opening balance covers everything dated before
        start_date. Rows are listed by transaction date, each with
        the running balance recorded when it was posted.
        """
        account = self._get_account(account_id)

        opening = ZERO
        if start_date is not None:
            before = self._account_movement(
                account_id, before_date=start_date
            )
            opening = before.balance(account.normal_balance)

        query = (
            select(LedgerEntry, JournalEntry.journal_number, JournalEntry.kind)
            .join(JournalEntry, LedgerEntry.journal_entry_id == JournalEntry.id)
            .where(LedgerEntry.account_id == account_id)
        )
        if start_date is not None:
            query = query.where(LedgerEntry.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(LedgerEntry.transaction_date <= end_date)
        query = query.order_by(LedgerEntry.transaction_date, LedgerEntry.id)

        lines = []
        closing = opening
        for row, journal_number, journal_kind in self.db.execute(query):
            closing += signed_movement(
                account.normal_balance, row.debit_amount, row.credit_amount
            )
            lines.append(AccountLedgerLine(
                ledger_entry_id=row.id,
                journal_entry_id=row.journal_entry_id,
                journal_number=journal_number,
                journal_kind=journal_kind,
                transaction_date=row.transaction_date,
                description=row.description,
                debit_amount=row.debit_amount,
                credit_amount=row.credit_amount,
                running_balance=row.running_balance,
            ))

        return AccountLedger(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            closing_balance=closing,
            entries=lines,
            has_data=bool(lines),
        )
