"""
Account registry: owns the chart of accounts.

Accounts are created, edited and deactivated here. The
registry never touches the ledger; it only asks whether an
account has postings before allowing destructive changes.
"""

import logging

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smb_ledger.exceptions import (
    DuplicateCodeError,
    FieldError,
    NotFoundError,
    StateError,
    StorageError,
    ValidationError,
)
from smb_ledger.models.account import Account
from smb_ledger.models.enums import (
    AccountType,
    CONVENTIONAL_NORMAL_BALANCE,
    SUBTYPES_BY_TYPE,
)
from smb_ledger.models.journal_entry import JournalLine
from smb_ledger.models.ledger_entry import LedgerEntry
from smb_ledger.schemas.account import AccountCreate, AccountUpdate

logger = logging.getLogger(__name__)


class AccountRegistry:

    def __init__(self, db: Session):
        self.db = db

    def _code_taken(self, code: str, exclude_id: int | None = None) -> bool:
        query = select(Account.id).where(Account.code == code)
        if exclude_id is not None:
            query = query.where(Account.id != exclude_id)
        return self.db.execute(query).first() is not None

    def _flush_code(self, code: str) -> None:
        """Flush; losing a race on the unique code is a DuplicateCodeError."""
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Another session committed the same code after our check
            self.db.rollback()
            if self._code_taken(code):
                raise DuplicateCodeError(
                    f"Account with code '{code}' already exists"
                ) from exc
            raise StorageError(f"Account {code} could not be stored") from exc

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a new account.

        When normal_balance is omitted it is derived from the
        account type. An explicit normal balance that departs
        from the convention is kept as given and reported through
        Account.warnings.
        """
        if self._code_taken(request.code):
            raise DuplicateCodeError(
                f"Account with code '{request.code}' already exists"
            )

        if request.parent_id is not None:
            self.get(request.parent_id)

        normal_balance = (
            request.normal_balance
            or CONVENTIONAL_NORMAL_BALANCE[request.account_type]
        )

        account = Account(
            code=request.code,
            name=request.name,
            account_type=request.account_type,
            subtype=request.subtype,
            normal_balance=normal_balance,
            parent_id=request.parent_id,
            description=request.description,
            is_active=True,
        )
        self.db.add(account)
        self._flush_code(request.code)

        if account.normal_balance_warning:
            logger.warning(
                "Account created with unconventional normal balance",
                extra={"account_code": account.code,
                       "normal_balance": account.normal_balance.value},
            )
        logger.info("Account created", extra={"account_code": account.code})
        return account

    def has_postings(self, account_id: int) -> bool:
        """True if any ledger row or journal line references the account."""
        in_ledger = self.db.execute(
            select(exists().where(LedgerEntry.account_id == account_id))
        ).scalar()
        if in_ledger:
            return True
        return bool(self.db.execute(
            select(exists().where(JournalLine.account_id == account_id))
        ).scalar())

    def update_account(self, account_id: int, request: AccountUpdate) -> Account:
        """
        Apply a partial update.

        Type and normal balance are frozen once the account has
        postings, because they decide how those postings are
        signed in every report.
        """
        account = self.get(account_id)
        changes = request.model_dump(exclude_unset=True)

        if "code" in changes and changes["code"] != account.code:
            if self._code_taken(changes["code"], exclude_id=account.id):
                raise DuplicateCodeError(
                    f"Account with code '{changes['code']}' already exists"
                )

        retyping = (
            ("account_type" in changes
             and changes["account_type"] != account.account_type)
            or ("normal_balance" in changes
                and changes["normal_balance"] != account.normal_balance)
        )
        if retyping and self.has_postings(account.id):
            raise StateError(
                f"Account {account.code} has postings; its type and "
                f"normal balance cannot change"
            )

        new_type = changes.get("account_type", account.account_type)
        new_subtype = changes.get("subtype", account.subtype)
        if new_subtype is not None and new_subtype not in SUBTYPES_BY_TYPE[new_type]:
            raise ValidationError([FieldError(
                "subtype",
                f"subtype {new_subtype.value} does not belong to "
                f"account type {new_type.value}",
            )])

        if "parent_id" in changes:
            self._check_parent(account, changes["parent_id"])

        if "account_type" in changes and "normal_balance" not in changes:
            changes["normal_balance"] = CONVENTIONAL_NORMAL_BALANCE[new_type]

        for field, value in changes.items():
            setattr(account, field, value)

        self._flush_code(account.code)
        return account

    def _check_parent(self, account: Account, parent_id: int | None) -> None:
        """Reject unknown parents and parent links that form a cycle."""
        if parent_id is None:
            return
        node = self.get(parent_id)
        while node is not None:
            if node.id == account.id:
                raise ValidationError([FieldError(
                    "parent_id",
                    f"account {parent_id} is a descendant of "
                    f"{account.code}; parent links cannot form a cycle",
                )])
            node = node.parent

    def deactivate(self, account_id: int) -> Account:
        """
        Deactivate an account.

        Its balance and posting history stay queryable; it just
        cannot receive new postings.
        """
        account = self.get(account_id)
        account.is_active = False
        self.db.flush()
        logger.info("Account deactivated", extra={"account_code": account.code})
        return account

    def delete_account(self, account_id: int) -> None:
        """Delete an account that has never been used and has no children."""
        account = self.get(account_id)

        if self.has_postings(account.id):
            raise StateError(
                f"Account {account.code} has postings and cannot be "
                f"deleted; deactivate it instead"
            )
        if account.children:
            raise StateError(
                f"Account {account.code} has child accounts; move or "
                f"delete them first"
            )

        self.db.delete(account)
        self.db.flush()

    def get(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def get_by_code(self, code: str) -> Account | None:
        return self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def list_accounts(self) -> list[Account]:
        accounts = self.db.execute(
            select(Account).order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    def list_by_type(self, account_type: AccountType) -> list[Account]:
        accounts = self.db.execute(
            select(Account)
            .where(Account.account_type == account_type)
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    def list_active(self) -> list[Account]:
        accounts = self.db.execute(
            select(Account)
            .where(Account.is_active.is_(True))
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    def list_children(self, account_id: int) -> list[Account]:
        self.get(account_id)
        accounts = self.db.execute(
            select(Account)
            .where(Account.parent_id == account_id)
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)
