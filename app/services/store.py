"""Persistent account store backed by a SQLAlchemy session."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ConflictError
from app.models.account import Account, TokenKind
from app.services.security import hash_token

logger = logging.getLogger("latchkey.store")

_TOKEN_COLUMNS = {
    TokenKind.VERIFICATION: (Account.verification_token_hash, Account.verification_token_expires_at),
    TokenKind.RESET: (Account.password_reset_token_hash, Account.password_reset_expires_at),
}


def normalize_email(email: str) -> str:
    """Emails are matched case-insensitively by storing them lower-cased."""
    return email.strip().lower()


class AccountStore:
    """CRUD and conditional updates for accounts.

    One store wraps one session; construct a new one per unit of work.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> Account | None:
        return self.db.query(Account).filter(Account.email == normalize_email(email)).first()

    def find_by_id(self, account_id: int) -> Account | None:
        return self.db.get(Account, account_id)

    def find_by_token(self, kind: TokenKind, token: str) -> Account | None:
        """Look up the account holding a token of the given kind, expired or not."""
        hash_column, _ = _TOKEN_COLUMNS[kind]
        return self.db.query(Account).filter(hash_column == hash_token(token)).first()

    def insert(self, account: Account) -> Account:
        """Persist a new account. Raises ConflictError if the email is taken."""
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Email already registered") from exc
        self.db.refresh(account)
        logger.info("Account %s created", account.id)
        return account

    def update(self, account: Account) -> Account:
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def consume_token(self, account: Account, kind: TokenKind, token: str, now: datetime, **values: Any) -> bool:
        """Clear a one-time token and apply ``values`` in a single conditional update.

        The update only matches while the stored digest still equals the presented
        token and has not expired, so exactly one of several concurrent callers wins.
        Returns True if this call consumed the token.
        """
        hash_column, expires_column = _TOKEN_COLUMNS[kind]
        stmt = (
            update(Account)
            .where(
                Account.id == account.id,
                hash_column == hash_token(token),
                expires_column > now,
            )
            .values({hash_column.key: None, expires_column.key: None, "updated_at": now, **values})
            .execution_options(synchronize_session=False)
        )
        consumed = self.db.execute(stmt).rowcount == 1
        self.db.commit()
        if consumed:
            self.db.refresh(account)
        return consumed

    def bump_token_version(self, account_id: int) -> bool:
        """Invalidate every session token issued for the account so far."""
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(token_version=Account.token_version + 1)
            .execution_options(synchronize_session=False)
        )
        bumped = self.db.execute(stmt).rowcount == 1
        self.db.commit()
        return bumped
