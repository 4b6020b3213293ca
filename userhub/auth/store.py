"""
userhub - Account State Store

Persistence for the account lifecycle. Every transition is a single
conditional INSERT or UPDATE ... RETURNING executed in its own transaction:

    create_account                 INSERT (email unique)
    activate_account               UPDATE WHERE active=false AND activation_token=:t
    issue_password_reset_token     UPDATE WHERE active=true AND email=:e
    consume_password_reset_token   UPDATE WHERE active=true AND password_reset_token=:t

The WHERE clause is the concurrency guard: when callers race on the same
token, the database lets exactly one UPDATE match and every other caller
sees no row, which surfaces as AccountNotFoundError. No in-process locks
are held.

Callers receive AccountSnapshot copies and never touch rows directly.
"""

import secrets
from typing import Callable, Optional, Protocol
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from userhub.auth.database import SessionFactory
from userhub.auth.models import Account, AccountSnapshot
from userhub.clock import Clock, utc_now
from userhub.errors import InternalError


class DuplicateEmailError(Exception):
    """Raised when an account with the same email already exists."""
    pass


class AccountNotFoundError(Exception):
    """
    Raised when no account matches a lookup or conditional transition.

    Unknown, already consumed and inapplicable tokens all collapse into
    this one error so callers cannot tell which case occurred.
    """
    pass


class StoreError(InternalError):
    """Raised for database failures other than constraint violations."""
    pass


def new_token() -> str:
    """Generate an unguessable single-use lifecycle token."""
    return secrets.token_urlsafe(32)


class AccountRepository(Protocol):
    """Lifecycle operations the account service depends on."""

    def create_account(self, email: str, password_hash: str) -> AccountSnapshot: ...

    def activate_account(self, activation_token: str) -> AccountSnapshot: ...

    def find_account_by_email(self, email: str) -> AccountSnapshot: ...

    def find_account_by_id(self, account_id: UUID) -> AccountSnapshot: ...

    def issue_password_reset_token(self, email: str) -> AccountSnapshot: ...

    def consume_password_reset_token(
        self, reset_token: str, password_hash: str
    ) -> AccountSnapshot: ...


class SQLAccountStore:
    """
    AccountRepository backed by a SQLAlchemy engine.

    Args:
        session_factory: Creates a new database session per operation
        token_factory: Generates activation and reset tokens
        clock: Source of created/updated/activated timestamps
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        token_factory: Callable[[], str] = new_token,
        clock: Optional[Clock] = None,
    ):
        self._session_factory = session_factory
        self._token_factory = token_factory
        self._clock = clock or utc_now

    def create_account(self, email: str, password_hash: str) -> AccountSnapshot:
        """
        Insert a new pending account with a fresh activation token.

        Raises:
            DuplicateEmailError: If the email is already registered
            StoreError: On any other database failure
        """
        account = Account(
            email=email,
            password_hash=password_hash,
            activation_token=self._token_factory(),
            active=False,
            created_at=self._clock(),
        )

        with self._session_factory() as session:
            try:
                session.add(account)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                # Classify by checking the constraint's subject, not driver text
                if self._email_exists(session, email):
                    raise DuplicateEmailError(email) from e
                raise StoreError() from e
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError() from e

            return AccountSnapshot.from_row(account)

    def activate_account(self, activation_token: str) -> AccountSnapshot:
        """
        Consume an activation token and mark the account active.

        Raises:
            AccountNotFoundError: Unknown token or account already active
        """
        now = self._clock()
        statement = (
            update(Account)
            .where(
                Account.active == False,  # noqa: E712
                Account.activation_token == activation_token,
            )
            .values(
                active=True,
                activation_token=None,
                activated_at=now,
                updated_at=now,
            )
        )
        return self._transition(statement)

    def find_account_by_email(self, email: str) -> AccountSnapshot:
        """
        Fetch an account by email.

        Raises:
            AccountNotFoundError: If no account has this email
        """
        return self._find(select(Account).where(Account.email == email))

    def find_account_by_id(self, account_id: UUID) -> AccountSnapshot:
        """
        Fetch an account by id.

        Raises:
            AccountNotFoundError: If no account has this id
        """
        return self._find(select(Account).where(Account.id == account_id))

    def issue_password_reset_token(self, email: str) -> AccountSnapshot:
        """
        Assign a fresh reset token to the active account with this email.

        A previously issued, unconsumed token is replaced.

        Raises:
            AccountNotFoundError: No active account has this email
        """
        statement = (
            update(Account)
            .where(
                Account.active == True,  # noqa: E712
                Account.email == email,
            )
            .values(
                password_reset_token=self._token_factory(),
                updated_at=self._clock(),
            )
        )
        return self._transition(statement)

    def consume_password_reset_token(
        self, reset_token: str, password_hash: str
    ) -> AccountSnapshot:
        """
        Replace the password of the account holding this reset token.

        Raises:
            AccountNotFoundError: Unknown or consumed token, or inactive account
        """
        statement = (
            update(Account)
            .where(
                Account.active == True,  # noqa: E712
                Account.password_reset_token == reset_token,
            )
            .values(
                password_hash=password_hash,
                password_reset_token=None,
                updated_at=self._clock(),
            )
        )
        return self._transition(statement)

    def _transition(self, statement) -> AccountSnapshot:
        """Execute a conditional UPDATE ... RETURNING in one transaction."""
        with self._session_factory() as session:
            try:
                result = session.execute(
                    statement.returning(Account),
                    execution_options={"synchronize_session": False},
                )
                account = result.scalars().first()
                if account is None:
                    session.rollback()
                    raise AccountNotFoundError()
                snapshot = AccountSnapshot.from_row(account)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError() from e

            return snapshot

    def _find(self, statement) -> AccountSnapshot:
        with self._session_factory() as session:
            try:
                account = session.exec(statement).first()
            except SQLAlchemyError as e:
                raise StoreError() from e

            if account is None:
                raise AccountNotFoundError()
            return AccountSnapshot.from_row(account)

    @staticmethod
    def _email_exists(session, email: str) -> bool:
        statement = select(Account.id).where(Account.email == email)
        return session.exec(statement).first() is not None
