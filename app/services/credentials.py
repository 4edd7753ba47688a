"""Credential lifecycle service: registration, email verification, login and password reset."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache

from app.config import Settings, get_settings
from app.errors import ERROR_CLASSES, ConflictError, ErrorKind
from app.models.account import Account, TokenKind
from app.services.jwt import JWTService, get_jwt_service
from app.services.notifications import Dispatcher, Notifier, deliver_inline
from app.services.security import BCRYPT_MAX_PASSWORD_BYTES, PasswordHasher, generate_token, hash_token
from app.services.store import AccountStore, normalize_email

logger = logging.getLogger("latchkey.credentials")

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_VERIFICATION_LINK = "Invalid or expired verification link"
INVALID_RESET_LINK = "Invalid or expired reset link"
INVALID_SESSION = "Invalid or expired session"
EMAIL_NOT_VERIFIED = "Email address has not been verified"


@lru_cache
def dummy_password_hash(rounds: int) -> str:
    """Hash of a throwaway password, computed once per process for each cost factor."""
    return PasswordHasher(rounds).hash(generate_token()[:16])


@dataclass
class AuthResult:
    """Outcome of a credential operation.

    Failures carry an ``error_kind`` so callers can branch without catching.
    """

    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    account: Account | None = None
    token: str | None = None

    @classmethod
    def ok(cls, account: Account | None = None, token: str | None = None) -> "AuthResult":
        return cls(success=True, account=account, token=token)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "AuthResult":
        return cls(success=False, error=error, error_kind=kind)

    def raise_for_error(self) -> "AuthResult":
        """Raise the matching CredentialError subclass if this result is a failure."""
        if not self.success:
            raise ERROR_CLASSES[self.error_kind](self.error)  # type: ignore[index]
        return self


class CredentialService:
    """Owns every account mutation tied to authentication state.

    Collaborators are passed in; the service keeps no state of its own between
    calls beyond them.
    """

    def __init__(
        self,
        store: AccountStore,
        notifier: Notifier,
        hasher: PasswordHasher | None = None,
        jwt_service: JWTService | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        dispatch: Dispatcher = deliver_inline,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.notifier = notifier
        self.hasher = hasher or PasswordHasher(self.settings.BCRYPT_ROUNDS)
        self.jwt_service = jwt_service or get_jwt_service()
        self.clock = clock
        self.dispatch = dispatch

    # --- validation ---

    def _password_error(self, password: str) -> str | None:
        if not password:
            return "Password is required"
        if len(password) < self.settings.PASSWORD_MIN_LENGTH:
            return f"Password must be at least {self.settings.PASSWORD_MIN_LENGTH} characters"
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            return f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
        return None

    def _registration_error(self, email: str, password: str, display_name: str) -> str | None:
        if not email.strip() or not password or not display_name.strip():
            return "Email, password and display name are required"
        local, _, domain = email.strip().rpartition("@")
        if not local or not domain or any(ch.isspace() for ch in email.strip()):
            return "Invalid email address"
        return self._password_error(password)

    # --- helpers ---

    def _notify(self, kind: TokenKind, account: Account, token: str) -> None:
        """Hand the token to the notifier through ``dispatch``.

        The notifier gets a detached copy of the account so delivery never
        touches the request's session. Delivery failures never undo persisted
        state.
        """
        recipient = Account(id=account.id, email=account.email, display_name=account.display_name)

        def send() -> None:
            try:
                self.notifier.notify(kind, recipient, token)
            except Exception as exc:
                logger.warning("Failed to deliver %s notification for account %s: %s", kind.value, recipient.id, exc)

        self.dispatch(send)

    def _burn_hash_time(self, password: str) -> None:
        # Equalise response time between unknown emails and wrong passwords
        self.hasher.verify(password, dummy_password_hash(self.hasher.rounds))

    # --- operations ---

    def register(self, email: str, password: str, display_name: str) -> AuthResult:
        """Create an unverified account and send it a verification token."""
        error = self._registration_error(email, password, display_name)
        if error:
            return AuthResult.fail(ErrorKind.VALIDATION, error)

        if self.store.find_by_email(email):
            return AuthResult.fail(ErrorKind.CONFLICT, "Email already registered")

        now = self.clock()
        token = generate_token()
        account = Account(
            email=normalize_email(email),
            password_hash=self.hasher.hash(password),
            display_name=display_name.strip(),
            is_verified=False,
            verification_token_hash=hash_token(token),
            verification_token_expires_at=now + timedelta(hours=self.settings.VERIFICATION_TOKEN_TTL_HOURS),
            token_version=1,
            created_at=now,
            updated_at=now,
        )
        try:
            self.store.insert(account)
        except ConflictError as exc:
            return AuthResult.fail(ErrorKind.CONFLICT, exc.message)

        logger.info("Verification requested for account %s", account.id)
        self._notify(TokenKind.VERIFICATION, account, token)
        return AuthResult.ok(account=account)

    def verify(self, token: str) -> AuthResult:
        """Mark the account holding ``token`` as verified. The token is single use."""
        if not token:
            return AuthResult.fail(ErrorKind.VALIDATION, "Verification token is required")

        account = self.store.find_by_token(TokenKind.VERIFICATION, token)
        if account is None:
            return AuthResult.fail(ErrorKind.NOT_FOUND, INVALID_VERIFICATION_LINK)

        if not self.store.consume_token(account, TokenKind.VERIFICATION, token, self.clock(), is_verified=True):
            return AuthResult.fail(ErrorKind.NOT_FOUND, INVALID_VERIFICATION_LINK)

        logger.info("Account %s verified", account.id)
        return AuthResult.ok(account=account)

    def resend_verification(self, email: str) -> AuthResult:
        """Issue a fresh verification token. Succeeds whether or not the email is known."""
        account = self.store.find_by_email(email) if email.strip() else None
        if account is None or account.is_verified:
            return AuthResult.ok()

        now = self.clock()
        token = generate_token()
        account.verification_token_hash = hash_token(token)
        account.verification_token_expires_at = now + timedelta(hours=self.settings.VERIFICATION_TOKEN_TTL_HOURS)
        account.updated_at = now
        self.store.update(account)

        logger.info("Verification re-requested for account %s", account.id)
        self._notify(TokenKind.VERIFICATION, account, token)
        return AuthResult.ok()

    def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a session token."""
        if not email.strip() or not password:
            return AuthResult.fail(ErrorKind.VALIDATION, "Email and password are required")

        account = self.store.find_by_email(email)
        if account is None:
            self._burn_hash_time(password)
            return AuthResult.fail(ErrorKind.NOT_FOUND, INVALID_CREDENTIALS)

        if not self.hasher.verify(password, account.password_hash):
            logger.info("Failed login for account %s", account.id)
            return AuthResult.fail(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)

        if self.settings.REQUIRE_VERIFIED_EMAIL and not account.is_verified:
            return AuthResult.fail(ErrorKind.AUTHENTICATION, EMAIL_NOT_VERIFIED)

        now = self.clock()
        account.last_login_at = now
        account.updated_at = now
        self.store.update(account)

        token = self.jwt_service.create_token(
            account_id=account.id,
            email=account.email,
            display_name=account.display_name,
            token_version=account.token_version,
        )
        logger.info("Account %s logged in", account.id)
        return AuthResult.ok(account=account, token=token)

    def authenticate_session(self, token: str) -> AuthResult:
        """Resolve a session token to its account, rejecting revoked tokens."""
        payload = self.jwt_service.decode_token(token) if token else None
        if not payload:
            return AuthResult.fail(ErrorKind.AUTHENTICATION, INVALID_SESSION)

        try:
            account_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return AuthResult.fail(ErrorKind.AUTHENTICATION, INVALID_SESSION)

        account = self.store.find_by_id(account_id)
        if account is None or account.token_version != payload.get("ver"):
            return AuthResult.fail(ErrorKind.AUTHENTICATION, INVALID_SESSION)

        return AuthResult.ok(account=account, token=token)

    def revoke_sessions(self, account_id: int) -> AuthResult:
        """Invalidate all session tokens issued so far for the account."""
        if not self.store.bump_token_version(account_id):
            return AuthResult.fail(ErrorKind.NOT_FOUND, "Account not found")
        logger.info("Sessions revoked for account %s", account_id)
        return AuthResult.ok()

    def request_password_reset(self, email: str) -> AuthResult:
        """Generate a reset token for the given email.

        Always succeeds; callers must not reveal whether the account exists.
        A new request replaces any pending reset token.
        """
        account = self.store.find_by_email(email) if email.strip() else None
        if account is None:
            return AuthResult.ok()

        now = self.clock()
        token = generate_token()
        account.password_reset_token_hash = hash_token(token)
        account.password_reset_expires_at = now + timedelta(minutes=self.settings.RESET_TOKEN_TTL_MINUTES)
        account.updated_at = now
        self.store.update(account)

        logger.info("Password reset requested for account %s", account.id)
        self._notify(TokenKind.RESET, account, token)
        return AuthResult.ok()

    def reset_password(self, token: str, new_password: str) -> AuthResult:
        """Set a new password using a valid reset token and revoke existing sessions."""
        if not token:
            return AuthResult.fail(ErrorKind.VALIDATION, "Reset token is required")

        error = self._password_error(new_password)
        if error:
            return AuthResult.fail(ErrorKind.VALIDATION, error)

        now = self.clock()
        account = self.store.find_by_token(TokenKind.RESET, token)
        if account is None:
            return AuthResult.fail(ErrorKind.NOT_FOUND, INVALID_RESET_LINK)

        consumed = self.store.consume_token(
            account,
            TokenKind.RESET,
            token,
            now,
            password_hash=self.hasher.hash(new_password),
            token_version=Account.token_version + 1,
        )
        if not consumed:
            return AuthResult.fail(ErrorKind.NOT_FOUND, INVALID_RESET_LINK)

        logger.info("Password reset completed for account %s", account.id)
        return AuthResult.ok(account=account)
