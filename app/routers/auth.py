"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from app.dependencies import clear_auth_cookie, get_credential_service, get_current_account, set_auth_cookie
from app.errors import ErrorKind
from app.models.account import Account
from app.rate_limit import limiter
from app.schemas.auth import (
    AccountResponse,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from app.services.credentials import CredentialService

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTHENTICATION: 401,
}

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a reset link has been sent."
RESEND_VERIFICATION_MESSAGE = "If an unverified account exists with that email, a new verification link has been sent."


@router.post("/register", response_model=AccountResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AccountResponse:
    """Register a new, unverified account and send a verification link."""
    result = service.register(body.email, body.password, body.display_name).raise_for_error()
    return AccountResponse.model_validate(result.account)


@router.post("/verify-email", response_model=AccountResponse)
@limiter.limit("10/minute")
def verify_email(
    request: Request,
    body: VerifyEmailRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AccountResponse:
    """Confirm an email address with a verification token."""
    result = service.verify(body.token).raise_for_error()
    return AccountResponse.model_validate(result.account)


@router.post("/resend-verification", response_model=MessageResponse)
@limiter.limit("3/minute")
def resend_verification(
    request: Request,
    body: EmailRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    """Send a fresh verification link. Same response whether or not the account exists."""
    service.resend_verification(body.email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> TokenResponse:
    """Authenticate and receive a session token (also set as an httponly cookie)."""
    result = service.login(body.email, body.password)

    if not result.success:
        # Unknown email and wrong password are indistinguishable to the client
        status = 400 if result.error_kind is ErrorKind.VALIDATION else 401
        raise HTTPException(status_code=status, detail=result.error)

    account = result.account
    set_auth_cookie(response, result.token)  # type: ignore[arg-type]
    return TokenResponse(token=result.token, email=account.email, display_name=account.display_name)  # type: ignore[arg-type, union-attr]


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Bearer tokens are stateless and simply discarded by the client."""
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out")


@router.post("/logout-all", response_model=MessageResponse)
def logout_all(
    response: Response,
    account: Account = Depends(get_current_account),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    """Revoke every session token issued for the current account."""
    service.revoke_sessions(account.id).raise_for_error()  # type: ignore[arg-type]
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out of all sessions")


@router.get("/me", response_model=AccountResponse)
def me(account: Account = Depends(get_current_account)) -> AccountResponse:
    """Return the account behind the current session."""
    return AccountResponse.model_validate(account)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: EmailRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    """Request a password reset link."""
    service.request_password_reset(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    """Set a new password with a reset token. Existing sessions are revoked; log in again."""
    service.reset_password(body.token, body.new_password).raise_for_error()
    return MessageResponse(message="Password updated. Please log in with your new password.")
