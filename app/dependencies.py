"""Authentication dependencies for FastAPI routes."""

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.account import Account
from app.services.credentials import CredentialService
from app.services.notifications import Dispatcher, Notifier, get_dispatcher, get_notifier
from app.services.store import AccountStore

AUTH_COOKIE_NAME = "lk_session"


def get_credential_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    dispatch: Dispatcher = Depends(get_dispatcher),
) -> CredentialService:
    """Build a credential service bound to this request's database session."""
    return CredentialService(store=AccountStore(db), notifier=notifier, dispatch=dispatch)


def extract_session_token(request: Request) -> str | None:
    """Read the session token from a Bearer header, falling back to the cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(AUTH_COOKIE_NAME)


def get_current_account(
    request: Request,
    service: CredentialService = Depends(get_credential_service),
) -> Account:
    """Resolve the authenticated account. Raises 401 if missing, invalid or revoked."""
    token = extract_session_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    result = service.authenticate_session(token)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return result.account  # type: ignore[return-value]


def set_auth_cookie(response: Response, token: str) -> None:
    """Set the session cookie."""
    settings = get_settings()
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=settings.COOKIE_SECURE,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    """Clear the session cookie."""
    response.delete_cookie(key=AUTH_COOKIE_NAME)
