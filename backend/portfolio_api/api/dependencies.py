from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from portfolio_api.core.context import AppContext
from portfolio_api.core.security import TokenClaims

# Bearer scheme - extracts token from "Authorization: Bearer <token>"
# auto_error=False so a missing header reaches the gate and maps to 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


def get_context(request: Request) -> AppContext:
    """The AppContext the application was built with"""
    return request.app.state.context


def get_db(context: AppContext = Depends(get_context)):
    """
    Dependency for getting database session.

    The session is closed after the request completes, even if the
    handler raised.
    """
    db = context.session_factory()
    try:
        yield db
    finally:
        db.close()


async def get_current_claims(
    token: str | None = Depends(oauth2_scheme),
    context: AppContext = Depends(get_context)
) -> TokenClaims:
    """
    Auth gate for protected routes.

    Absent token -> MissingCredentialError (401); bad signature or expired
    token -> InvalidCredentialError (403). No role check happens here:
    admin-only routes load the user record themselves.
    """
    return context.token_service.verify(token)
