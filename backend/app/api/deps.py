"""FastAPI dependencies for the API layer."""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.core.security import CallerIdentity, resolve_caller

# Tokens are issued by the external auth service; the URL is documentation only.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_current_caller(token: str | None = Depends(oauth2_scheme)) -> CallerIdentity:
    """Resolve the verified caller or raise ``unauthenticated``."""

    return resolve_caller(token)
