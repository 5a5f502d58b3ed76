from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from storefront.core.errors import ErrorKind, StoreError
from storefront.core.permissions import capabilities_for, has_permission
from storefront.core.security import decode_token

# Tokens come from the external identity provider; tokenUrl only feeds the docs UI.
oauth2 = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_current_user(token: Optional[str] = Depends(oauth2)) -> dict:
    if not token:
        raise StoreError(ErrorKind.UNAUTHORIZED, "Unauthorized")
    try:
        payload = decode_token(token)
    except JWTError:
        raise StoreError(ErrorKind.UNAUTHORIZED, "Invalid token")
    uid = payload.get("sub")
    if not uid:
        raise StoreError(ErrorKind.UNAUTHORIZED, "Invalid token")
    role = payload.get("role") or "user"
    return {
        "id": str(uid),
        "role": role,
        "capabilities": capabilities_for(role),
    }


def require_permission(capability: str):
    """Dependency factory guarding an endpoint with one capability."""

    def checker(user: dict = Depends(get_current_user)) -> dict:
        if not has_permission(user["role"], capability):
            raise StoreError(ErrorKind.FORBIDDEN, "Forbidden")
        return user

    return checker
