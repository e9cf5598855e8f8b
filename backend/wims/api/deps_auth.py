# backend/wims/api/deps_auth.py

from typing import Iterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from wims.core.database import SessionLocal
from wims.core.security import decode_token
from wims.models.user import User as UserModel

# ✅ This is ONLY used by Swagger UI for the "Authorize" flow.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


class CurrentUser(BaseModel):
    id: int
    username: str
    name: str
    role: str  # "admin" | "manager" | "viewer"


def get_db() -> Iterator[Session]:
    # one session per request, released on every exit path
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    cred_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token or not isinstance(token, str):
        raise cred_exc

    try:
        payload = decode_token(token)
    except ValueError:
        raise cred_exc

    # sub is the user id
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise cred_exc

    user = db.get(UserModel, user_id)
    if not user:
        raise cred_exc

    return CurrentUser(
        id=user.id,
        username=user.username,
        name=user.name,
        role=user.role,
    )


def require_roles(*roles: str):
    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{' or '.join(r.capitalize() for r in roles)} role required",
            )
        return user

    return dependency


require_manager = require_roles("admin", "manager")
require_admin = require_roles("admin")
