"""FastAPI dependencies for authentication and authorization."""
from typing import Callable, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from pm_api.core.database import get_db
from pm_api.core.security import get_token_subject
from pm_api.models.user import Authority, User

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authenticated"
        )

    email = get_token_subject(credentials.credentials)
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_authority(authority: Authority) -> Callable[..., User]:
    """Dependency factory: the current user must hold the given authority."""

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_authority(authority.value):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{authority.value} authority required"
            )
        return current_user

    return checker
