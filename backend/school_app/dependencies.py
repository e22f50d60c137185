from fastapi import Depends, HTTPException, status, Security
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Callable

from school_app import models, db, crud, schemas
from school_app.core.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# --- Core Dependencies ---

def get_db():
    """Dependency to get a new database session for each request."""
    db_session = db.SessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()


def get_current_user(
    token: str = Security(oauth2_scheme), db: Session = Depends(get_db)
) -> models.User:
    """
    Decodes the JWT token to get the email and fetches the
    user account from the database.
    """
    email = decode_access_token(token)
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = crud.get_user_by_email(db, email=email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def get_session_context(
    current_user: models.User = Depends(get_current_user)
) -> schemas.SessionContext:
    """
    Snapshot of who is calling. Handlers receive this object instead of
    reading the user account themselves.
    """
    return schemas.SessionContext(
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role,
    )


# --- Role checks ---

def require_roles(*allowed_roles: models.UserRole) -> Callable:
    """
    A dependency factory that returns a dependency function to check the caller's role.
    Example Usage: ctx: schemas.SessionContext = Depends(require_roles(models.UserRole.admin))
    """
    def role_checker(
        ctx: schemas.SessionContext = Depends(get_session_context),
    ) -> schemas.SessionContext:
        if ctx.role not in allowed_roles:
            names = " or ".join(role.value for role in allowed_roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires {names} role",
            )
        return ctx
    return role_checker


require_admin = require_roles(models.UserRole.admin)
require_staff = require_roles(models.UserRole.admin, models.UserRole.teacher)
require_student = require_roles(models.UserRole.student)
