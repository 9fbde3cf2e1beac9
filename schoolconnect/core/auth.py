"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes, one per role
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from schoolconnect.core.config import get_settings
from schoolconnect.db.database import get_db_session
from schoolconnect.schemas.schemas import UserRole, DASHBOARD_PATHS

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def dashboard_path(role: str) -> str:
    """Where each role lands after login."""
    return DASHBOARD_PATHS[UserRole(role)]


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user still exists and is allowed in
    with get_db_session() as db:
        user = db.execute(
            text("""
                SELECT user_id, email, full_name, role, is_active, verified
                FROM users WHERE user_id = :id
            """),
            {"id": int(user_id)}
        ).mappings().fetchone()

    if not user:
        raise credentials_exception

    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {
        "user_id": user["user_id"],
        "email": user["email"],
        "full_name": user["full_name"],
        "role": user["role"],
        "verified": bool(user["verified"]),
    }


optional_bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme)
) -> Optional[dict]:
    """
    Dependency - current user when a valid token is sent, None for anonymous visitors.

    A stale or malformed token is treated as anonymous so public pages still load.
    """
    if credentials is None or decode_token(credentials.credentials) is None:
        return None
    return await get_current_user(credentials)


def employer_id_for(user_id: int) -> Optional[int]:
    with get_db_session() as db:
        row = db.execute(
            text("SELECT employer_id FROM employers WHERE user_id = :id"),
            {"id": user_id}
        ).fetchone()
    return row[0] if row else None


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role and get student_id."""
    if user["role"] != UserRole.student.value:
        raise HTTPException(status_code=403, detail="Students only")

    with get_db_session() as db:
        row = db.execute(
            text("SELECT student_id FROM students WHERE user_id = :id"),
            {"id": user["user_id"]}
        ).fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Student profile not found")

    user["student_id"] = row[0]
    return user


async def get_current_employer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require a verified employer and get employer_id."""
    if user["role"] != UserRole.employer.value:
        raise HTTPException(status_code=403, detail="Employers only")

    if not user["verified"]:
        raise HTTPException(status_code=403, detail="Employer account pending verification")

    employer_id = employer_id_for(user["user_id"])
    if employer_id is None:
        raise HTTPException(status_code=404, detail="Employer profile not found")

    user["employer_id"] = employer_id
    return user


async def get_current_admin(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require admin role."""
    if user["role"] != UserRole.admin.value:
        raise HTTPException(status_code=403, detail="Admins only")
    return user
