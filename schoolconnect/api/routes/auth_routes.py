"""
Authentication Routes

POST /auth/register - Register a student or employer account
POST /auth/login - Login (password + role, then two-factor code) and get JWT token
POST /auth/2fa/send - Re-send a two-factor code
GET /auth/me - Get current user info
GET /auth/dashboard - Where the current user's dashboard lives
"""

import logging
from typing import Union

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from schoolconnect.core.auth import (
    hash_password, verify_password, create_access_token, get_current_user, dashboard_path
)
from schoolconnect.core.config import get_settings
from schoolconnect.db.database import get_db_session, fetch_one
from schoolconnect.services import two_factor_service
from schoolconnect.services.notification_service import NotificationService, get_notification_service
from schoolconnect.schemas.schemas import (
    RegisterRequest, LoginRequest, TwoFactorCodeRequest, TokenResponse, TwoFactorChallengeResponse,
    DashboardResponse, UserResponse, MessageResponse, UserRole
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

CODE_SENT_MESSAGE = "If the account exists, a verification code has been sent to its email."


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new student or employer account.

    Employer accounts must be verified by an administrator before they can log in.
    """
    is_employer = request.role == UserRole.employer

    # Check email exists
    if fetch_one("SELECT user_id FROM users WHERE LOWER(email) = LOWER(:email)", {"email": request.email}):
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        user_id = _create_account(request, is_employer)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        raise HTTPException(status_code=409, detail="Email already registered")

    logger.info("Registered %s account %s", request.role.value, user_id)

    if is_employer:
        return MessageResponse(
            message="Registered successfully as employer. You can log in once an administrator verifies your account."
        )
    return MessageResponse(message="Registered successfully as student. Please login.")


def _create_account(request: RegisterRequest, is_employer: bool) -> int:
    """Insert the user row and its role profile in one transaction."""
    with get_db_session() as db:
        # Create user; employers wait for verification
        result = db.execute(
            text(f"""
                INSERT INTO users (email, password_hash, full_name, role, is_active, verified,
                    verification_requested_at)
                VALUES (:email, :password_hash, :full_name, :role, TRUE, :verified,
                    {"CURRENT_TIMESTAMP" if is_employer else "NULL"})
                RETURNING user_id
            """),
            {
                "email": request.email.lower(),
                "password_hash": hash_password(request.password),
                "full_name": request.full_name.strip(),
                "role": request.role.value,
                "verified": not is_employer
            }
        )
        user_id = result.fetchone()[0]

        # Role profile
        if is_employer:
            db.execute(
                text("INSERT INTO employers (user_id, company_name) VALUES (:uid, :company)"),
                {"uid": user_id, "company": request.company_name}
            )
        else:
            db.execute(text("INSERT INTO students (user_id) VALUES (:uid)"), {"uid": user_id})

    return user_id


@router.post(
    "/login",
    response_model=Union[TokenResponse, TwoFactorChallengeResponse],
    responses={202: {"model": TwoFactorChallengeResponse}}
)
async def login(
    request: LoginRequest,
    background_tasks: BackgroundTasks,
    notifier: NotificationService = Depends(get_notification_service)
):
    """
    Login and receive JWT access token.

    With two-factor login enabled, the first call (no code) emails a code and
    answers 202; repeat the call with two_factor_code to get the token.

    Include token in requests: Authorization: Bearer <token>
    """
    settings = get_settings()

    user = fetch_one(
        """
        SELECT user_id, email, full_name, password_hash, role, is_active, verified
        FROM users WHERE LOWER(email) = LOWER(:email)
        """,
        {"email": request.email}
    )

    if (not user or user["role"] != request.role.value
            or not verify_password(request.password, user["password_hash"])):
        logger.warning("Failed %s login for %s", request.role.value, request.email)
        raise HTTPException(status_code=401, detail="Invalid email, password or role")

    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    if user["role"] == UserRole.employer.value and not user["verified"]:
        raise HTTPException(status_code=403, detail="Employer account pending verification")

    if settings.require_two_factor:
        if not request.two_factor_code:
            code = two_factor_service.issue_code(user["user_id"])
            background_tasks.add_task(notifier.send_two_factor_code, user["email"], user["full_name"], code)
            return JSONResponse(
                status_code=202,
                content=TwoFactorChallengeResponse(message="Verification code sent to your email.").model_dump()
            )
        if not two_factor_service.verify_code(user["user_id"], request.two_factor_code):
            raise HTTPException(status_code=401, detail="Invalid or expired verification code")

    token = create_access_token(data={"sub": str(user["user_id"]), "role": user["role"]})
    logger.info("User %s logged in as %s", user["user_id"], user["role"])

    return TokenResponse(
        access_token=token,
        user_id=user["user_id"],
        role=user["role"],
        full_name=user["full_name"],
        redirect_to=dashboard_path(user["role"])
    )


@router.post("/2fa/send", response_model=MessageResponse, status_code=202)
async def send_two_factor_code(
    request: TwoFactorCodeRequest,
    background_tasks: BackgroundTasks,
    notifier: NotificationService = Depends(get_notification_service)
):
    """Issue a fresh code. The answer is the same whether or not the account exists."""
    user = fetch_one(
        "SELECT user_id, email, full_name, is_active FROM users WHERE LOWER(email) = LOWER(:email)",
        {"email": request.email}
    )
    if user and user["is_active"]:
        code = two_factor_service.issue_code(user["user_id"])
        background_tasks.add_task(notifier.send_two_factor_code, user["email"], user["full_name"], code)

    return MessageResponse(message=CODE_SENT_MESSAGE)


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    row = fetch_one(
        """
        SELECT user_id, email, full_name, role, is_active, verified, created_at
        FROM users WHERE user_id = :id
        """,
        {"id": user["user_id"]}
    )
    return UserResponse(**row)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(user: dict = Depends(get_current_user)):
    """Role-based redirect target."""
    return DashboardResponse(role=user["role"], redirect_to=dashboard_path(user["role"]))
