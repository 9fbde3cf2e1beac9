"""
Admin Routes

GET /admin/jobs - All job postings (optionally by status)
PUT /admin/jobs/{job_id}/status - Approve, reject (with message) or reset a posting
GET /admin/analytics - Platform counts
GET /admin/employers - Employer accounts for verification
PUT /admin/employers/{user_id}/verification - Verify / unverify an employer
PUT /admin/users/{user_id}/active - Deactivate / reactivate an account
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text

from schoolconnect.db.database import get_db_session, execute_raw_sql, fetch_one
from schoolconnect.core.auth import get_current_admin
from schoolconnect.services import application_service, job_service
from schoolconnect.schemas.schemas import (
    JobResponse, JobStatus, JobStatusUpdate, AdminAnalyticsResponse, EmployerAccountResponse,
    EmployerVerificationUpdate, UserActiveUpdate, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

EMPLOYER_SELECT = """
    SELECT u.user_id, e.employer_id, u.email, u.full_name, e.company_name, u.verified,
           u.is_active, u.verification_requested_at, u.created_at, u.updated_at
    FROM users u JOIN employers e ON e.user_id = u.user_id
"""


@router.get("/jobs", response_model=List[JobResponse])
async def list_jobs(
    status: Optional[JobStatus] = Query(None),
    admin: dict = Depends(get_current_admin)
):
    """Every posting regardless of status, newest first."""
    if status:
        return job_service.fetch_jobs("j.status = :status", {"status": status.value})
    return job_service.fetch_jobs()


@router.put("/jobs/{job_id}/status", response_model=JobResponse)
async def update_job_status(
    job_id: int,
    update: JobStatusUpdate,
    admin: dict = Depends(get_current_admin)
):
    """
    Set a posting's review status.

    - approved: visible to students
    - rejected: hidden; `message` is shown to the employer
    - pending: back to the review queue
    """
    if not job_service.set_status(job_id, update.status, admin["user_id"], update.message):
        raise HTTPException(status_code=404, detail="Job not found")
    return job_service.get_job(job_id)


@router.get("/analytics", response_model=AdminAnalyticsResponse)
async def get_analytics(admin: dict = Depends(get_current_admin)):
    """Job counts by status, user counts and application counts."""
    users = fetch_one(
        """
        SELECT
            SUM(CASE WHEN role = 'student' THEN 1 ELSE 0 END) AS students,
            SUM(CASE WHEN role = 'employer' THEN 1 ELSE 0 END) AS employers,
            SUM(CASE WHEN role = 'employer' AND verified = FALSE THEN 1 ELSE 0 END) AS unverified_employers
        FROM users
        """
    )
    return AdminAnalyticsResponse(
        **job_service.status_counts(),
        students=users["students"] or 0,
        employers=users["employers"] or 0,
        unverified_employers=users["unverified_employers"] or 0,
        applications=application_service.status_counts()
    )


@router.get("/employers", response_model=List[EmployerAccountResponse])
async def list_employers(
    verified: Optional[bool] = Query(None),
    admin: dict = Depends(get_current_admin)
):
    """Employer accounts, newest first. Filter with ?verified=false for the review queue."""
    sql = EMPLOYER_SELECT
    params = {}
    if verified is not None:
        sql += " WHERE u.verified = :verified"
        params["verified"] = verified
    sql += " ORDER BY u.created_at DESC, u.user_id DESC"
    return [EmployerAccountResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/employers/{user_id}/verification", response_model=EmployerAccountResponse)
async def set_employer_verification(
    user_id: int,
    update: EmployerVerificationUpdate,
    admin: dict = Depends(get_current_admin)
):
    """
    Verify or unverify an employer.

    Verified employers can log in and post jobs. Unverifying puts the
    account back in the review queue.
    """
    with get_db_session() as db:
        result = db.execute(
            text(f"""
                UPDATE users SET verified = :verified,
                    verification_requested_at = {"NULL" if update.verified else "CURRENT_TIMESTAMP"},
                    updated_at = CURRENT_TIMESTAMP
                WHERE user_id = :uid AND role = 'employer'
            """),
            {"verified": update.verified, "uid": user_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Employer not found")

    logger.info("Admin %s %s employer %s", admin["user_id"],
                "verified" if update.verified else "unverified", user_id)
    return EmployerAccountResponse(**fetch_one(f"{EMPLOYER_SELECT} WHERE u.user_id = :uid", {"uid": user_id}))


@router.put("/users/{user_id}/active", response_model=MessageResponse)
async def set_user_active(
    user_id: int,
    update: UserActiveUpdate,
    admin: dict = Depends(get_current_admin)
):
    """Deactivate or reactivate any account except your own."""
    if user_id == admin["user_id"]:
        raise HTTPException(status_code=400, detail="You cannot change your own account status")

    with get_db_session() as db:
        result = db.execute(
            text("UPDATE users SET is_active = :active, updated_at = CURRENT_TIMESTAMP WHERE user_id = :uid"),
            {"active": update.is_active, "uid": user_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="User not found")

    logger.info("Admin %s set user %s active=%s", admin["user_id"], user_id, update.is_active)
    state = "reactivated" if update.is_active else "deactivated"
    return MessageResponse(message=f"Account {state}")
