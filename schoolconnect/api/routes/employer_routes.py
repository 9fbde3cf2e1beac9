"""
Employer Routes

GET /employers/profile - Get own profile
PUT /employers/profile - Update profile
GET /employers/jobs - Get my job postings (any status)
GET /employers/applications - Get applications received
GET /employers/applications/{id} - Get one application
PUT /employers/applications/{id}/status - Update application status (emails the student)
GET /employers/applications/{id}/resume - Download attached resume
GET /employers/applications/{id}/resume/preview - Attached resume as plain text
POST /employers/applications/{id}/interviews - Schedule an interview
GET /employers/interviews - List my interviews
PUT /employers/interviews/{id}/status - Complete or cancel an interview
GET /employers/stats - Posting and application counts

All routes require a verified employer account.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, Query
from fastapi.responses import Response
from sqlalchemy import text

from schoolconnect.db.database import get_db_session, execute_raw_sql, fetch_one
from schoolconnect.core.auth import get_current_employer
from schoolconnect.services import application_service, job_service
from schoolconnect.services.notification_service import (
    NotificationService, get_notification_service, should_notify_status_change
)
from schoolconnect.services.resume_storage import ResumeStorage, get_resume_storage
from schoolconnect.utils.file_upload import extract_preview_text
from schoolconnect.schemas.schemas import (
    EmployerUpdate, EmployerResponse, JobResponse, JobStatus, ApplicationResponse,
    ApplicationStatus, ApplicationStatusUpdate, InterviewCreate, InterviewResponse,
    InterviewStatus, InterviewStatusUpdate, ResumePreviewResponse, EmployerStatsResponse,
    JobAnalyticsResponse, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employers", tags=["Employers"])

PROFILE_FIELDS = ["company_name", "phone", "website", "description"]

INTERVIEW_SELECT = """
    SELECT i.interview_id, i.application_id, a.job_id, j.title AS job_title, a.applicant_name,
           i.employer_message, i.scheduled_for, i.location, i.status, i.created_at
    FROM interviews i
    JOIN applications a ON i.application_id = a.application_id
    JOIN jobs j ON a.job_id = j.job_id
"""


@router.get("/profile", response_model=EmployerResponse)
async def get_profile(employer: dict = Depends(get_current_employer)):
    """Get current employer's profile."""
    row = fetch_one(
        """
        SELECT e.employer_id, e.user_id, u.full_name, u.email, e.company_name, e.phone,
               e.website, e.description, u.verified, e.created_at
        FROM employers e JOIN users u ON e.user_id = u.user_id
        WHERE e.employer_id = :id
        """,
        {"id": employer["employer_id"]}
    )
    return EmployerResponse(**row)


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: EmployerUpdate, employer: dict = Depends(get_current_employer)):
    """Update employer profile. Only provided fields are updated."""
    updates = []
    params = {"id": employer["employer_id"]}

    for field in PROFILE_FIELDS:
        value = getattr(data, field)
        if value is not None:
            updates.append(f"{field} = :{field}")
            params[field] = value

    if not updates and data.full_name is None:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        if updates:
            db.execute(
                text(f"UPDATE employers SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE employer_id = :id"),
                params
            )
        if data.full_name is not None:
            db.execute(
                text("UPDATE users SET full_name = :name, updated_at = CURRENT_TIMESTAMP WHERE user_id = :uid"),
                {"name": data.full_name.strip(), "uid": employer["user_id"]}
            )

    return MessageResponse(message="Profile updated successfully")


@router.get("/jobs", response_model=List[JobResponse])
async def get_my_jobs(
    status: Optional[JobStatus] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """All postings by this employer, including pending and rejected ones."""
    where = "j.employer_id = :eid"
    params = {"eid": employer["employer_id"]}
    if status:
        where += " AND j.status = :status"
        params["status"] = status.value
    return job_service.fetch_jobs(where, params)


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_applications(
    job_id: Optional[int] = Query(None),
    status: Optional[ApplicationStatus] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Applications to this employer's postings."""
    where = "j.employer_id = :eid"
    params = {"eid": employer["employer_id"]}
    if job_id:
        where += " AND a.job_id = :jid"
        params["jid"] = job_id
    if status:
        where += " AND a.status = :status"
        params["status"] = status.value
    return application_service.fetch_applications(where, params)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(application_id: int, employer: dict = Depends(get_current_employer)):
    row = application_service.get_for_employer(application_id, employer["employer_id"])
    return application_service.to_response(row)


@router.put("/applications/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: int,
    update: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    employer: dict = Depends(get_current_employer),
    notifier: NotificationService = Depends(get_notification_service)
):
    """
    Review, accept or reject an application.

    The student is emailed when the status actually changes.
    """
    row = application_service.get_for_employer(application_id, employer["employer_id"])
    old_status = row["status"]
    application_service.ensure_transition(old_status, update.status)

    application_service.update_status(application_id, update.status, update.employer_message)

    if should_notify_status_change(old_status, update.status.value):
        background_tasks.add_task(
            notifier.send_status_update,
            row["applicant_email"],
            row["applicant_name"],
            row["job_title"],
            update.status.value,
            row["company"],
            update.employer_message or row["employer_message"]
        )

    updated = application_service.get_for_employer(application_id, employer["employer_id"])
    return application_service.to_response(updated)


def _attached_resume(application_id: int, employer_id: int, storage: ResumeStorage):
    row = application_service.get_for_employer(application_id, employer_id)
    found = storage.download(row["resume_file_id"]) if row["resume_file_id"] else None
    if not found:
        raise HTTPException(status_code=404, detail="No resume attached to this application")
    return found


@router.get("/applications/{application_id}/resume")
async def download_application_resume(
    application_id: int,
    employer: dict = Depends(get_current_employer),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Download the resume the student attached."""
    content, info = _attached_resume(application_id, employer["employer_id"], storage)
    return Response(
        content=content,
        media_type=info["content_type"],
        headers={"Content-Disposition": f'attachment; filename="{info["filename"]}"'}
    )


@router.get("/applications/{application_id}/resume/preview", response_model=ResumePreviewResponse)
async def preview_application_resume(
    application_id: int,
    employer: dict = Depends(get_current_employer),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Plain text of the attached resume (PDF and DOCX)."""
    content, info = _attached_resume(application_id, employer["employer_id"], storage)
    return ResumePreviewResponse(
        application_id=application_id,
        filename=info["filename"],
        text=extract_preview_text(content, info["filename"])
    )


@router.post("/applications/{application_id}/interviews", response_model=InterviewResponse, status_code=201)
async def schedule_interview(
    application_id: int,
    interview: InterviewCreate,
    employer: dict = Depends(get_current_employer)
):
    """Create an interview for an application and flag the application as scheduled."""
    row = application_service.get_for_employer(application_id, employer["employer_id"])
    if row["status"] == ApplicationStatus.rejected.value:
        raise HTTPException(status_code=400, detail="Cannot schedule an interview for a rejected application")

    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO interviews (application_id, employer_message, scheduled_for, location, status)
                VALUES (:aid, :message, :scheduled_for, :location, 'scheduled')
                RETURNING interview_id
            """),
            {
                "aid": application_id,
                "message": interview.employer_message,
                "scheduled_for": interview.scheduled_for.isoformat(sep=" ") if interview.scheduled_for else None,
                "location": interview.location
            }
        )
        interview_id = result.fetchone()[0]
        application_service.set_interview_status(db, application_id, InterviewStatus.scheduled)

    logger.info("Interview %s scheduled for application %s", interview_id, application_id)
    return InterviewResponse(**fetch_one(f"{INTERVIEW_SELECT} WHERE i.interview_id = :iid", {"iid": interview_id}))


@router.get("/interviews", response_model=List[InterviewResponse])
async def get_interviews(
    status: Optional[InterviewStatus] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    sql = f"{INTERVIEW_SELECT} WHERE j.employer_id = :eid"
    params = {"eid": employer["employer_id"]}
    if status:
        sql += " AND i.status = :status"
        params["status"] = status.value
    sql += " ORDER BY i.created_at DESC, i.interview_id DESC"
    return [InterviewResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/interviews/{interview_id}/status", response_model=InterviewResponse)
async def update_interview_status(
    interview_id: int,
    update: InterviewStatusUpdate,
    employer: dict = Depends(get_current_employer)
):
    """Mark an interview completed or cancelled; mirrored on the application."""
    row = fetch_one(
        f"{INTERVIEW_SELECT} WHERE i.interview_id = :iid AND j.employer_id = :eid",
        {"iid": interview_id, "eid": employer["employer_id"]}
    )
    if not row:
        raise HTTPException(status_code=404, detail="Interview not found")

    with get_db_session() as db:
        db.execute(
            text("UPDATE interviews SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE interview_id = :iid"),
            {"status": update.status.value, "iid": interview_id}
        )
        application_service.set_interview_status(db, row["application_id"], update.status)

    return InterviewResponse(**fetch_one(f"{INTERVIEW_SELECT} WHERE i.interview_id = :iid", {"iid": interview_id}))


@router.get("/stats", response_model=EmployerStatsResponse)
async def get_stats(employer: dict = Depends(get_current_employer)):
    """Dashboard numbers for this employer's postings."""
    params = {"eid": employer["employer_id"]}
    scheduled = fetch_one(
        f"""
        SELECT COUNT(*) AS n FROM ({INTERVIEW_SELECT}
            WHERE j.employer_id = :eid AND i.status = 'scheduled') scheduled
        """,
        params
    )
    return EmployerStatsResponse(
        jobs=JobAnalyticsResponse(**job_service.status_counts("employer_id = :eid", params)),
        applications=application_service.status_counts("j.employer_id = :eid", params),
        interviews_scheduled=scheduled["n"]
    )
