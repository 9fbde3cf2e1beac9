"""
Application Service - application queries and the status state machine.

    pending  -> reviewed | accepted | rejected
    reviewed -> accepted | rejected
    accepted, rejected: final

Re-sending the current status is a no-op.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from schoolconnect.db.database import get_db_session, execute_raw_sql, fetch_one
from schoolconnect.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationStatus, InterviewStatus
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    ApplicationStatus.pending: {ApplicationStatus.reviewed, ApplicationStatus.accepted, ApplicationStatus.rejected},
    ApplicationStatus.reviewed: {ApplicationStatus.accepted, ApplicationStatus.rejected},
    ApplicationStatus.accepted: set(),
    ApplicationStatus.rejected: set(),
}

APPLICATION_SELECT = """
    SELECT a.application_id, a.job_id, j.title AS job_title, j.company, a.student_id,
           a.applicant_name, a.applicant_email, a.cover_letter, a.additional_comments,
           a.resume_file_id, a.resume_filename, a.status, a.employer_message,
           a.interview_status, a.applied_at, a.updated_at
    FROM applications a
    JOIN jobs j ON a.job_id = j.job_id
"""


def can_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return current == new or new in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: str, new: ApplicationStatus) -> None:
    """Raise 400 for a move the state machine doesn't allow."""
    if not can_transition(ApplicationStatus(current), new):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change application status from '{current}' to '{new.value}'"
        )


def to_response(row: dict) -> ApplicationResponse:
    return ApplicationResponse(
        has_resume=row["resume_file_id"] is not None,
        **{k: v for k, v in row.items() if k != "resume_file_id"}
    )


def fetch_applications(where: str, params: dict) -> List[ApplicationResponse]:
    rows = execute_raw_sql(
        f"{APPLICATION_SELECT} WHERE {where} ORDER BY a.applied_at DESC, a.application_id DESC",
        params
    )
    return [to_response(r) for r in rows]


def get_for_employer(application_id: int, employer_id: int) -> dict:
    """Application row (raw, incl. resume_file_id) on one of the employer's jobs, else 404."""
    row = fetch_one(
        f"{APPLICATION_SELECT} WHERE a.application_id = :aid AND j.employer_id = :eid",
        {"aid": application_id, "eid": employer_id}
    )
    if not row:
        raise HTTPException(status_code=404, detail="Application not found")
    return row


def create_application(job_id: int, student_id: int, form: ApplicationCreate,
                       resume: Optional[dict] = None) -> int:
    """
    Insert a pending application. `resume` is the attached file's metadata.

    Raises 409 when the student already has an application for the job,
    including one committed by a concurrent request after the caller's check.
    """
    try:
        application_id = _insert_application(job_id, student_id, form, resume)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Already applied to this job")

    logger.info("Student %s applied to job %s (application %s)", student_id, job_id, application_id)
    return application_id


def _insert_application(job_id: int, student_id: int, form: ApplicationCreate,
                        resume: Optional[dict]) -> int:
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO applications (job_id, student_id, applicant_name, applicant_email,
                    cover_letter, additional_comments, resume_file_id, resume_filename, status)
                VALUES (:jid, :sid, :name, :email, :cover, :comments, :file_id, :filename, 'pending')
                RETURNING application_id
            """),
            {
                "jid": job_id, "sid": student_id,
                "name": form.applicant_name, "email": form.applicant_email,
                "cover": form.cover_letter, "comments": form.additional_comments,
                "file_id": resume["file_id"] if resume else None,
                "filename": resume["filename"] if resume else None
            }
        )
        return result.fetchone()[0]


def update_status(application_id: int, status: ApplicationStatus, employer_message: Optional[str]) -> None:
    with get_db_session() as db:
        db.execute(
            text("""
                UPDATE applications
                SET status = :status, employer_message = COALESCE(:message, employer_message),
                    updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :aid
            """),
            {"aid": application_id, "status": status.value, "message": employer_message}
        )
    logger.info("Application %s set to %s", application_id, status.value)


def set_interview_status(db, application_id: int, status: InterviewStatus) -> None:
    db.execute(
        text("""
            UPDATE applications SET interview_status = :status, updated_at = CURRENT_TIMESTAMP
            WHERE application_id = :aid
        """),
        {"aid": application_id, "status": status.value}
    )


def group_by_status(applications: List[ApplicationResponse]) -> Dict[str, List[ApplicationResponse]]:
    grouped = {status.value: [] for status in ApplicationStatus}
    for app in applications:
        grouped.setdefault(app.status, []).append(app)
    return grouped


def status_counts(where: str = "", params: dict = None) -> Dict[str, int]:
    """Applications per status, every status present."""
    sql = "SELECT a.status, COUNT(*) AS n FROM applications a JOIN jobs j ON a.job_id = j.job_id"
    if where:
        sql += f" WHERE {where}"
    sql += " GROUP BY a.status"

    counts = {status.value: 0 for status in ApplicationStatus}
    for r in execute_raw_sql(sql, params):
        counts[r["status"]] = r["n"]
    return counts
