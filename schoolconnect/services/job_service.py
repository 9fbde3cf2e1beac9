"""
Job Service - SQL for job postings shared by the job, employer and admin routes.

Status lifecycle:
    pending  --admin-->  approved | rejected
    any      --admin-->  any other status (revoke approval, reconsider)
    any      --employer edit-->  pending (revise and resubmit)

Only approved postings are visible to students.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import text

from schoolconnect.db.database import get_db_session, execute_raw_sql
from schoolconnect.schemas.schemas import JobCreate, JobResponse, JobStatus

logger = logging.getLogger(__name__)

JOB_SELECT = """
    SELECT j.job_id, j.employer_id, j.title, j.company, j.description, j.salary,
           j.job_type, j.location, j.deadline, j.contact_email, j.contact_phone,
           j.status, j.rejection_reason, j.created_at, j.updated_at,
           (SELECT COUNT(*) FROM applications a WHERE a.job_id = j.job_id) AS application_count
    FROM jobs j
"""

DETAIL_KINDS = ("requirement", "benefit")

EDITABLE_FIELDS = [
    "title", "company", "description", "salary", "location",
    "contact_email", "contact_phone"
]


def load_details(job_ids: List[int]) -> Dict[int, Dict[str, List[str]]]:
    """Requirements and benefits for many jobs in one query."""
    details = {job_id: {"requirements": [], "benefits": []} for job_id in job_ids}
    if not job_ids:
        return details

    params = {f"j{i}": job_id for i, job_id in enumerate(job_ids)}
    placeholders = ", ".join(f":{name}" for name in params)
    rows = execute_raw_sql(f"""
        SELECT job_id, kind, content FROM job_details
        WHERE job_id IN ({placeholders})
        ORDER BY job_id, kind, position
    """, params)

    for r in rows:
        key = "requirements" if r["kind"] == "requirement" else "benefits"
        details[r["job_id"]][key].append(r["content"])
    return details


def fetch_jobs(where: str = "", params: dict = None, order: str = "j.created_at DESC, j.job_id DESC") -> List[JobResponse]:
    """Run JOB_SELECT with an optional WHERE clause and build responses."""
    sql = JOB_SELECT
    if where:
        sql += f" WHERE {where}"
    sql += f" ORDER BY {order}"
    rows = execute_raw_sql(sql, params)

    details = load_details([r["job_id"] for r in rows])
    return [JobResponse(**r, **details[r["job_id"]]) for r in rows]


def get_job(job_id: int) -> Optional[JobResponse]:
    jobs = fetch_jobs("j.job_id = :jid", {"jid": job_id})
    return jobs[0] if jobs else None


def _write_details(db, job_id: int, kind: str, items: List[str]) -> None:
    db.execute(
        text("DELETE FROM job_details WHERE job_id = :jid AND kind = :kind"),
        {"jid": job_id, "kind": kind}
    )
    for position, content in enumerate(items):
        db.execute(
            text("""
                INSERT INTO job_details (job_id, kind, position, content)
                VALUES (:jid, :kind, :position, :content)
            """),
            {"jid": job_id, "kind": kind, "position": position, "content": content}
        )


def create_job(employer_id: int, job: JobCreate) -> int:
    """Insert a posting as pending. Returns job_id."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO jobs (employer_id, title, company, description, salary, job_type,
                    location, deadline, contact_email, contact_phone, status)
                VALUES (:employer_id, :title, :company, :description, :salary, :job_type,
                    :location, :deadline, :contact_email, :contact_phone, 'pending')
                RETURNING job_id
            """),
            {
                "employer_id": employer_id, "title": job.title, "company": job.company,
                "description": job.description, "salary": job.salary,
                "job_type": job.job_type.value, "location": job.location,
                "deadline": job.deadline.isoformat(),
                "contact_email": job.contact_email, "contact_phone": job.contact_phone
            }
        )
        job_id = result.fetchone()[0]

        _write_details(db, job_id, "requirement", job.requirements)
        _write_details(db, job_id, "benefit", job.benefits)

    logger.info("Employer %s submitted job %s (%s) for review", employer_id, job_id, job.title)
    return job_id


def update_job(job_id: int, changes: dict) -> None:
    """
    Apply a partial edit and send the posting back for review.
    `changes` holds only the fields the employer sent.
    """
    updates = ["status = 'pending'", "rejection_reason = NULL", "reviewed_at = NULL",
               "reviewed_by = NULL", "updated_at = CURRENT_TIMESTAMP"]
    params = {"jid": job_id}

    for field in EDITABLE_FIELDS:
        if field in changes:
            updates.append(f"{field} = :{field}")
            params[field] = changes[field]

    if changes.get("job_type") is not None:
        updates.append("job_type = :job_type")
        params["job_type"] = changes["job_type"].value
    if changes.get("deadline") is not None:
        updates.append("deadline = :deadline")
        params["deadline"] = changes["deadline"].isoformat()

    with get_db_session() as db:
        db.execute(text(f"UPDATE jobs SET {', '.join(updates)} WHERE job_id = :jid"), params)
        if changes.get("requirements") is not None:
            _write_details(db, job_id, "requirement", changes["requirements"])
        if changes.get("benefits") is not None:
            _write_details(db, job_id, "benefit", changes["benefits"])

    logger.info("Job %s edited and resubmitted for review", job_id)


def set_status(job_id: int, status: JobStatus, admin_id: int, message: Optional[str] = None) -> bool:
    """Admin decision on a posting. Returns False if the job doesn't exist."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE jobs SET status = :status, rejection_reason = :reason,
                    reviewed_by = :admin_id, reviewed_at = CURRENT_TIMESTAMP,
                    updated_at = CURRENT_TIMESTAMP
                WHERE job_id = :jid
            """),
            {
                "jid": job_id,
                "status": status.value,
                "reason": message if status == JobStatus.rejected else None,
                "admin_id": admin_id
            }
        )
        found = result.rowcount > 0

    if found:
        logger.info("Admin %s set job %s to %s", admin_id, job_id, status.value)
    return found


def delete_job(job_id: int) -> bool:
    """Delete a posting with its details, applications and interviews."""
    with get_db_session() as db:
        db.execute(
            text("""
                DELETE FROM interviews WHERE application_id IN
                    (SELECT application_id FROM applications WHERE job_id = :jid)
            """),
            {"jid": job_id}
        )
        db.execute(text("DELETE FROM applications WHERE job_id = :jid"), {"jid": job_id})
        db.execute(text("DELETE FROM job_details WHERE job_id = :jid"), {"jid": job_id})
        result = db.execute(text("DELETE FROM jobs WHERE job_id = :jid"), {"jid": job_id})
        deleted = result.rowcount > 0

    if deleted:
        logger.info("Deleted job %s", job_id)
    return deleted


def status_counts(where: str = "", params: dict = None) -> dict:
    """{total, approved, pending, rejected} over jobs matching `where`."""
    sql = "SELECT status, COUNT(*) AS n FROM jobs"
    if where:
        sql += f" WHERE {where}"
    sql += " GROUP BY status"

    counts = {status.value: 0 for status in JobStatus}
    for r in execute_raw_sql(sql, params):
        counts[r["status"]] = r["n"]
    counts["total"] = sum(counts.values())
    return counts
