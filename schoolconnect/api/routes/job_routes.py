"""
Job Routes

POST /jobs - Submit job posting for admin review (verified employer only)
GET /jobs - List approved jobs with filters
GET /jobs/filters - Filter options (companies, locations, job types)
GET /jobs/{job_id} - Get job details
PUT /jobs/{job_id} - Edit job and resubmit for review (owning employer only)
DELETE /jobs/{job_id} - Delete job (owning employer or admin)
POST /jobs/{job_id}/apply - Apply to job (student only)
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, Query

from schoolconnect.core.auth import (
    get_current_user, get_current_student, get_current_employer, get_optional_user, employer_id_for
)
from schoolconnect.db.database import fetch_one
from schoolconnect.services import application_service, job_service
from schoolconnect.services.job_filter_service import JobFilter, apply_filters, filter_options
from schoolconnect.services.notification_service import NotificationService, get_notification_service
from schoolconnect.services.resume_storage import ResumeStorage, get_resume_storage
from schoolconnect.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, JobFilterOptions, JobStatus, JobType,
    DatePosted, ApplicationCreate, ApplicationResponse, MessageResponse, UserRole
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _owned_job(job_id: int, employer_id: int) -> JobResponse:
    job = job_service.get_job(job_id)
    if not job or job.employer_id != employer_id:
        raise HTTPException(status_code=404, detail="Job not found or access denied")
    return job


@router.post("", response_model=JobResponse, status_code=201)
async def submit_job(job: JobCreate, employer: dict = Depends(get_current_employer)):
    """
    Submit a new job posting.

    The posting starts as 'pending' and is published once an admin approves it.
    """
    job_id = job_service.create_job(employer["employer_id"], job)
    return job_service.get_job(job_id)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: str = Query("", description="Search in title, company, description and location"),
    job_type: List[JobType] = Query([], description="Any of these job types"),
    location: str = Query("any"),
    company: List[str] = Query([], description="Any of these companies"),
    min_hourly_rate: float = Query(0, ge=0),
    max_hourly_rate: float = Query(100, ge=0),
    date_posted: DatePosted = Query(DatePosted.all)
):
    """List approved job postings, newest first, with filters and pagination."""
    criteria = JobFilter(
        search=search,
        job_types=[t.value for t in job_type],
        location=location,
        companies=company,
        min_hourly_rate=min_hourly_rate,
        max_hourly_rate=max_hourly_rate,
        date_posted=date_posted
    )
    jobs = apply_filters(job_service.fetch_jobs("j.status = 'approved'"), criteria)

    offset = (page - 1) * page_size
    return JobListResponse(
        jobs=jobs[offset:offset + page_size],
        total=len(jobs),
        page=page,
        page_size=page_size
    )


@router.get("/filters", response_model=JobFilterOptions)
async def get_filter_options():
    """Distinct companies, locations and job types among approved jobs."""
    return JobFilterOptions(**filter_options(job_service.fetch_jobs("j.status = 'approved'")))


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, user: Optional[dict] = Depends(get_optional_user)):
    """
    Get details of a job.

    Approved jobs are public. Pending and rejected jobs are only visible to
    the employer who posted them and to admins.
    """
    job = job_service.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")

    if job.status != JobStatus.approved.value:
        allowed = user is not None and (
            user["role"] == UserRole.admin.value
            or (user["role"] == UserRole.employer.value and employer_id_for(user["user_id"]) == job.employer_id)
        )
        if not allowed:
            raise HTTPException(status_code=404, detail="Job not found")

    return job


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: int, update: JobUpdate, employer: dict = Depends(get_current_employer)):
    """Edit a job posting. Any edit sends the posting back to admin review."""
    _owned_job(job_id, employer["employer_id"])

    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    job_service.update_job(job_id, changes)
    return job_service.get_job(job_id)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, user: dict = Depends(get_current_user)):
    """Delete a job posting with its applications. Owning employer or admin."""
    job = job_service.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found or access denied")

    if user["role"] == UserRole.employer.value:
        if not user["verified"] or employer_id_for(user["user_id"]) != job.employer_id:
            raise HTTPException(status_code=404, detail="Job not found or access denied")
    elif user["role"] != UserRole.admin.value:
        raise HTTPException(status_code=403, detail="Employers or admins only")

    job_service.delete_job(job_id)
    return MessageResponse(message="Job deleted successfully")


@router.post("/{job_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(
    job_id: int,
    application: ApplicationCreate,
    background_tasks: BackgroundTasks,
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage),
    notifier: NotificationService = Depends(get_notification_service)
):
    """
    Apply to a job. Students only, one application per job.

    The current resume is attached unless attach_resume is false.
    A confirmation email goes to applicant_email.
    """
    job = job_service.get_job(job_id)
    if not job or job.status != JobStatus.approved.value:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.deadline < date.today():
        raise HTTPException(status_code=400, detail="The application deadline for this job has passed")

    existing = fetch_one(
        "SELECT application_id FROM applications WHERE student_id = :sid AND job_id = :jid",
        {"sid": student["student_id"], "jid": job_id}
    )
    if existing:
        raise HTTPException(status_code=409, detail="Already applied to this job")

    resume = storage.get_current(student["user_id"]) if application.attach_resume else None

    application_id = application_service.create_application(job_id, student["student_id"], application, resume)

    # Pin only once the application that references the file is saved
    if resume:
        storage.mark_attached(resume["file_id"])

    background_tasks.add_task(
        notifier.send_application_confirmation,
        application.applicant_email,
        application.applicant_name,
        job.title,
        job.company,
        resume is not None
    )

    return application_service.fetch_applications("a.application_id = :aid", {"aid": application_id})[0]
