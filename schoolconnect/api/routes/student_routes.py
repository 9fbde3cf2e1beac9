"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update profile
POST /students/resume - Upload resume (PDF/DOC/DOCX), replaces the current one
GET /students/resume - Current resume metadata
GET /students/resume/download - Download current resume
DELETE /students/resume - Delete current resume
GET /students/resume/formats - Get supported formats
GET /students/applications - Get my applications
GET /students/applications/summary - My applications grouped by status
"""

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy import text
from typing import List, Optional

from schoolconnect.db.database import get_db_session, fetch_one
from schoolconnect.core.auth import get_current_student
from schoolconnect.services import application_service
from schoolconnect.services.resume_storage import ResumeStorage, get_resume_storage
from schoolconnect.utils.file_upload import read_resume_upload, get_supported_formats
from schoolconnect.schemas.schemas import (
    StudentUpdate, StudentResponse, ResumeResponse, ApplicationResponse,
    ApplicationSummaryResponse, ApplicationStatus, MessageResponse
)

router = APIRouter(prefix="/students", tags=["Students"])

PROFILE_FIELDS = ["phone", "school", "program", "graduation_year", "bio"]


@router.get("/profile", response_model=StudentResponse)
async def get_profile(
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Get current student's profile."""
    row = fetch_one(
        """
        SELECT s.student_id, s.user_id, u.full_name, u.email, s.phone, s.school,
               s.program, s.graduation_year, s.bio, s.created_at
        FROM students s JOIN users u ON s.user_id = u.user_id
        WHERE s.student_id = :id
        """,
        {"id": student["student_id"]}
    )
    return StudentResponse(**row, resume_uploaded=storage.get_current(student["user_id"]) is not None)


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: StudentUpdate, student: dict = Depends(get_current_student)):
    """Update student profile. Only provided fields are updated."""
    updates = []
    params = {"id": student["student_id"]}

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
                text(f"UPDATE students SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE student_id = :id"),
                params
            )
        if data.full_name is not None:
            db.execute(
                text("UPDATE users SET full_name = :name, updated_at = CURRENT_TIMESTAMP WHERE user_id = :uid"),
                {"name": data.full_name.strip(), "uid": student["user_id"]}
            )

    return MessageResponse(message="Profile updated successfully")


@router.post("/resume", response_model=ResumeResponse, status_code=201)
async def upload_resume(
    file: UploadFile = File(..., description="Resume file (PDF, DOC or DOCX)"),
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """
    Upload a resume. Max 5MB.

    The new file replaces the current resume and is attached to future applications.
    """
    content, ext, content_type = await read_resume_upload(file)
    stored = storage.upload(student["user_id"], content, ext, content_type, original_filename=file.filename)
    return ResumeResponse(**stored)


@router.get("/resume", response_model=ResumeResponse)
async def get_resume(
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Current resume metadata."""
    current = storage.get_current(student["user_id"])
    if not current:
        raise HTTPException(status_code=404, detail="No resume uploaded")
    return ResumeResponse(**current)


@router.get("/resume/download")
async def download_resume(
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Download the current resume file."""
    current = storage.get_current(student["user_id"])
    found = storage.download(current["file_id"]) if current else None
    if not found:
        raise HTTPException(status_code=404, detail="No resume uploaded")

    content, info = found
    return Response(
        content=content,
        media_type=info["content_type"],
        headers={"Content-Disposition": f'attachment; filename="{info["filename"]}"'}
    )


@router.delete("/resume", response_model=MessageResponse)
async def delete_resume(
    student: dict = Depends(get_current_student),
    storage: ResumeStorage = Depends(get_resume_storage)
):
    """Delete the current resume."""
    if not storage.delete_current(student["user_id"]):
        raise HTTPException(status_code=404, detail="No resume uploaded")
    return MessageResponse(message="Resume deleted")


@router.get("/resume/formats")
async def resume_formats():
    """Get supported resume file formats."""
    return get_supported_formats()


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(
    status: Optional[ApplicationStatus] = Query(None),
    student: dict = Depends(get_current_student)
):
    """Get all job applications for current student, newest first."""
    where = "a.student_id = :sid"
    params = {"sid": student["student_id"]}
    if status:
        where += " AND a.status = :status"
        params["status"] = status.value
    return application_service.fetch_applications(where, params)


@router.get("/applications/summary", response_model=ApplicationSummaryResponse)
async def get_application_summary(student: dict = Depends(get_current_student)):
    """Applications grouped by status, with counts per status."""
    applications = application_service.fetch_applications(
        "a.student_id = :sid", {"sid": student["student_id"]}
    )
    grouped = application_service.group_by_status(applications)
    return ApplicationSummaryResponse(
        counts={status: len(items) for status, items in grouped.items()},
        applications=grouped
    )
