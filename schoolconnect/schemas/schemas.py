"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
The job posting and job application forms carry the same rules (and the
same messages) the dashboards show next to each field.
"""

import re
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    employer = "employer"
    admin = "admin"


class JobType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    internship = "internship"
    contract = "contract"


class JobStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    accepted = "accepted"
    rejected = "rejected"


class InterviewStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


class DatePosted(str, Enum):
    all = "all"
    last_24h = "24h"
    last_7d = "7d"
    last_30d = "30d"


DASHBOARD_PATHS = {
    UserRole.student: "/student/dashboard",
    UserRole.employer: "/employer/dashboard",
    UserRole.admin: "/admin/dashboard",
}


# ============================================================
# FORM VALIDATION HELPERS
# ============================================================

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_text(value: Optional[str], required_msg: str, min_len: int = 0,
                 min_msg: str = "", max_len: int = None, max_msg: str = "") -> str:
    """Required text field: non-blank, trimmed minimum, raw maximum."""
    if value is None or not value.strip():
        raise ValueError(required_msg)
    if min_len and len(value.strip()) < min_len:
        raise ValueError(min_msg)
    if max_len is not None and len(value) > max_len:
        raise ValueError(max_msg)
    return value.strip()


def one_year_from(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # Feb 29
        return day.replace(year=day.year + 1, day=28)


def check_deadline(value: Optional[date], today: date = None) -> date:
    """Deadline must be after today and at most one year ahead."""
    if value is None:
        raise ValueError("Application deadline is required")
    today = today or date.today()
    if value <= today:
        raise ValueError("Deadline must be a future date")
    if value > one_year_from(today):
        raise ValueError("Deadline cannot be more than 1 year in the future")
    return value


def check_title(v):
    return require_text(v, "Job title is required",
                        3, "Job title must be at least 3 characters",
                        100, "Job title must be less than 100 characters")


def check_company(v):
    return require_text(v, "Company name is required",
                        2, "Company name must be at least 2 characters",
                        100, "Company name must be less than 100 characters")


def check_description(v):
    return require_text(v, "Job description is required",
                        100, "Job description must be at least 100 characters for quality",
                        2000, "Job description must be less than 2000 characters")


def check_salary(v):
    return require_text(v, "Compensation information is required",
                        max_len=50, max_msg="Compensation description is too long")


def check_location(v):
    return require_text(v, "Job location is required",
                        max_len=100, max_msg="Location description is too long")


def clean_items(items: Optional[List[str]]) -> List[str]:
    """Drop blank entries, keep order."""
    return [item.strip() for item in (items or []) if item and item.strip()]


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole
    company_name: Optional[str] = Field(None, max_length=100)

    @field_validator("role")
    @classmethod
    def no_admin_signup(cls, v: UserRole) -> UserRole:
        if v == UserRole.admin:
            raise ValueError("Admin accounts cannot be self-registered")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    role: UserRole
    two_factor_code: Optional[str] = Field(None, pattern=r"^\d{6}$")


class TwoFactorCodeRequest(BaseModel):
    email: EmailStr


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str
    full_name: str
    redirect_to: str


class TwoFactorChallengeResponse(BaseModel):
    two_factor_required: bool = True
    message: str


class DashboardResponse(BaseModel):
    role: str
    redirect_to: str


class UserResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    role: str
    is_active: bool
    verified: bool
    created_at: datetime


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class StudentUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    school: Optional[str] = Field(None, max_length=200)
    program: Optional[str] = Field(None, max_length=200)
    graduation_year: Optional[int] = Field(None, ge=2000, le=2100)
    bio: Optional[str] = Field(None, max_length=2000)


class StudentResponse(BaseModel):
    student_id: int
    user_id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    school: Optional[str] = None
    program: Optional[str] = None
    graduation_year: Optional[int] = None
    bio: Optional[str] = None
    resume_uploaded: bool = False
    created_at: datetime


class EmployerUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    company_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class EmployerResponse(BaseModel):
    employer_id: int
    user_id: int
    full_name: str
    email: str
    company_name: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    verified: bool
    created_at: datetime


class EmployerAccountResponse(BaseModel):
    """Employer as seen by the admin verification screen."""
    user_id: int
    employer_id: int
    email: str
    full_name: str
    company_name: Optional[str] = None
    verified: bool
    is_active: bool
    verification_requested_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class EmployerVerificationUpdate(BaseModel):
    verified: bool


class UserActiveUpdate(BaseModel):
    is_active: bool


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    model_config = ConfigDict(validate_default=True)

    title: str = ""
    company: str = ""
    description: str = ""
    salary: str = ""
    job_type: JobType = JobType.full_time
    location: str = ""
    deadline: Optional[date] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=30)
    requirements: List[str] = []
    benefits: List[str] = []

    _title = field_validator("title")(check_title)
    _company = field_validator("company")(check_company)
    _description = field_validator("description")(check_description)
    _salary = field_validator("salary")(check_salary)
    _location = field_validator("location")(check_location)
    _lists = field_validator("requirements", "benefits")(clean_items)

    @field_validator("deadline")
    @classmethod
    def deadline_window(cls, v):
        return check_deadline(v)


class JobUpdate(BaseModel):
    """Partial edit. Same rules as JobCreate for every field sent."""
    title: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    salary: Optional[str] = None
    job_type: Optional[JobType] = None
    location: Optional[str] = None
    deadline: Optional[date] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, max_length=30)
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None

    _title = field_validator("title")(check_title)
    _company = field_validator("company")(check_company)
    _description = field_validator("description")(check_description)
    _salary = field_validator("salary")(check_salary)
    _location = field_validator("location")(check_location)
    _lists = field_validator("requirements", "benefits")(clean_items)

    @field_validator("deadline")
    @classmethod
    def deadline_window(cls, v):
        return check_deadline(v)


class JobResponse(BaseModel):
    job_id: int
    employer_id: int
    title: str
    company: str
    description: str
    salary: str
    job_type: str
    location: str
    deadline: date
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    requirements: List[str] = []
    benefits: List[str] = []
    status: str
    rejection_reason: Optional[str] = None
    application_count: int = 0
    created_at: datetime
    updated_at: datetime


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int


class JobFilterOptions(BaseModel):
    companies: List[str]
    locations: List[str]
    job_types: List[str]


class JobStatusUpdate(BaseModel):
    status: JobStatus
    message: Optional[str] = Field(None, max_length=1000)


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    model_config = ConfigDict(validate_default=True)

    applicant_name: str = ""
    applicant_email: str = ""
    cover_letter: str = ""
    additional_comments: Optional[str] = None
    attach_resume: bool = True

    @field_validator("applicant_name")
    @classmethod
    def name_rules(cls, v):
        v = require_text(v, "Full name is required",
                         2, "Name must be at least 2 characters")
        if re.search(r"\d", v):
            raise ValueError("Name should not contain numbers")
        return v

    @field_validator("applicant_email")
    @classmethod
    def email_rules(cls, v):
        if not v or not v.strip():
            raise ValueError("Email address is required")
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        if len(v) > 100:
            raise ValueError("Email address is too long")
        return v

    @field_validator("cover_letter")
    @classmethod
    def cover_letter_rules(cls, v):
        return require_text(v, "Cover letter is required",
                            50, "Cover letter must be at least 50 characters",
                            1000, "Cover letter must be less than 1000 characters")

    @field_validator("additional_comments")
    @classmethod
    def comments_rules(cls, v):
        if v is not None and len(v) > 500:
            raise ValueError("Additional comments must be less than 500 characters")
        return v or None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    employer_message: Optional[str] = Field(None, max_length=1000)


class ApplicationResponse(BaseModel):
    application_id: int
    job_id: int
    job_title: str
    company: str
    student_id: int
    applicant_name: str
    applicant_email: str
    cover_letter: str
    additional_comments: Optional[str] = None
    has_resume: bool = False
    resume_filename: Optional[str] = None
    status: str
    employer_message: Optional[str] = None
    interview_status: Optional[str] = None
    applied_at: datetime
    updated_at: datetime


class ApplicationSummaryResponse(BaseModel):
    counts: Dict[str, int]
    applications: Dict[str, List[ApplicationResponse]]


# ============================================================
# INTERVIEW SCHEMAS
# ============================================================

class InterviewCreate(BaseModel):
    employer_message: str = Field(..., min_length=1, max_length=2000)
    scheduled_for: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)

    @field_validator("employer_message")
    @classmethod
    def message_not_blank(cls, v):
        return require_text(v, "Please enter interview details")


class InterviewStatusUpdate(BaseModel):
    status: InterviewStatus


class InterviewResponse(BaseModel):
    interview_id: int
    application_id: int
    job_id: int
    job_title: str
    applicant_name: str
    employer_message: str
    scheduled_for: Optional[datetime] = None
    location: Optional[str] = None
    status: str
    created_at: datetime


# ============================================================
# RESUME SCHEMAS
# ============================================================

class ResumeResponse(BaseModel):
    file_id: str
    filename: str
    original_filename: Optional[str] = None
    content_type: str
    size: int
    uploaded_at: datetime


class ResumePreviewResponse(BaseModel):
    application_id: int
    filename: str
    text: str


# ============================================================
# ANALYTICS SCHEMAS
# ============================================================

class JobAnalyticsResponse(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int


class AdminAnalyticsResponse(JobAnalyticsResponse):
    students: int
    employers: int
    unverified_employers: int
    applications: Dict[str, int]


class EmployerStatsResponse(BaseModel):
    jobs: JobAnalyticsResponse
    applications: Dict[str, int]
    interviews_scheduled: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    detail: str
