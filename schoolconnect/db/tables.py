"""
SQL schema - table definitions.

Declared with SQLAlchemy Core so the same DDL runs on PostgreSQL and SQLite.
Routes query these tables with raw SQL; the Table objects are only used to
create/drop the schema.

Tables:
- users            - login accounts (student / employer / admin)
- students         - student profile, one per student user
- employers        - employer profile, one per employer user
- jobs             - job postings (pending -> approved / rejected)
- job_details      - ordered requirements and benefits of a posting
- applications     - student applications (pending -> reviewed -> accepted / rejected)
- interviews       - interviews scheduled by employers for an application
- two_factor_codes - one-time login codes
"""

import logging

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, MetaData,
    String, Table, Text, UniqueConstraint, func
)

from schoolconnect.db.database import engine

logger = logging.getLogger(__name__)

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("full_name", String(100), nullable=False),
    Column("role", String(20), nullable=False, index=True),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("verified", Boolean, nullable=False, server_default="0"),
    Column("verification_requested_at", DateTime, nullable=True),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

students = Table(
    "students", metadata,
    Column("student_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True),
    Column("phone", String(30)),
    Column("school", String(200)),
    Column("program", String(200)),
    Column("graduation_year", Integer),
    Column("bio", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

employers = Table(
    "employers", metadata,
    Column("employer_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True),
    Column("company_name", String(100)),
    Column("phone", String(30)),
    Column("website", String(255)),
    Column("description", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

jobs = Table(
    "jobs", metadata,
    Column("job_id", Integer, primary_key=True, autoincrement=True),
    Column("employer_id", Integer, ForeignKey("employers.employer_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("title", String(100), nullable=False),
    Column("company", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("salary", String(50), nullable=False),
    Column("job_type", String(20), nullable=False),
    Column("location", String(100), nullable=False),
    Column("deadline", Date, nullable=False),
    Column("contact_email", String(255)),
    Column("contact_phone", String(30)),
    Column("status", String(20), nullable=False, server_default="pending", index=True),
    Column("rejection_reason", Text),
    Column("reviewed_by", Integer, ForeignKey("users.user_id", ondelete="SET NULL")),
    Column("reviewed_at", DateTime),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

job_details = Table(
    "job_details", metadata,
    Column("detail_id", Integer, primary_key=True, autoincrement=True),
    Column("job_id", Integer, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("kind", String(20), nullable=False),  # requirement | benefit
    Column("position", Integer, nullable=False),
    Column("content", String(500), nullable=False),
)

applications = Table(
    "applications", metadata,
    Column("application_id", Integer, primary_key=True, autoincrement=True),
    Column("job_id", Integer, ForeignKey("jobs.job_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("student_id", Integer, ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("applicant_name", String(100), nullable=False),
    Column("applicant_email", String(100), nullable=False),
    Column("cover_letter", Text, nullable=False),
    Column("additional_comments", Text),
    Column("resume_file_id", String(64)),
    Column("resume_filename", String(255)),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("employer_message", Text),
    Column("interview_status", String(20)),
    Column("applied_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    UniqueConstraint("student_id", "job_id", name="uq_application_student_job"),
)

interviews = Table(
    "interviews", metadata,
    Column("interview_id", Integer, primary_key=True, autoincrement=True),
    Column("application_id", Integer, ForeignKey("applications.application_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("employer_message", Text, nullable=False),
    Column("scheduled_for", DateTime),
    Column("location", String(200)),
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

two_factor_codes = Table(
    "two_factor_codes", metadata,
    Column("code_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True),
    Column("code_hash", String(255), nullable=False),
    # Unix seconds; compared in Python so the check is backend independent
    Column("expires_at", Integer, nullable=False),
    Column("attempts", Integer, nullable=False, server_default="0"),
    Column("consumed", Boolean, nullable=False, server_default="0"),
)


def init_schema(bind=None) -> None:
    """Create all tables that don't exist yet."""
    metadata.create_all(bind or engine)
    logger.info("SQL schema ready (%d tables)", len(metadata.tables))


def drop_schema(bind=None) -> None:
    """Drop every table. Used by tests and local resets."""
    metadata.drop_all(bind or engine)
