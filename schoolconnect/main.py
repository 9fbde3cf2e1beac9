"""
Student-Employer Connect - Main Application

FastAPI backend with:
- SQL database (PostgreSQL, SQLite for local runs and tests) for accounts, jobs and applications
- MongoDB GridFS for resume files
- JWT authentication with optional email two-factor codes
- Resend email notifications for applicants

Run: uvicorn schoolconnect.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolconnect.api.routes import api_router
from schoolconnect.core.config import get_settings
from schoolconnect.core.logging_config import configure_logging
from schoolconnect.db.database import check_sql_connection
from schoolconnect.db.mongodb import check_mongo_connection, init_mongo_indexes
from schoolconnect.db.tables import init_schema

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Student-Employer Connect",
    description="""
    A school job board connecting students with employers.

    ## Roles
    - **Students**: Browse and filter approved jobs, apply with a resume, track application status
    - **Employers**: Post jobs for review, manage applicants, schedule interviews (after verification)
    - **Admins**: Approve or reject postings, verify employers, view platform analytics

    ## Storage
    - SQL: users, profiles, jobs, applications, interviews
    - MongoDB GridFS: resume files
    """,
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Create SQL tables and MongoDB indexes."""
    try:
        init_schema()
    except Exception:
        logger.exception("SQL schema initialization failed")
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Student-Employer Connect", "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "sql": "connected" if check_sql_connection() else "disconnected",
        "mongodb": "connected" if check_mongo_connection() else "disconnected"
    }
