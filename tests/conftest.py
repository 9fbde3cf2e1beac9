import os
from datetime import date, datetime, timedelta

# Must be set before the app (and its cached settings) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REQUIRE_TWO_FACTOR"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from schoolconnect.core.auth import hash_password
from schoolconnect.db.database import get_db_session
from schoolconnect.db.tables import drop_schema, init_schema
from schoolconnect.main import app
from schoolconnect.services.notification_service import get_notification_service
from schoolconnect.services.resume_storage import build_resume_filename, get_resume_storage

ADMIN_EMAIL = "admin@school.edu"
PASSWORD = "password123"

DESCRIPTION = (
    "Join our team to help students learn programming. You will support instructors, "
    "grade assignments and run weekly lab sessions for first-year classes."
)
COVER_LETTER = "I have tutored programming for two years and would love to help your students."


class FakeResumeStorage:
    """In-memory stand-in for the GridFS resume store."""

    def __init__(self):
        self.files = {}
        self._next = 0

    def upload(self, user_id, content, ext, content_type, original_filename=None):
        previous = self.get_current(user_id)
        self._next += 1
        file_id = f"file{self._next}"
        self.files[file_id] = {
            "user_id": user_id,
            "content": content,
            "attached": False,
            "superseded": False,
            "info": {
                "file_id": file_id,
                "filename": build_resume_filename(ext),
                "original_filename": original_filename,
                "content_type": content_type,
                "size": len(content),
                "uploaded_at": datetime.utcnow(),
            },
        }
        if previous:
            self._retire(previous["file_id"])
        return dict(self.files[file_id]["info"])

    def get_current(self, user_id):
        for file_id in sorted(self.files, key=lambda f: int(f[4:]), reverse=True):
            stored = self.files[file_id]
            if stored["user_id"] == user_id and not stored["superseded"]:
                return dict(stored["info"])
        return None

    def download(self, file_id):
        stored = self.files.get(file_id)
        if not stored:
            return None
        return stored["content"], dict(stored["info"])

    def mark_attached(self, file_id):
        if file_id in self.files:
            self.files[file_id]["attached"] = True

    def delete_current(self, user_id):
        current = self.get_current(user_id)
        if not current:
            return False
        self._retire(current["file_id"])
        return True

    def _retire(self, file_id):
        if self.files[file_id]["attached"]:
            self.files[file_id]["superseded"] = True
        else:
            del self.files[file_id]


class RecordingNotifier:
    """Collects the emails the routes queue instead of sending them."""

    def __init__(self):
        self.sent = []

    def send_application_confirmation(self, to_email, applicant_name, job_title, company=None, has_resume=False):
        self.sent.append(("confirmation", to_email, {
            "applicant_name": applicant_name, "job_title": job_title,
            "company": company, "has_resume": has_resume,
        }))
        return True

    def send_status_update(self, to_email, applicant_name, job_title, status, company=None, employer_message=None):
        self.sent.append(("status", to_email, {
            "applicant_name": applicant_name, "job_title": job_title, "status": status,
            "company": company, "employer_message": employer_message,
        }))
        return True

    def send_two_factor_code(self, to_email, full_name, code):
        self.sent.append(("two_factor", to_email, {"full_name": full_name, "code": code}))
        return True

    def of_kind(self, kind):
        return [s for s in self.sent if s[0] == kind]


@pytest.fixture(autouse=True)
def fresh_db():
    drop_schema()
    init_schema()
    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO users (email, password_hash, full_name, role, is_active, verified)
                VALUES (:email, :hash, 'Site Admin', 'admin', TRUE, TRUE)
            """),
            {"email": ADMIN_EMAIL, "hash": hash_password(PASSWORD)}
        )
    yield


@pytest.fixture
def storage():
    return FakeResumeStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(storage, notifier):
    app.dependency_overrides[get_resume_storage] = lambda: storage
    app.dependency_overrides[get_notification_service] = lambda: notifier
    # No `with` block: startup (Mongo indexes) is not run
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def login(client, email, role, password=PASSWORD):
    r = client.post("/api/auth/login", json={"email": email, "password": password, "role": role})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def register(client, email, role, full_name="Test User", company_name=None):
    payload = {"email": email, "password": PASSWORD, "full_name": full_name, "role": role}
    if company_name:
        payload["company_name"] = company_name
    r = client.post("/api/auth/register", json=payload)
    assert r.status_code == 201, r.text


def job_payload(**overrides):
    payload = {
        "title": "Programming Tutor",
        "company": "Acme Learning",
        "description": DESCRIPTION,
        "salary": "$18-22/hour",
        "job_type": "part-time",
        "location": "Boston, MA",
        "deadline": (date.today() + timedelta(days=30)).isoformat(),
        "contact_email": "jobs@acmelearning.com",
        "requirements": ["Python", "  ", "Patience"],
        "benefits": ["Flexible hours"],
    }
    payload.update(overrides)
    return payload


def application_payload(**overrides):
    payload = {
        "applicant_name": "Sam Student",
        "applicant_email": "sam@student.edu",
        "cover_letter": COVER_LETTER,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin_token(client):
    return login(client, ADMIN_EMAIL, "admin")


@pytest.fixture
def student_token(client):
    register(client, "sam@student.edu", "student", full_name="Sam Student")
    return login(client, "sam@student.edu", "student")


@pytest.fixture
def employer_user_id(client):
    register(client, "hr@acmelearning.com", "employer", full_name="Erin Employer", company_name="Acme Learning")
    with get_db_session() as db:
        return db.execute(text("SELECT user_id FROM users WHERE email = 'hr@acmelearning.com'")).fetchone()[0]


@pytest.fixture
def employer_token(client, admin_token, employer_user_id):
    r = client.put(
        f"/api/admin/employers/{employer_user_id}/verification",
        json={"verified": True},
        headers=auth(admin_token)
    )
    assert r.status_code == 200, r.text
    return login(client, "hr@acmelearning.com", "employer")


def post_job(client, employer_token, **overrides):
    r = client.post("/api/jobs", json=job_payload(**overrides), headers=auth(employer_token))
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def approved_job(client, employer_token, admin_token):
    job = post_job(client, employer_token)
    r = client.put(f"/api/admin/jobs/{job['job_id']}/status", json={"status": "approved"}, headers=auth(admin_token))
    assert r.status_code == 200, r.text
    return r.json()
