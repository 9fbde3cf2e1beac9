#!/usr/bin/env python3
"""
Admin Account Script

Admins cannot sign up through the API. Run this to create one.
Usage: python scripts/create_admin.py
"""
import logging
import sys
from getpass import getpass

sys.path.insert(0, '.')

from pydantic import ValidationError
from sqlalchemy import text

from schoolconnect.core.auth import hash_password
from schoolconnect.core.config import get_settings
from schoolconnect.core.logging_config import configure_logging
from schoolconnect.db.database import get_db_session, fetch_one
from schoolconnect.db.tables import init_schema
from schoolconnect.schemas.schemas import RegisterRequest

log = logging.getLogger("create_admin")


def prompt_admin() -> RegisterRequest:
    full_name = input("Full name: ").strip()
    email = input("Email: ").strip()

    while True:
        password = getpass("Password (min 8 characters): ")
        if password == getpass("Confirm password: "):
            break
        log.warning("Passwords do not match. Please try again.")

    # Reuse the signup rules for email, name and password; role is set below
    return RegisterRequest(email=email, password=password, full_name=full_name, role="student")


def create_admin(form: RegisterRequest) -> int:
    email = form.email.lower()
    if fetch_one("SELECT user_id FROM users WHERE email = :email", {"email": email}):
        raise ValueError(f"A user with email '{email}' already exists")

    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO users (email, password_hash, full_name, role, is_active, verified)
                VALUES (:email, :hash, :name, 'admin', TRUE, TRUE)
                RETURNING user_id
            """),
            {"email": email, "hash": hash_password(form.password), "name": form.full_name.strip()}
        )
        return result.fetchone()[0]


def main():
    configure_logging(get_settings().log_level)
    log.info("--- Admin account creation ---")

    init_schema()

    try:
        form = prompt_admin()
        user_id = create_admin(form)
    except KeyboardInterrupt:
        log.info("Cancelled")
        sys.exit(1)
    except ValidationError as e:
        for err in e.errors():
            log.error("%s: %s", ".".join(str(p) for p in err["loc"]), err["msg"])
        sys.exit(1)
    except ValueError as e:
        log.error(str(e))
        sys.exit(1)

    log.info("Created admin user %s (%s)", user_id, form.email)
    log.info("Log in with role 'admin' to reach %s", "/admin/dashboard")


if __name__ == "__main__":
    main()
