#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the SQL database, MongoDB and email settings.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from sqlalchemy.engine import make_url

from schoolconnect.db.database import check_sql_connection
from schoolconnect.db.mongodb import check_mongo_connection
from schoolconnect.services.notification_service import get_notification_service
from schoolconnect.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("STUDENT-EMPLOYER CONNECT - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] SQL database...")
    print(f"    URL: {make_url(settings.sql_url).render_as_string(hide_password=True)}")
    sql_ok = check_sql_connection()
    print(f"    SQL: {'CONNECTED' if sql_ok else 'FAILED'}")

    print("\n[2] MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db} (bucket: {settings.resume_bucket})")
    mongo_ok = check_mongo_connection()
    print(f"    MongoDB: {'CONNECTED' if mongo_ok else 'FAILED'}")

    print("\n[3] Email (Resend)...")
    if get_notification_service().is_configured():
        print(f"    Sender: {settings.email_from}")
        print("    Email: CONFIGURED")
    else:
        print("    Email: not configured, notifications will be skipped")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)

    if not (sql_ok and mongo_ok):
        sys.exit(1)


if __name__ == "__main__":
    main()
