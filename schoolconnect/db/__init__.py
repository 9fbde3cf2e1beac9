"""
Database module - SQL and MongoDB connections.
"""
from schoolconnect.db.database import get_db_session, execute_raw_sql, check_sql_connection
from schoolconnect.db.mongodb import get_mongo_db, get_resume_bucket, check_mongo_connection

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "check_sql_connection",
    "get_mongo_db",
    "get_resume_bucket",
    "check_mongo_connection"
]
