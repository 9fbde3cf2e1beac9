"""
MongoDB Connection Utility

MongoDB stores uploaded resume files in a GridFS bucket. Each stored file
carries metadata:
- user_id: owning student's user id
- content_type: MIME type sent on download
- original_filename: name the student uploaded

WHY GridFS?
- Resumes are binary blobs up to a few MB
- Metadata lives next to the bytes, no join needed
"""

import logging

import gridfs
from pymongo import MongoClient
from pymongo.database import Database

from schoolconnect.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms
        )
    return _client


def get_mongo_db() -> Database:
    """Get the file storage database"""
    global _db
    if _db is None:
        _db = get_mongo_client()[settings.mongodb_db]
    return _db


def get_resume_bucket() -> gridfs.GridFSBucket:
    """GridFS bucket holding resume files."""
    return gridfs.GridFSBucket(get_mongo_db(), bucket_name=settings.resume_bucket)


def check_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        # ping command checks connection
        get_mongo_client().admin.command("ping")
        return True
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes():
    """
    Create indexes for resume lookups.
    Call this once during app startup.
    """
    files = get_mongo_db()[f"{settings.resume_bucket}.files"]

    # Latest resume per student
    files.create_index([("metadata.user_id", 1), ("uploadDate", -1)])

    logger.info("MongoDB indexes created")
