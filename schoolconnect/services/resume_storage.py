"""
Resume Storage Service - resume files in a MongoDB GridFS bucket.

Each student has at most one current resume. Stored names follow
resume_<unix-ms><ext>; the name the student uploaded is kept in metadata.

Replacing or deleting the current resume removes the old file, unless an
application has it attached. Attached files are only marked superseded so
employers can still download what the student actually sent.
"""

import logging
import time
from datetime import datetime
from typing import Optional, Tuple

import gridfs
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from schoolconnect.core.config import get_settings
from schoolconnect.db.mongodb import get_mongo_db, get_resume_bucket

logger = logging.getLogger(__name__)


def build_resume_filename(ext: str) -> str:
    return f"resume_{int(time.time() * 1000)}{ext}"


def serialize_file(grid_out) -> dict:
    """GridFS file -> plain dict for responses."""
    metadata = grid_out.metadata or {}
    return {
        "file_id": str(grid_out._id),
        "filename": grid_out.filename,
        "original_filename": metadata.get("original_filename"),
        "content_type": metadata.get("content_type", "application/octet-stream"),
        "size": grid_out.length,
        "uploaded_at": grid_out.upload_date,
    }


def _object_id(file_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(file_id)
    except (InvalidId, TypeError):
        return None


class ResumeStorage:
    """
    Handles resume file storage.

    Usage:
        storage = get_resume_storage()
        info = storage.upload(user_id, content, ".pdf", "application/pdf", "cv.pdf")
    """

    def __init__(self, bucket: gridfs.GridFSBucket = None, files: Collection = None):
        self.bucket = bucket or get_resume_bucket()
        # <bucket>.files, for metadata updates GridFSBucket has no API for
        self.files = files if files is not None else get_mongo_db()[f"{get_settings().resume_bucket}.files"]

    def upload(self, user_id: int, content: bytes, ext: str, content_type: str,
               original_filename: Optional[str] = None) -> dict:
        """Store a new resume and retire the previous one."""
        previous = self._latest(user_id)

        filename = build_resume_filename(ext)
        file_id = self.bucket.upload_from_stream(
            filename,
            content,
            metadata={
                "user_id": user_id,
                "content_type": content_type,
                "original_filename": original_filename,
                "attached": False,
                "superseded": False,
            }
        )
        logger.info("Stored resume %s for user %s (%d bytes)", file_id, user_id, len(content))

        if previous is not None:
            self._retire(previous)

        return {
            "file_id": str(file_id),
            "filename": filename,
            "original_filename": original_filename,
            "content_type": content_type,
            "size": len(content),
            "uploaded_at": datetime.utcnow(),
        }

    def get_current(self, user_id: int) -> Optional[dict]:
        """Metadata of the student's current resume, or None."""
        latest = self._latest(user_id)
        return serialize_file(latest) if latest is not None else None

    def download(self, file_id: str) -> Optional[Tuple[bytes, dict]]:
        """Bytes and metadata of a stored file, or None if missing."""
        oid = _object_id(file_id)
        if oid is None:
            return None
        try:
            grid_out = self.bucket.open_download_stream(oid)
        except gridfs.errors.NoFile:
            return None
        return grid_out.read(), serialize_file(grid_out)

    def mark_attached(self, file_id: str) -> None:
        """Pin a file because an application references it."""
        oid = _object_id(file_id)
        if oid is not None:
            self.files.update_one({"_id": oid}, {"$set": {"metadata.attached": True}})

    def delete_current(self, user_id: int) -> bool:
        """Remove the student's current resume. False if there was none."""
        latest = self._latest(user_id)
        if latest is None:
            return False
        self._retire(latest)
        return True

    def _latest(self, user_id: int):
        cursor = self.bucket.find(
            {"metadata.user_id": user_id, "metadata.superseded": {"$ne": True}}
        ).sort("uploadDate", -1).limit(1)
        for grid_out in cursor:
            return grid_out
        return None

    def _retire(self, grid_out) -> None:
        if (grid_out.metadata or {}).get("attached"):
            self.files.update_one({"_id": grid_out._id}, {"$set": {"metadata.superseded": True}})
            logger.info("Resume %s superseded (still attached to applications)", grid_out._id)
            return
        try:
            self.bucket.delete(grid_out._id)
            logger.info("Deleted resume %s", grid_out._id)
        except gridfs.errors.NoFile:
            logger.warning("Resume %s already gone", grid_out._id)


_storage: Optional[ResumeStorage] = None


def get_resume_storage() -> ResumeStorage:
    """FastAPI dependency - shared resume storage (lazy, so the app imports without MongoDB)."""
    global _storage
    if _storage is None:
        _storage = ResumeStorage()
    return _storage
