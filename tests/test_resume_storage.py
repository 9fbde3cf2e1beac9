from datetime import datetime, timedelta

import gridfs
import pytest
from bson import ObjectId

from schoolconnect.services.resume_storage import ResumeStorage


class StoredFile:
    """What GridFSBucket.find / open_download_stream hand back."""

    def __init__(self, _id, filename, content, metadata, upload_date):
        self._id = _id
        self.filename = filename
        self.metadata = metadata
        self.length = len(content)
        self.upload_date = upload_date
        self._content = content

    def read(self):
        return self._content


class FileCursor:
    def __init__(self, files):
        self.files = files

    def sort(self, key, direction):
        assert key == "uploadDate"
        self.files = sorted(self.files, key=lambda f: f.upload_date, reverse=direction < 0)
        return self

    def limit(self, n):
        self.files = self.files[:n]
        return self

    def __iter__(self):
        return iter(self.files)


def _matches(stored, query):
    for key, condition in query.items():
        value = stored.metadata.get(key[len("metadata."):])
        if isinstance(condition, dict):
            if value == condition["$ne"]:
                return False
        elif value != condition:
            return False
    return True


class RecordingBucket:
    """Dict-backed GridFSBucket covering the calls the resume store makes."""

    def __init__(self):
        self.stored = {}
        self.deleted = []
        self._clock = datetime(2026, 1, 1)

    def upload_from_stream(self, filename, source, metadata=None):
        oid = ObjectId()
        self._clock += timedelta(seconds=1)
        self.stored[oid] = StoredFile(oid, filename, source, dict(metadata or {}), self._clock)
        return oid

    def find(self, query):
        return FileCursor([f for f in self.stored.values() if _matches(f, query)])

    def open_download_stream(self, oid):
        if oid not in self.stored:
            raise gridfs.errors.NoFile(f"no file {oid}")
        return self.stored[oid]

    def delete(self, oid):
        if oid not in self.stored:
            raise gridfs.errors.NoFile(f"no file {oid}")
        del self.stored[oid]
        self.deleted.append(oid)


class RecordingFiles:
    """The <bucket>.files collection; applies $set on metadata fields."""

    def __init__(self, bucket):
        self.bucket = bucket
        self.updates = []

    def update_one(self, query, update):
        self.updates.append((query, update))
        stored = self.bucket.stored.get(query["_id"])
        if stored is not None:
            for key, value in update["$set"].items():
                stored.metadata[key[len("metadata."):]] = value


@pytest.fixture
def bucket():
    return RecordingBucket()


@pytest.fixture
def files(bucket):
    return RecordingFiles(bucket)


@pytest.fixture
def resumes(bucket, files):
    return ResumeStorage(bucket=bucket, files=files)


def _upload(resumes, user_id=1, content=b"%PDF-1.4 resume", ext=".pdf"):
    return resumes.upload(user_id, content, ext, "application/pdf", f"cv{ext}")


def test_upload_stores_metadata_and_becomes_current(resumes, bucket):
    info = _upload(resumes)
    assert info["filename"].startswith("resume_")
    assert info["filename"].endswith(".pdf")
    assert info["original_filename"] == "cv.pdf"
    assert info["size"] == len(b"%PDF-1.4 resume")

    stored = bucket.stored[ObjectId(info["file_id"])]
    assert stored.metadata == {
        "user_id": 1, "content_type": "application/pdf", "original_filename": "cv.pdf",
        "attached": False, "superseded": False,
    }

    current = resumes.get_current(1)
    assert current["file_id"] == info["file_id"]
    assert current["content_type"] == "application/pdf"
    assert resumes.get_current(2) is None


def test_replacing_unattached_resume_deletes_it(resumes, bucket):
    first = _upload(resumes)
    second = _upload(resumes, content=b"second version")

    assert bucket.deleted == [ObjectId(first["file_id"])]
    assert resumes.get_current(1)["file_id"] == second["file_id"]
    assert resumes.download(first["file_id"]) is None


def test_replacing_attached_resume_keeps_it_superseded(resumes, bucket):
    first = _upload(resumes)
    resumes.mark_attached(first["file_id"])
    second = _upload(resumes, content=b"second version")

    assert bucket.deleted == []
    assert bucket.stored[ObjectId(first["file_id"])].metadata["superseded"] is True
    assert resumes.get_current(1)["file_id"] == second["file_id"]

    content, info = resumes.download(first["file_id"])
    assert content == b"%PDF-1.4 resume"
    assert info["original_filename"] == "cv.pdf"


def test_one_current_resume_per_student(resumes):
    mine = _upload(resumes, user_id=1)
    theirs = _upload(resumes, user_id=2)
    _upload(resumes, user_id=2, content=b"newer")

    assert resumes.get_current(1)["file_id"] == mine["file_id"]
    assert resumes.get_current(2)["file_id"] != theirs["file_id"]


def test_delete_current(resumes, bucket):
    assert resumes.delete_current(1) is False

    info = _upload(resumes)
    assert resumes.delete_current(1) is True
    assert bucket.deleted == [ObjectId(info["file_id"])]
    assert resumes.get_current(1) is None
    assert resumes.delete_current(1) is False


def test_delete_current_keeps_attached_copy(resumes, bucket):
    info = _upload(resumes)
    resumes.mark_attached(info["file_id"])

    assert resumes.delete_current(1) is True
    assert resumes.get_current(1) is None
    assert ObjectId(info["file_id"]) in bucket.stored
    assert resumes.download(info["file_id"])[0] == b"%PDF-1.4 resume"


def test_delete_tolerates_file_already_gone(resumes, bucket, monkeypatch):
    _upload(resumes)

    def gone(oid):
        raise gridfs.errors.NoFile(f"no file {oid}")

    monkeypatch.setattr(bucket, "delete", gone)
    assert resumes.delete_current(1) is True


def test_download_unknown_or_malformed_id(resumes):
    assert resumes.download("not-an-object-id") is None
    assert resumes.download(str(ObjectId())) is None


def test_mark_attached_ignores_malformed_id(resumes, files):
    resumes.mark_attached("not-an-object-id")
    assert files.updates == []

    info = _upload(resumes)
    resumes.mark_attached(info["file_id"])
    assert files.updates == [
        ({"_id": ObjectId(info["file_id"])}, {"$set": {"metadata.attached": True}})
    ]
