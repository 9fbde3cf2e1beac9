"""
File Upload Utility - validate resume uploads and extract preview text.

Supported formats:
- PDF (.pdf) - preview text via PyPDF2
- Word (.docx) - preview text via python-docx
- Word 97-2003 (.doc) - stored, no preview

Max file size: 5MB (MAX_RESUME_SIZE_MB)
"""

import io
from typing import Tuple

from docx import Document
from fastapi import UploadFile, HTTPException
from PyPDF2 import PdfReader

from schoolconnect.core.config import get_settings

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
}
ALLOWED_EXTENSIONS = set(CONTENT_TYPES)
# Browsers sometimes send a generic type for Office files
GENERIC_CONTENT_TYPES = {"application/octet-stream", ""}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_resume_upload(file: UploadFile) -> Tuple[bytes, str, str]:
    """
    Read and validate an uploaded resume.

    Args:
        file: FastAPI UploadFile

    Returns:
        Tuple of (content, extension, content_type)

    Raises:
        HTTPException on validation errors
    """
    settings = get_settings()

    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=415,
            detail="Invalid file type. Please upload a PDF or Word document"
        )

    content_type = (file.content_type or "").lower()
    if content_type not in GENERIC_CONTENT_TYPES and content_type not in CONTENT_TYPES.values():
        raise HTTPException(
            status_code=415,
            detail="Invalid file type. Please upload a PDF or Word document"
        )

    content = await file.read()

    if len(content) > settings.max_resume_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Please upload a file smaller than {settings.max_resume_size_mb}MB"
        )

    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return content, ext, CONTENT_TYPES[ext]


def extract_preview_text(content: bytes, filename: str) -> str:
    """Plain text of a stored resume, for the employer preview."""
    ext = get_file_extension(filename)
    if ext == '.pdf':
        text = extract_from_pdf(content)
    elif ext == '.docx':
        text = extract_from_docx(content)
    else:
        raise HTTPException(status_code=415, detail=f"Preview not available for '{ext}' files")

    if not text.strip():
        raise HTTPException(
            status_code=422,
            detail="Could not extract text from file. File may be empty or scanned."
        )
    return text


def extract_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        return '\n'.join(text_parts)
    except Exception as e:
        raise HTTPException(status_code=422, detail=f"Error reading PDF: {str(e)}")


def extract_from_docx(content: bytes) -> str:
    """Extract text from DOCX bytes."""
    try:
        doc = Document(io.BytesIO(content))
        text_parts = []

        # Extract paragraphs
        for para in doc.paragraphs:
            if para.text.strip():
                text_parts.append(para.text)

        # Extract tables
        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_parts.append(' | '.join(row_text))

        return '\n'.join(text_parts)
    except Exception as e:
        raise HTTPException(status_code=422, detail=f"Error reading DOCX: {str(e)}")


def get_supported_formats() -> dict:
    """Get info about supported file formats."""
    return {
        "supported_formats": [
            {"extension": ".pdf", "name": "PDF", "preview": True},
            {"extension": ".docx", "name": "Word Document", "preview": True},
            {"extension": ".doc", "name": "Word 97-2003 Document", "preview": False}
        ],
        "max_size_mb": get_settings().max_resume_size_mb
    }
