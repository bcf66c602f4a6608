from fastapi import HTTPException
from typing import Any, Dict, Optional

class DocumentServiceException(HTTPException):
    """Base exception for document service errors"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or f"DOCUMENT_{status_code}"

class InvalidUploadError(DocumentServiceException):
    """Upload rejected before anything was stored"""

    def __init__(self, detail: str = "Please upload a valid PDF file."):
        super().__init__(status_code=400, detail=detail, error_code="INVALID_UPLOAD")

class DocumentNotFoundError(DocumentServiceException):
    """No metadata row for the requested id"""

    def __init__(self, doc_id: int):
        super().__init__(
            status_code=404,
            detail=f"Document '{doc_id}' not found",
            error_code="DOCUMENT_NOT_FOUND"
        )

class FileMissingError(DocumentServiceException):
    """Metadata exists but the stored file is gone"""

    def __init__(self, detail: str = "File missing from server storage."):
        super().__init__(status_code=404, detail=detail, error_code="FILE_MISSING")

class StorageError(DocumentServiceException):
    """Local file store read/write errors"""

    def __init__(self, detail: str = "Failed to store document on disk"):
        super().__init__(status_code=500, detail=detail, error_code="STORAGE_ERROR")

class DatabaseError(DocumentServiceException):
    """Metadata store errors"""

    def __init__(self, detail: str = "Database error"):
        super().__init__(status_code=500, detail=detail, error_code="DATABASE_ERROR")
