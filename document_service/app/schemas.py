from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

class DocumentBase(BaseModel):
    filename: str

class DocumentResponse(DocumentBase):
    id: int
    filepath: str
    size: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UploadResponse(BaseModel):
    message: str
    document: DocumentResponse

class MessageResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    error_code: str
    message: str
