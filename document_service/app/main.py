import os
import re
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, UploadFile, File, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config, crud, database, exceptions, models, normalizer, schemas, storage
from .logger import get_logger

app = FastAPI(title="Document Portal")

HEADER_UNSAFE = re.compile(r"[\x00-\x1f\x7f\"]")

logger = get_logger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    storage.ensure_upload_dir()
    # Create DB tables
    models.Base.metadata.create_all(bind=database.engine)
    logger.info("Database initialized (checked 'documents' table)")

def get_db():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Global exception handlers
@app.exception_handler(exceptions.DocumentServiceException)
async def document_exception_handler(request: Request, exc: exceptions.DocumentServiceException):
    logger.error(f"Document service exception: {exc.error_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.detail
        }
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": f"HTTP_{exc.status_code}",
            "message": exc.detail
        },
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Request validation failed: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": "Invalid request parameters"
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred"
        }
    )


def download_filename(name: str) -> str:
    """Basename of ``name`` with a .pdf extension, since downloads are always PDFs."""
    # Control characters would make an illegal Content-Disposition header
    name = HEADER_UNSAFE.sub("", name)
    name = os.path.basename(name.replace("\\", "/")) or "document"
    if not name.lower().endswith(".pdf"):
        name += ".pdf"
    return name

def content_disposition(disposition: str, filename: str) -> str:
    fallback = filename.encode("ascii", "ignore").decode("ascii") or "document.pdf"
    value = f'{disposition}; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename)}"
    return value


@app.get("/")
def read_root():
    return {"message": "Document Portal API is running..."}

# GET /documents
@app.get("/documents", response_model=list[schemas.DocumentResponse])
def list_documents(db: Session = Depends(get_db)):
    try:
        return crud.get_documents(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to list documents: {str(e)}")
        raise exceptions.DatabaseError("Database error while fetching documents")

# POST /documents/upload
@app.post("/documents/upload", status_code=201, response_model=schemas.UploadResponse, responses={400: {"model": schemas.ErrorResponse}})
async def upload_document(file: Optional[UploadFile] = File(None), db: Session = Depends(get_db)):
    if file is None or not file.filename:
        raise exceptions.InvalidUploadError()

    if config.PDF_ONLY_UPLOADS and file.content_type != "application/pdf":
        raise exceptions.InvalidUploadError("Only PDF files are allowed!")

    # Read one byte past the limit to detect oversized uploads without buffering them whole
    content = await file.read(config.MAX_UPLOAD_SIZE + 1)
    if len(content) > config.MAX_UPLOAD_SIZE:
        raise exceptions.InvalidUploadError(
            f"{file.filename} exceeds the maximum upload size of {config.MAX_UPLOAD_SIZE} bytes"
        )

    # File first, then metadata
    filepath, size = storage.save_file(content, file.filename)
    try:
        db_doc = crud.create_document(db, filename=file.filename, filepath=filepath, size=size)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Upload error: {str(e)}")
        storage.remove_file(filepath)
        raise exceptions.DatabaseError("Failed to save document metadata.")

    logger.info(f"Uploaded document {db_doc.id}: {db_doc.filename} ({db_doc.size} bytes)")
    return {"message": "File uploaded successfully", "document": db_doc}

# GET /documents/{doc_id}?download=name.pdf&inline=true
@app.get("/documents/{doc_id}", responses={404: {"model": schemas.ErrorResponse}})
def read_document(
    doc_id: int,
    download: Optional[str] = Query(None),
    inline: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    db_doc = crud.get_document(db, doc_id)
    if not db_doc:
        raise exceptions.DocumentNotFoundError(doc_id)

    content = storage.read_file(db_doc.filepath)
    pdf_bytes = normalizer.normalize_to_pdf(content)

    filename = download_filename(download or db_doc.filename)
    disposition = "inline" if inline == "true" else "attachment"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(disposition, filename)},
    )

# DELETE /documents/{doc_id}
@app.delete("/documents/{doc_id}", response_model=schemas.MessageResponse, responses={404: {"model": schemas.ErrorResponse}})
def delete_document(doc_id: int, db: Session = Depends(get_db)):
    db_doc = crud.get_document(db, doc_id)
    if not db_doc:
        raise exceptions.DocumentNotFoundError(doc_id)

    filepath = db_doc.filepath
    try:
        crud.delete_document(db, db_doc)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete document {doc_id}: {str(e)}")
        raise exceptions.DatabaseError("Failed to delete document metadata.")

    # Metadata is gone; a leftover file is only logged
    storage.remove_file(filepath)
    logger.info(f"Deleted document {doc_id}")
    return {"message": "File deleted successfully"}


def run():
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
