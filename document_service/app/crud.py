from sqlalchemy.orm import Session
from . import models

def create_document(db: Session, filename: str, filepath: str, size: int):
    db_doc = models.Document(filename=filename, filepath=filepath, size=size)
    db.add(db_doc)
    db.commit()
    db.refresh(db_doc)
    return db_doc

def get_document(db: Session, doc_id: int):
    return db.query(models.Document).filter(models.Document.id == doc_id).first()

def get_documents(db: Session):
    return (
        db.query(models.Document)
        .order_by(models.Document.created_at.desc(), models.Document.id.desc())
        .all()
    )

def delete_document(db: Session, db_doc: models.Document):
    db.delete(db_doc)
    db.commit()
