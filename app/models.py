"""
Database Models

Key Models:
- StoredFile: one converted upload (original name + PDF bytes), immutable once written
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.services.pdf_service import pdf_filename_for


class StoredFile(db.Model):
    """
    A converted upload.

    Only successful conversions are ever written, so pdf_data is always a
    complete PDF. Rows are never updated or deleted by the application.
    """
    __tablename__ = 'files'

    id = db.Column(db.Integer, primary_key=True)
    original_name = db.Column(db.Text, nullable=False)
    pdf_data = db.Column(db.LargeBinary, nullable=False)
    uploaded_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def pdf_filename(self):
        """Download name: original name with its extension swapped for .pdf"""
        return pdf_filename_for(self.original_name)

    def to_dict(self):
        """Metadata for API responses (no PDF bytes)"""
        result = {
            'id': self.id,
            'original_name': self.original_name,
            'pdf_filename': self.pdf_filename,
            'size': len(self.pdf_data or b''),
        }
        if self.uploaded_at:
            result['uploaded_at'] = self.uploaded_at.isoformat()
        return result

    @classmethod
    def create(cls, original_name: str, pdf_data: bytes) -> 'StoredFile':
        """Insert a new record and return it with its assigned id"""
        record = cls(original_name=original_name, pdf_data=pdf_data)
        db.session.add(record)
        db.session.commit()
        return record

    @classmethod
    def get(cls, file_id: int) -> Optional['StoredFile']:
        return db.session.get(cls, file_id)

    @classmethod
    def get_many(cls, ids: Iterable[int]) -> List['StoredFile']:
        """Fetch records in the order given, skipping ids that do not exist or fail to load"""
        records = []
        for file_id in ids:
            try:
                record = cls.get(file_id)
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.warning('Error fetching file ID %s: %s', file_id, e)
                continue
            if record is None:
                current_app.logger.warning('Error fetching file ID %s: not found', file_id)
                continue
            records.append(record)
        return records
