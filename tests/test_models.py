"""
Database Model Tests
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.models import StoredFile


class TestStoredFile:
    """Test StoredFile model"""

    def test_create_stored_file(self, app):
        """Should assign an id and an upload timestamp"""
        record = StoredFile.create('holiday.jpg', b'%PDF-1.4 test')

        assert record.id is not None
        assert record.original_name == 'holiday.jpg'
        assert record.pdf_data == b'%PDF-1.4 test'
        assert record.uploaded_at is not None

    def test_ids_are_unique(self, app):
        first = StoredFile.create('a.txt', b'%PDF a')
        second = StoredFile.create('a.txt', b'%PDF b')
        assert first.id != second.id

    def test_get(self, app):
        record = StoredFile.create('notes.txt', b'%PDF notes')

        fetched = StoredFile.get(record.id)
        assert fetched is not None
        assert fetched.pdf_data == b'%PDF notes'
        assert StoredFile.get(999999) is None

    def test_get_many_skips_missing(self, app):
        """Missing ids are skipped and order is preserved"""
        one = StoredFile.create('one.png', b'%PDF 1')
        two = StoredFile.create('two.png', b'%PDF 2')

        records = StoredFile.get_many([two.id, 999999, one.id])
        assert [r.id for r in records] == [two.id, one.id]

    def test_pdf_filename(self, app):
        record = StoredFile(original_name='scan.final.jpeg', pdf_data=b'')
        assert record.pdf_filename == 'scan.final.pdf'

    def test_to_dict(self, app):
        record = StoredFile.create('report.docx', b'%PDF report')

        data = record.to_dict()
        assert data['id'] == record.id
        assert data['original_name'] == 'report.docx'
        assert data['pdf_filename'] == 'report.pdf'
        assert data['size'] == len(b'%PDF report')
        assert 'uploaded_at' in data
        assert 'pdf_data' not in data


class TestDatabaseInit:
    """Test the startup connection retry loop"""

    def test_retries_until_database_is_up(self, app, monkeypatch):
        from app import db, init_database

        calls = []

        def flaky_create_all(*args, **kwargs):
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError('SELECT 1', {}, Exception('connection refused'))

        monkeypatch.setattr(db, 'create_all', flaky_create_all)
        init_database(app)
        assert len(calls) == 3

    def test_gives_up_after_configured_attempts(self, app, monkeypatch):
        from app import db, init_database

        calls = []

        def down(*args, **kwargs):
            calls.append(1)
            raise OperationalError('SELECT 1', {}, Exception('connection refused'))

        monkeypatch.setattr(db, 'create_all', down)
        monkeypatch.setitem(app.config, 'DB_CONNECT_RETRIES', 2)

        with pytest.raises(OperationalError):
            init_database(app)
        assert len(calls) == 2
