"""
Archive Builder Tests
"""
import io
import zipfile

from app.services.archive_service import create_zip, unique_names


class TestCreateZip:
    """Test ZIP bundling"""

    def test_entries(self):
        data = create_zip({'a.pdf': b'%PDF a', 'b.pdf': b'%PDF b'})

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert sorted(zf.namelist()) == ['a.pdf', 'b.pdf']
            assert zf.read('a.pdf') == b'%PDF a'
            assert zf.getinfo('b.pdf').compress_type == zipfile.ZIP_DEFLATED
            assert zf.testzip() is None

    def test_empty(self):
        with zipfile.ZipFile(io.BytesIO(create_zip({}))) as zf:
            assert zf.namelist() == []


class TestUniqueNames:
    """Test archive entry name disambiguation"""

    def test_distinct_names_unchanged(self):
        assert unique_names(['a.pdf', 'b.pdf']) == ['a.pdf', 'b.pdf']

    def test_repeats_are_numbered(self):
        assert unique_names(['a.pdf', 'a.pdf', 'a.pdf']) == ['a.pdf', 'a (2).pdf', 'a (3).pdf']

    def test_numbered_name_already_taken(self):
        assert unique_names(['a (2).pdf', 'a.pdf', 'a.pdf']) == ['a (2).pdf', 'a.pdf', 'a (3).pdf']
