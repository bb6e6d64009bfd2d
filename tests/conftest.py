"""
Test Configuration and Fixtures
"""
import io
import os
import subprocess

import pytest
from PIL import Image

from app import create_app, db
from app.services.office_service import OfficeConverter, WorkingDirectory


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    os.environ['SECRET_KEY'] = 'test-secret-key'

    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


def make_image(width, height, fmt='PNG', mode='RGB'):
    """Encode a solid-colour image of the given size"""
    img = Image.new(mode, (width, height), color=(200, 30, 30) if mode == 'RGB' else (200, 30, 30, 128))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def png_bytes():
    return make_image(100, 50, 'PNG')


@pytest.fixture
def jpeg_bytes():
    return make_image(120, 80, 'JPEG')


@pytest.fixture
def workdir(tmp_path):
    """Isolated conversion sandbox, empty at the start of each test"""
    path = tmp_path / 'work'
    path.mkdir()
    return path


class FakeOfficeTool:
    """Stands in for the office suite binary.

    Records each command and, depending on the mode, writes the PDF the real
    tool would produce, exits nonzero, or exits zero without writing anything.
    """

    PDF = b'%PDF-1.4\n% converted\n%%EOF\n'

    def __init__(self, mode='ok', stderr=b''):
        self.mode = mode
        self.stderr = stderr
        self.calls = []
        self.seen_inputs = []

    def __call__(self, cmd, capture_output=False):
        self.calls.append(list(cmd))
        input_path = cmd[-1]
        outdir = cmd[cmd.index('--outdir') + 1]
        with open(input_path, 'rb') as f:
            self.seen_inputs.append(f.read())

        if self.mode == 'fail':
            return subprocess.CompletedProcess(cmd, 77, b'', self.stderr)
        if self.mode == 'ok':
            stem = os.path.splitext(os.path.basename(input_path))[0]
            with open(os.path.join(outdir, stem + '.pdf'), 'wb') as f:
                f.write(self.PDF)
        return subprocess.CompletedProcess(cmd, 0, b'', b'')


@pytest.fixture
def office_tool():
    return FakeOfficeTool


@pytest.fixture
def fake_tool():
    return FakeOfficeTool()


@pytest.fixture
def office(workdir, fake_tool):
    """OfficeConverter wired to the fake tool and the per-test sandbox"""
    return OfficeConverter(workdir=WorkingDirectory(str(workdir)), runner=fake_tool)
