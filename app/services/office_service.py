"""DOCX to PDF through an external headless office suite.

The tool runs out of process:

    libreoffice --headless --convert-to pdf --outdir <dir> <input>

and writes ``<dir>/<input stem>.pdf``. Every conversion runs in its own
scratch directory under a ``WorkingDirectory`` root, and the input file,
the output file and the scratch directory are removed on every exit path.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import ExitStack, contextmanager
from typing import Callable, Iterator, List, Optional

from werkzeug.utils import secure_filename

from app.services.errors import ConversionIOError, ConversionToolError, OutputNotFound

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSION = ".docx"
DEFAULT_DOCUMENT_NAME = "document" + DOCUMENT_EXTENSION


class WorkingDirectory:
    """Root directory under which per-conversion scratch directories are made."""

    def __init__(self, root: Optional[str] = None):
        self.root = root or tempfile.gettempdir()

    @contextmanager
    def session(self) -> Iterator[str]:
        """Yield a fresh, uniquely named directory and remove it afterwards."""
        os.makedirs(self.root, exist_ok=True)
        path = tempfile.mkdtemp(prefix="pdfconv_", dir=self.root)
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temp file %s: %s", path, e)


def safe_input_name(filename: Optional[str]) -> str:
    """Sanitised name for the tool's input file.

    The tool picks its import filter from the extension, so names that lose
    ``.docx`` to sanitising (``文件.docx`` becomes ``docx``) get the default.
    """
    name = secure_filename(os.path.basename(filename or ""))
    if not name.lower().endswith(DOCUMENT_EXTENSION):
        return DEFAULT_DOCUMENT_NAME
    return name


def expected_output_path(outdir: str, input_path: str) -> str:
    """Where the tool writes its PDF: same base name, ``.pdf`` extension."""
    stem = os.path.splitext(os.path.basename(input_path))[0]
    return os.path.join(outdir, stem + ".pdf")


class OfficeConverter:
    """Converts office documents by shelling out to ``command``.

    ``runner`` has the ``subprocess.run`` signature and is only swapped out
    in tests.
    """

    def __init__(
        self,
        workdir: Optional[WorkingDirectory] = None,
        command: str = "libreoffice",
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.workdir = workdir or WorkingDirectory()
        self.command = command
        self.runner = runner

    def build_command(self, outdir: str, input_path: str) -> List[str]:
        return [
            self.command,
            "--headless",
            "--convert-to", "pdf",
            "--outdir", outdir,
            input_path,
        ]

    def convert(self, filename: str, data: bytes) -> bytes:
        with self.workdir.session() as outdir, ExitStack() as cleanup:
            name = safe_input_name(filename)
            input_path = os.path.join(outdir, name)

            cleanup.callback(_remove, input_path)
            try:
                with open(input_path, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise ConversionIOError(e) from e

            output_path = expected_output_path(outdir, input_path)
            cleanup.callback(_remove, output_path)

            self._run(self.build_command(outdir, input_path))

            if not os.path.exists(output_path):
                raise OutputNotFound(output_path)
            try:
                with open(output_path, "rb") as f:
                    return f.read()
            except OSError as e:
                raise ConversionIOError(e) from e

    def _run(self, cmd: List[str]) -> None:
        logger.info("Running document converter: %s", " ".join(cmd))
        try:
            result = self.runner(cmd, capture_output=True)
        except OSError as e:
            # Binary missing or not executable
            raise ConversionToolError(f"failed to launch {cmd[0]}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr or b""
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            logger.warning("Document converter exited with %s: %s", result.returncode, stderr.strip())
            raise ConversionToolError(f"exit status {result.returncode}", stderr)


def converter_available(command: str = "libreoffice") -> bool:
    """Whether the conversion tool is on PATH."""
    return shutil.which(command) is not None
