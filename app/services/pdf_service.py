"""Upload to PDF conversion.

Dispatches on the filename extension to one of three converters:

- images (JPEG/PNG) become a single page sized to the image, capped to A4
- plain text is typeset on A4 pages in a fixed-width font
- DOCX documents are handed to an external office suite (see office_service)
"""
from __future__ import annotations

import enum
import io
import logging
import os
import re
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from app.services.errors import DecodeError, LayoutError, UnsupportedFormat
from app.services.office_service import OfficeConverter

logger = logging.getLogger(__name__)

# Source images are assumed to be 72 DPI
SOURCE_DPI = 72.0
MM_PER_INCH = 25.4

# A4 in millimetres
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0

# Text layout
TEXT_FONT = "Courier"
TEXT_FONT_SIZE = 10
TEXT_LEADING = 5 * mm
TEXT_MARGIN = 10 * mm
TEXT_BOTTOM_MARGIN = 20 * mm

DECODABLE_IMAGE_FORMATS = ("JPEG", "PNG")


class SourceFormat(enum.Enum):
    IMAGE = "image"
    TEXT = "text"
    DOCUMENT = "document"


EXTENSION_FORMATS: Dict[str, SourceFormat] = {
    ".jpg": SourceFormat.IMAGE,
    ".jpeg": SourceFormat.IMAGE,
    ".png": SourceFormat.IMAGE,
    ".txt": SourceFormat.TEXT,
    ".docx": SourceFormat.DOCUMENT,
}


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def supported_extensions(include_documents: bool = True) -> List[str]:
    return [
        ext for ext, fmt in EXTENSION_FORMATS.items()
        if include_documents or fmt is not SourceFormat.DOCUMENT
    ]


def detect_format(filename: str, include_documents: bool = True) -> SourceFormat:
    """Map a filename to its source format or raise UnsupportedFormat."""
    ext = file_extension(filename)
    fmt = EXTENSION_FORMATS.get(ext)
    if fmt is None or (fmt is SourceFormat.DOCUMENT and not include_documents):
        raise UnsupportedFormat(ext)
    return fmt


def pdf_filename_for(original_name: str) -> str:
    """``report.docx`` -> ``report.pdf``"""
    return os.path.splitext(original_name or "")[0] + ".pdf"


# ============ Images ============

def page_size_for_image(width_px: int, height_px: int) -> Tuple[float, float]:
    """Page size in millimetres for an image of the given pixel size.

    Pixels are converted at 72 DPI. Pages that would exceed A4 in either
    direction are scaled down uniformly until they fit, keeping the image's
    aspect ratio.
    """
    width_mm = (width_px / SOURCE_DPI) * MM_PER_INCH
    height_mm = (height_px / SOURCE_DPI) * MM_PER_INCH

    if width_mm > A4_WIDTH_MM or height_mm > A4_HEIGHT_MM:
        scale = min(A4_WIDTH_MM / width_mm, A4_HEIGHT_MM / height_mm)
        width_mm *= scale
        height_mm *= scale
    return width_mm, height_mm


def decode_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError) as e:
        raise DecodeError(e) from e

    if img.format not in DECODABLE_IMAGE_FORMATS:
        raise DecodeError(ValueError(f"unsupported image format {img.format}"))
    if img.width <= 0 or img.height <= 0:
        raise DecodeError(ValueError("image has no pixels"))
    return img


def convert_image_to_pdf(filename: str, data: bytes) -> bytes:
    img = decode_image(data)
    width_mm, height_mm = page_size_for_image(img.width, img.height)
    page = (width_mm * mm, height_mm * mm)

    buf = io.BytesIO()
    try:
        pdf = canvas.Canvas(buf, pagesize=page, invariant=1)
        pdf.setTitle(os.path.basename(filename or ""))
        # Reading from the original bytes lets JPEG data be embedded as-is
        mask = "auto" if img.mode in ("RGBA", "LA", "P") else None
        pdf.drawImage(ImageReader(io.BytesIO(data)), 0, 0, width=page[0], height=page[1], mask=mask)
        pdf.showPage()
        pdf.save()
    except Exception as e:
        raise LayoutError(e) from e
    return buf.getvalue()


# ============ Text ============

def text_style() -> ParagraphStyle:
    return ParagraphStyle(
        "plain",
        fontName=TEXT_FONT,
        fontSize=TEXT_FONT_SIZE,
        leading=TEXT_LEADING,
        spaceBefore=0,
        spaceAfter=0,
        splitLongWords=1,
    )


def _esc(s: str) -> str:
    return (s or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


_SPACE_RUN = re.compile(r" {2,}")


def _keep_run(match: re.Match) -> str:
    # Last space stays breakable so long lines can still wrap there
    return "&nbsp;" * (len(match.group(0)) - 1) + " "


def _markup_line(line: str) -> str:
    # Paragraph drops leading whitespace and collapses runs of spaces,
    # so both become non-breaking spaces
    line = line.rstrip("\r").expandtabs(4)
    stripped = line.lstrip(" ")
    indent = len(line) - len(stripped)
    return "&nbsp;" * indent + _SPACE_RUN.sub(_keep_run, _esc(stripped))


def split_lines(text: str) -> List[str]:
    return text.split("\n")


def build_text_story(lines: List[str]) -> List[Flowable]:
    """One wrapped block per line; blank lines keep a row of height."""
    style = text_style()
    story: List[Flowable] = []
    for line in lines:
        if not line.strip():
            story.append(Spacer(1, TEXT_LEADING))
            continue
        story.append(Paragraph(_markup_line(line), style))
    return story


def convert_text_to_pdf(filename: str, data: bytes) -> bytes:
    text = data.decode("utf-8", errors="replace")
    story = build_text_story(split_lines(text))

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=TEXT_MARGIN,
        rightMargin=TEXT_MARGIN,
        topMargin=TEXT_MARGIN,
        bottomMargin=TEXT_BOTTOM_MARGIN,
        title=os.path.basename(filename or ""),
        invariant=1,
    )
    try:
        doc.build(story)
    except Exception as e:
        raise LayoutError(e) from e
    return buf.getvalue()


# ============ Dispatch ============

Converter = Callable[[str, bytes], bytes]


def convert_to_pdf(
    filename: str,
    data: bytes,
    office: Optional[OfficeConverter] = None,
    include_documents: bool = True,
) -> bytes:
    """Convert an uploaded file to PDF bytes.

    Raises a ConversionError subclass when the file cannot be converted;
    nothing is returned in that case.
    """
    fmt = detect_format(filename, include_documents=include_documents)

    converters: Dict[SourceFormat, Converter] = {
        SourceFormat.IMAGE: convert_image_to_pdf,
        SourceFormat.TEXT: convert_text_to_pdf,
        SourceFormat.DOCUMENT: (office or OfficeConverter()).convert,
    }
    logger.info("Converting %s (%s, %d bytes)", filename, fmt.value, len(data))
    return converters[fmt](filename, data)
