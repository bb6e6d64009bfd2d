"""ZIP bundling for multi-file downloads."""
from __future__ import annotations

import io
import os
import zipfile
from typing import Iterable, List, Mapping


def unique_names(names: Iterable[str]) -> List[str]:
    """Disambiguate repeated names: ``a.pdf``, ``a (2).pdf``, ``a (3).pdf``"""
    seen = set()
    out: List[str] = []
    for name in names:
        candidate = name
        n = 1
        while candidate in seen:
            n += 1
            stem, ext = os.path.splitext(name)
            candidate = f"{stem} ({n}){ext}"
        seen.add(candidate)
        out.append(candidate)
    return out


def create_zip(files: Mapping[str, bytes]) -> bytes:
    """Build an in-memory ZIP archive with one entry per name."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zipf:
        for name, data in files.items():
            zipf.writestr(name, data)
    return buf.getvalue()
