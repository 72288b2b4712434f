"""
Admin export of the survey dataset.

The exported file is the stored CSV text prefixed with a UTF-8 BOM, so
spreadsheet apps open the Chinese header and values correctly.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Optional

from .models import ExportFile
from .rules import EXPORT_FILENAME_PATTERN, TARGET_ENCODING
from .storage import SurveyStorage


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def export_filename(now: Optional[datetime] = None) -> str:
    """survey_responses_<YYYYMMDD>_<HHMMSS>.csv, in UTC."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return EXPORT_FILENAME_PATTERN.format(stamp=now.strftime("%Y%m%d_%H%M%S"))


def export_bytes(csv_text: str) -> bytes:
    return csv_text.encode(TARGET_ENCODING)


def build_export(storage: SurveyStorage, now: Optional[datetime] = None) -> ExportFile:
    content = export_bytes(storage.export_text())
    return ExportFile(
        filename=export_filename(now),
        sha256=_sha256_hex(content),
        encoding=TARGET_ENCODING,
        content=content,
    )
