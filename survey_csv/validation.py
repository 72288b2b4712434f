"""
Form validation for survey submissions.

Runs before a record reaches storage; the CSV codec itself never checks
field semantics. Messages are user-facing (Traditional Chinese).
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .models import FieldError, SurveyRecord, ValidationResult
from .rules import OCCUPATION_TYPES, TAIWAN_REGIONS

REQUIRED = "此欄位為必填"
REQUIRED_CHOICE = "請選擇一個選項"

# Whitespace as browsers define it for form input; narrower than Python's \s.
_WS = r" \f\n\r\t\v\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

_NAME_RE = re.compile(rf"^[一-龥a-zA-Z{_WS}]+$")
_PHONE_CHARS_RE = re.compile(rf"^[0-9{_WS}-]+$")
_PHONE_STRIP_RE = re.compile(rf"[{_WS}-]")


def _result(*errors: FieldError) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=list(errors))


def validate_name(name: Optional[str]) -> ValidationResult:
    if not name or not name.strip():
        return _result(FieldError(field="name", message=REQUIRED))
    if not _NAME_RE.match(name):
        return _result(FieldError(field="name", message="姓名只能包含中文、英文字母和空格"))
    return _result()


def validate_phone(phone: Optional[str]) -> ValidationResult:
    if not phone or not phone.strip():
        return _result(FieldError(field="phone", message=REQUIRED))
    if not _PHONE_CHARS_RE.match(phone):
        return _result(FieldError(field="phone", message="電話號碼只能包含數字、空格和連字號"))

    digits = _PHONE_STRIP_RE.sub("", phone)
    if not 8 <= len(digits) <= 15:
        return _result(FieldError(field="phone", message="請輸入有效的電話號碼（8-15 位數字）"))
    return _result()


def validate_region(region: Optional[str]) -> ValidationResult:
    if not region:
        return _result(FieldError(field="region", message=REQUIRED_CHOICE))
    if region not in TAIWAN_REGIONS:
        return _result(FieldError(field="region", message="請選擇有效的地區"))
    return _result()


def validate_occupation(occupation: Optional[str]) -> ValidationResult:
    if not occupation:
        return _result(FieldError(field="occupation", message=REQUIRED_CHOICE))
    if occupation not in OCCUPATION_TYPES:
        return _result(FieldError(field="occupation", message="請選擇有效的職業類型"))
    return _result()


def _get(data: Any, key: str) -> Optional[str]:
    if isinstance(data, Mapping):
        return data.get(key)
    return getattr(data, key, None)


def validate_form(data: Any) -> ValidationResult:
    """Validate all four user-entered fields; errors are listed in form order."""
    errors = []
    errors += validate_name(_get(data, "name")).errors
    errors += validate_phone(_get(data, "phone")).errors
    errors += validate_region(_get(data, "region")).errors
    errors += validate_occupation(_get(data, "occupation")).errors
    return _result(*errors)


def format_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2024-01-01T00:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def build_record(data: Any, now: Optional[datetime] = None) -> SurveyRecord:
    """Create the stored record for a submission; the timestamp is fixed here."""
    return SurveyRecord(
        name=(_get(data, "name") or "").strip(),
        phone=(_get(data, "phone") or "").strip(),
        region=_get(data, "region") or "",
        occupation=_get(data, "occupation") or "",
        timestamp=format_timestamp(now),
    )
