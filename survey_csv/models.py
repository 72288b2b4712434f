from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SurveyRecord(BaseModel):
    """One survey submission. Every field is text; absent values are ''."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    region: str = ""
    occupation: str = ""
    timestamp: str = ""


class SurveySubmission(BaseModel):
    name: str = ""
    phone: str = ""
    region: str = ""
    occupation: str = ""


class FieldError(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: List[FieldError] = Field(default_factory=list)


class SurveyStats(BaseModel):
    total: int = 0
    by_region: Dict[str, int] = Field(default_factory=dict)
    by_occupation: Dict[str, int] = Field(default_factory=dict)


class ExportFile(BaseModel):
    filename: str
    sha256: str
    encoding: str = Field(default="utf-8-sig")
    content: bytes


class AppendResponse(BaseModel):
    success: bool = True
    record: SurveyRecord


class RecordsResponse(BaseModel):
    success: bool = True
    count: int
    records: List[SurveyRecord] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    success: bool = False
    error: Optional[str] = None
    errors: List[FieldError] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
