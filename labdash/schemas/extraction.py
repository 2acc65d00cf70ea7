# labdash/schemas/extraction.py
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class RawExtractedParameter(BaseModel):
    """One parameter as the model reported it; nothing is required yet."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parameter_name: Optional[str] = Field(default=None, alias="parameterName")
    value: Optional[str] = None
    unit: Optional[str] = None
    normal_range: Optional[str] = Field(default=None, alias="normalRange")
    status: Optional[str] = None
    test_date: Optional[str] = Field(default=None, alias="testDate")
    source_file: Optional[str] = Field(default=None, alias="sourceFile")
    extracted_at: Optional[str] = Field(default=None, alias="extractedAt")

    @field_validator("parameter_name", "value", "unit", "normal_range", "status", "test_date", "source_file", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class ExtractionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parameters: List[RawExtractedParameter]
    document_type: Optional[str] = Field(default=None, alias="documentType")
    lab_name: Optional[str] = Field(default=None, alias="labName")
    patient_info: Optional[str] = Field(default=None, alias="patientInfo")

    @field_validator("document_type", "lab_name", "patient_info", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        return _as_text(v)
