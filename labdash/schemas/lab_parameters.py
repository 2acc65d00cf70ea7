# labdash/schemas/lab_parameters.py
from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from labdash.models.lab_parameter import STATUSES


class LabParameterIn(BaseModel):
    """A parameter that is complete enough to be stored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    parameter_name: str = Field(alias="parameterName", min_length=1, max_length=255)
    value: str = Field(min_length=1, max_length=255)
    unit: str = Field(min_length=1, max_length=64)
    normal_range: str = Field(alias="normalRange", min_length=1, max_length=255)
    status: str
    test_date: str = Field(alias="testDate")
    source_file: Optional[str] = Field(default=None, alias="sourceFile", max_length=255)

    @field_validator("value", "unit", "normal_range", mode="before")
    @classmethod
    def _numbers_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("status")
    @classmethod
    def _known_status(cls, v: str) -> str:
        for status in STATUSES:
            if v.lower() == status.lower():
                return status
        raise ValueError(f"status must be one of {', '.join(STATUSES)}")

    @field_validator("test_date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        if len(v) != 10:
            raise ValueError("testDate must be YYYY-MM-DD")
        try:
            date.fromisoformat(v)
        except ValueError as exc:
            raise ValueError("testDate must be YYYY-MM-DD") from exc
        return v


class ChartPoint(BaseModel):
    date: str
    value: float
    formattedDate: str


class ParameterTrend(BaseModel):
    parameterName: str
    unit: str
    normalRange: str
    data: List[ChartPoint]


class DashboardStats(BaseModel):
    totalParameters: int
    totalReports: int
    abnormalCount: int
    lastUpdated: str
