"""Report schemas."""
from typing import Any

from pydantic import BaseModel, Field


class ReportRequest(BaseModel):
    """Which dataset to pull and how to narrow it."""

    dataset: str
    columns: list[str] = Field(default_factory=list)
    filters: dict[str, str] = Field(default_factory=dict)
    date_from: str | None = None
    date_to: str | None = None


class DatasetInfo(BaseModel):
    key: str
    label: str
    columns: list[str]
    default_columns: list[str]
    date_field: str
    filters: list[str]


class ReportResponse(BaseModel):
    dataset: str
    columns: list[str]
    rows: list[dict[str, Any]]
    truncated: bool
