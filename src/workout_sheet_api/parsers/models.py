"""
Parser Models

Pydantic models shared by the ingestion core and the file parsers.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from workout_sheet_api.models import Exercise


class ClassifiedFields(BaseModel):
    """Fields recovered from the cells that follow the name cell"""
    series: int = Field(default=1, ge=1)
    repetitions: str = "10"
    rest: str = ""
    notes: str = ""
    video_link: str = ""


class ColumnInfo(BaseModel):
    """Information about a detected column"""
    index: int
    name: str
    detected_type: Optional[str] = None  # 'name', 'video_link', 'series', ...


class ImportResult(BaseModel):
    """Result from a file parser"""
    success: bool = True
    exercises: List[Exercise] = Field(default_factory=list)
    detected_format: Optional[str] = None  # 'text', 'csv', 'excel_single_sheet', ...
    columns: List[ColumnInfo] = Field(default_factory=list)
    sheet_names: List[str] = Field(default_factory=list)
    total_rows: int = 0
    skipped_rows: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.exercises)


class FileInfo(BaseModel):
    """Information about the file being parsed"""
    filename: str
    extension: str
    size_bytes: int = 0
    content_type: Optional[str] = None
