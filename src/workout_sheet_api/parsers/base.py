"""
Base Parser

Abstract base class for uploaded-file parsers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from workout_sheet_api.config import settings
from workout_sheet_api.utils import cell_to_str
from .models import ImportResult, ColumnInfo, FileInfo

logger = logging.getLogger(__name__)

# Canonical column order expected by the normalizer
CANONICAL_FIELDS = ["name", "video_link", "series", "repetitions", "rest", "notes"]

# Header aliases (lowercase, substring match), checked in this order
HEADER_ALIASES: Dict[str, List[str]] = {
    "index": ["#", "nº", "n°"],
    "video_link": ["vídeo", "video", "link"],
    "series": ["série", "serie", "séries", "series", "sets"],
    "repetitions": ["repetiç", "repetic", "reps", "rep."],
    "rest": ["pausa", "descanso", "intervalo", "rest"],
    "notes": ["observaç", "observac", "obs", "notes", "notas"],
    "name": ["exercício", "exercicio", "exercise", "nome", "name"],
}

# How many leading rows to scan for a header
HEADER_SCAN_ROWS = 10


class ImportLimitError(RuntimeError):
    """Raised when a paste or upload exceeds the configured limits."""


class BaseParser(ABC):
    """Abstract base class for file parsers"""

    ENCODINGS = ['utf-8', 'utf-8-sig', 'latin-1', 'cp1252']

    def __init__(self, max_rows: Optional[int] = None):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.max_rows = max_rows

    @abstractmethod
    async def parse(self, content: bytes, file_info: FileInfo) -> ImportResult:
        """
        Parse file content into exercises.

        Args:
            content: Raw file bytes
            file_info: Information about the file

        Returns:
            ImportResult with exercises and diagnostics
        """
        pass

    @abstractmethod
    def can_parse(self, file_info: FileInfo) -> bool:
        """
        Check if this parser can handle the given file.

        Args:
            file_info: Information about the file

        Returns:
            True if this parser can handle the file
        """
        pass

    def reset(self):
        self.errors = []
        self.warnings = []

    def decode_content(self, content: bytes) -> str:
        """Decode bytes to string, trying multiple encodings"""
        for encoding in self.ENCODINGS:
            try:
                return content.decode(encoding)
            except UnicodeDecodeError:
                continue

        # Fallback with error replacement
        return content.decode('utf-8', errors='replace')

    @staticmethod
    def classify_header(value: str) -> Optional[str]:
        """Map a header cell to a canonical field, or None"""
        text = value.lower().strip()
        if not text:
            return None
        if text in HEADER_ALIASES["index"]:
            return "index"
        for field_name, aliases in HEADER_ALIASES.items():
            if field_name == "index":
                continue
            if any(alias in text for alias in aliases):
                return field_name
        return None

    def detect_header_row(self, rows: Sequence[Sequence[Any]]) -> Tuple[Optional[int], List[ColumnInfo]]:
        """
        Find a header row among the first rows and map its columns.

        A row counts as a header when it has a name column and at least one
        other known column.
        """
        for row_idx, row in enumerate(rows[:HEADER_SCAN_ROWS]):
            columns = []
            for col_idx, value in enumerate(row):
                text = cell_to_str(value)
                columns.append(ColumnInfo(
                    index=col_idx,
                    name=text or f"Column {col_idx + 1}",
                    detected_type=self.classify_header(text),
                ))

            detected = {c.detected_type for c in columns if c.detected_type}
            if "name" in detected and len(detected - {"name", "index"}) >= 1:
                return row_idx, columns

        return None, []

    @staticmethod
    def reorder_row(row: Sequence[Any], columns: List[ColumnInfo]) -> List[Any]:
        """Re-order a data row into the canonical column order"""
        positions: Dict[str, int] = {}
        for column in columns:
            if column.detected_type in CANONICAL_FIELDS and column.detected_type not in positions:
                positions[column.detected_type] = column.index

        ordered = []
        for field_name in CANONICAL_FIELDS:
            idx = positions.get(field_name)
            ordered.append(row[idx] if idx is not None and idx < len(row) else None)

        # Unmapped columns still reach the classifier, as notes candidates
        mapped = set(positions.values())
        index_columns = {c.index for c in columns if c.detected_type == "index"}
        for idx, value in enumerate(row):
            if idx not in mapped and idx not in index_columns:
                ordered.append(value)
        return ordered

    @property
    def row_limit(self) -> int:
        return self.max_rows if self.max_rows is not None else settings.MAX_IMPORT_LINES

    def check_row_limit(self, count: int) -> None:
        """Reject a file before normalization when it has too many rows."""
        if count > self.row_limit:
            raise ImportLimitError(
                f"Limite de {self.row_limit} linhas por importação excedido ({count})"
            )

    def add_error(self, error: str):
        """Add an error message"""
        self.errors.append(error)
        logger.error(f"Parser error: {error}")

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)
        logger.warning(f"Parser warning: {warning}")
