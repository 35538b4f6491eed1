"""Ingestion entry points shared by the HTTP routes.

Routes call into this module instead of the parsers directly so that the
import limits and the file-type dispatch live in one place.
"""
import logging
import os
from typing import Any, List, Optional, Sequence

from workout_sheet_api.config import settings
from workout_sheet_api.models import Exercise
from workout_sheet_api.parsers.base import BaseParser, ImportLimitError
from workout_sheet_api.parsers.csv_parser import CSVParser
from workout_sheet_api.parsers.excel_parser import ExcelParser
from workout_sheet_api.parsers.models import FileInfo, ImportResult
from workout_sheet_api.parsers.normalizer import normalize_rows, normalize_text
from workout_sheet_api.parsers.text_parser import TextParser

logger = logging.getLogger(__name__)


class UnsupportedFileError(RuntimeError):
    """Raised when no parser handles the uploaded file type."""


class IngestService:
    """Dispatches pasted text, raw rows and uploaded files to the ingestion core."""

    def __init__(self, parsers: Optional[List[BaseParser]] = None):
        self.parsers: List[BaseParser] = parsers if parsers is not None else [
            ExcelParser(),
            CSVParser(),
            TextParser(),
        ]

    @staticmethod
    def check_line_limit(count: int) -> None:
        if count > settings.MAX_IMPORT_LINES:
            raise ImportLimitError(
                f"Limite de {settings.MAX_IMPORT_LINES} linhas por importação excedido ({count})"
            )

    @staticmethod
    def check_size_limit(size: int) -> None:
        if size > settings.MAX_UPLOAD_BYTES:
            raise ImportLimitError(
                f"Arquivo maior que o limite de {settings.MAX_UPLOAD_BYTES} bytes"
            )

    def ingest_text(
        self,
        text: str,
        default_category: Optional[str] = None,
        split_on_spaces: bool = False,
    ) -> List[Exercise]:
        """Normalize a pasted text block."""
        text = text or ""
        self.check_size_limit(len(text.encode("utf-8")))
        self.check_line_limit(len(text.splitlines()))
        exercises = normalize_text(text, default_category, split_on_spaces=split_on_spaces)
        logger.info(f"Text ingestion produced {len(exercises)} exercises")
        return exercises

    def ingest_rows(
        self,
        rows: Sequence[Sequence[Any]],
        category: Optional[str] = None,
        detect_markers: bool = False,
    ) -> List[Exercise]:
        """Normalize spreadsheet rows that were already split into cells."""
        rows = rows or []
        self.check_line_limit(len(rows))
        exercises = normalize_rows(rows, category, detect_markers=detect_markers)
        logger.info(f"Row ingestion produced {len(exercises)} exercises")
        return exercises

    def get_parser(self, file_info: FileInfo) -> Optional[BaseParser]:
        for parser in self.parsers:
            if parser.can_parse(file_info):
                return parser
        return None

    async def parse_file(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse an uploaded file into exercises.

        Raises:
            ImportLimitError: file larger than MAX_UPLOAD_BYTES, or more rows
                than MAX_IMPORT_LINES (checked by the parser before normalizing)
            UnsupportedFileError: no parser for the file extension
        """
        self.check_size_limit(len(content))

        extension = os.path.splitext(filename or "")[1].lower()
        file_info = FileInfo(
            filename=filename or "",
            extension=extension,
            size_bytes=len(content),
            content_type=content_type,
        )

        parser = self.get_parser(file_info)
        if parser is None:
            raise UnsupportedFileError(f"Tipo de arquivo não suportado: {extension or filename}")

        logger.info(f"Parsing {file_info.filename} with {type(parser).__name__}")
        return await parser.parse(content, file_info)
