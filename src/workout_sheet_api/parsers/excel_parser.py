"""
Excel Parser

Parses .xlsx workbooks with support for:
- Multi-sheet workbooks (each sheet = one workout category)
- Sheet titles "Treino B" / "B" picking the category; otherwise sheet order
- "TREINO X" marker rows inside a sheet
- Header row auto-detection
- Hyperlinked cells ("Ver Vídeo") contributing their target URL
"""

import io
import re
import logging
from typing import Any, List, Optional

from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet
from openpyxl.cell.cell import Cell

from workout_sheet_api.config import CATEGORIES
from workout_sheet_api.models import Exercise
from workout_sheet_api.utils import cell_to_str
from .base import BaseParser, ImportLimitError
from .models import ImportResult, ColumnInfo, FileInfo
from .normalizer import category_marker, normalize_rows

logger = logging.getLogger(__name__)


class ExcelParser(BaseParser):
    """Parser for Excel (.xlsx) files"""

    SHEET_CATEGORY_PATTERN = re.compile(r'^(?:treino\s+)?([a-e])$', re.IGNORECASE)  # "Treino B", "B"
    LINK_LABEL_PATTERN = re.compile(r'^(?:ver\s+)?(?:v[ií]deo|link|assistir)\b', re.IGNORECASE)  # "Ver Vídeo"

    def can_parse(self, file_info: FileInfo) -> bool:
        """Check if this parser can handle the file"""
        return file_info.extension.lower() in ['.xlsx', '.xlsm']

    async def parse(self, content: bytes, file_info: FileInfo) -> ImportResult:
        """Parse Excel workbook into exercises"""
        self.reset()

        try:
            # Hyperlinks are only exposed outside read-only mode
            wb = load_workbook(io.BytesIO(content), data_only=True)

            result = ImportResult(
                sheet_names=wb.sheetnames,
                detected_format="excel_multi_sheet" if len(wb.sheetnames) > 1 else "excel_single_sheet"
            )

            all_exercises: List[Exercise] = []
            total_rows = 0

            for sheet_idx, sheet_name in enumerate(wb.sheetnames):
                ws = wb[sheet_name]
                rows = self._sheet_rows(ws)
                total_rows += len(rows)
                self.check_row_limit(total_rows)

                if not rows:
                    self.add_warning(f"Planilha '{sheet_name}' está vazia")
                    continue

                header_idx, columns = self.detect_header_row(rows)
                if header_idx is not None:
                    result.columns.extend(columns)
                    rows = self._reorder_rows(rows[header_idx + 1:], columns)

                category = self._sheet_category(sheet_name, sheet_idx)
                exercises = normalize_rows(rows, category, detect_markers=True)
                logger.info(f"Sheet '{sheet_name}' -> {len(exercises)} exercises (category {category})")
                all_exercises.extend(exercises)

            if not all_exercises:
                self.add_warning("Nenhum exercício encontrado")

            result.exercises = all_exercises
            result.total_rows = total_rows
            result.skipped_rows = max(0, total_rows - len(all_exercises))
            result.errors = self.errors
            result.warnings = self.warnings
            result.success = len(all_exercises) > 0

            return result

        except ImportLimitError:
            raise
        except Exception as e:
            logger.exception(f"Failed to parse Excel file: {e}")
            return ImportResult(
                success=False,
                errors=[f"Failed to parse Excel file: {str(e)}"],
            )

    def _sheet_category(self, sheet_name: str, sheet_idx: int) -> str:
        """Category named by the sheet title, else by sheet position (capped at E)"""
        match = self.SHEET_CATEGORY_PATTERN.match(" ".join(sheet_name.split()))
        if match:
            return match.group(1).upper()
        return CATEGORIES[min(sheet_idx, len(CATEGORIES) - 1)]

    def _sheet_rows(self, ws: Worksheet) -> List[List[Any]]:
        """Read every row of the sheet, trailing empty rows dropped"""
        rows = [[self._cell_value(cell) for cell in row] for row in ws.iter_rows()]
        while rows and not any(cell_to_str(v).strip() for v in rows[-1]):
            rows.pop()
        return rows

    @staticmethod
    def _cell_value(cell: Cell) -> Any:
        """Cell value with its hyperlink target folded in"""
        value = cell.value
        hyperlink = getattr(cell, "hyperlink", None)
        target: Optional[str] = getattr(hyperlink, "target", None) if hyperlink else None
        if not target:
            return value

        text = cell_to_str(value).strip()
        if text.lower().startswith("http"):
            return value
        if not text or ExcelParser.LINK_LABEL_PATTERN.match(text):
            return target
        # "Supino reto" linked to its video: the link extractor splits it again
        return f"{text} {target}"

    def _reorder_rows(self, rows: List[List[Any]], columns: List[ColumnInfo]) -> List[List[Any]]:
        ordered = []
        for row in rows:
            cells = [cell_to_str(value) for value in row]
            if category_marker(cells):
                ordered.append(cells)
            else:
                ordered.append(self.reorder_row(row, columns))
        return ordered
