"""
CSV Parser

Parses exported exercise tables (.csv / .tsv):
- Delimiter detection (comma, semicolon, tab)
- Header row auto-detection with Portuguese/English aliases
- Columns re-ordered into the canonical order before classification
- "TREINO X" marker rows switch the category
"""

import io
import csv
import itertools
import logging
from typing import Any, List, Sequence

from workout_sheet_api.utils import cell_to_str
from .base import BaseParser, ImportLimitError
from .models import ImportResult, ColumnInfo, FileInfo
from .normalizer import category_marker, normalize_rows

logger = logging.getLogger(__name__)


class CSVParser(BaseParser):
    """Parser for delimited text exports"""

    def can_parse(self, file_info: FileInfo) -> bool:
        """Check if this parser can handle the file"""
        return file_info.extension.lower() in ['.csv', '.tsv']

    async def parse(self, content: bytes, file_info: FileInfo) -> ImportResult:
        """Parse CSV file into exercises"""
        self.reset()

        try:
            text = self.decode_content(content).replace('\x00', '')
            delimiter = '\t' if file_info.extension.lower() == '.tsv' else self._detect_delimiter(text)

            reader = csv.reader(io.StringIO(text, newline=''), delimiter=delimiter)
            rows = list(itertools.islice(reader, self.row_limit + 1))
            self.check_row_limit(len(rows))

            if not any(any(cell.strip() for cell in row) for row in rows):
                return ImportResult(
                    success=False,
                    detected_format="csv",
                    errors=["Arquivo vazio"],
                )

            header_idx, columns = self.detect_header_row(rows)
            if header_idx is None:
                self.add_warning("Cabeçalho não encontrado; usando a ordem padrão das colunas")
                data_rows: List[Sequence[Any]] = rows
            else:
                data_rows = self._reorder_rows(rows[header_idx + 1:], columns)

            exercises = normalize_rows(data_rows, detect_markers=True)
            if not exercises:
                self.add_warning("Nenhum exercício encontrado")

            return ImportResult(
                success=len(exercises) > 0,
                exercises=exercises,
                detected_format="csv",
                columns=columns,
                total_rows=len(rows),
                skipped_rows=max(0, len(rows) - len(exercises)),
                errors=self.errors,
                warnings=self.warnings,
            )

        except ImportLimitError:
            raise
        except Exception as e:
            logger.exception(f"Failed to parse CSV file: {e}")
            return ImportResult(
                success=False,
                errors=[f"Failed to parse CSV file: {str(e)}"],
            )

    def _detect_delimiter(self, text: str) -> str:
        """Detect CSV delimiter"""
        lines = text.split('\n')[:5]
        sample = '\n'.join(lines)

        delimiters = {
            ',': sample.count(','),
            ';': sample.count(';'),
            '\t': sample.count('\t'),
        }

        best = max(delimiters, key=delimiters.get)
        return best if delimiters[best] > 0 else ','

    def _reorder_rows(self, rows: Sequence[Sequence[Any]], columns: List[ColumnInfo]) -> List[List[Any]]:
        """Re-order data rows, passing marker rows through untouched"""
        ordered = []
        for row in rows:
            cells = [cell_to_str(value) for value in row]
            if category_marker(cells):
                ordered.append(cells)
            else:
                ordered.append(self.reorder_row(row, columns))
        return ordered
