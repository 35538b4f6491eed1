"""
Text Parser

Parses plain text files with the same conventions as the paste box:
- One exercise per line, cells separated by tabs or wide gaps
- "TREINO A" .. "TREINO E" lines switch the category
"""

import logging

from .base import BaseParser, ImportLimitError
from .models import ImportResult, FileInfo
from .normalizer import normalize_rows
from .tokenizer import tokenize_block

logger = logging.getLogger(__name__)


class TextParser(BaseParser):
    """Parser for plain text files"""

    def can_parse(self, file_info: FileInfo) -> bool:
        """Check if this parser can handle the file"""
        return file_info.extension.lower() in ['.txt', '.text', '']

    async def parse(self, content: bytes, file_info: FileInfo) -> ImportResult:
        """Parse text file into exercises"""
        self.reset()

        try:
            text = self.decode_content(content)
            rows = tokenize_block(text, split_on_spaces=True)
            self.check_row_limit(len(rows))
            exercises = normalize_rows(rows, detect_markers=True)

            if not exercises:
                self.add_warning("Nenhum exercício encontrado")

            return ImportResult(
                success=len(exercises) > 0,
                exercises=exercises,
                detected_format="text",
                total_rows=len(rows),
                skipped_rows=max(0, len(rows) - len(exercises)),
                errors=self.errors,
                warnings=self.warnings,
            )

        except ImportLimitError:
            raise
        except Exception as e:
            logger.exception(f"Failed to parse text file: {e}")
            return ImportResult(
                success=False,
                errors=[f"Failed to parse text file: {str(e)}"],
            )
