"""
Cell Tokenizer

Splits pasted spreadsheet data into rows of cells:
- Tab-separated cells, rows separated by \\n or \\r\\n
- CSV quoting ("" escapes, tabs and newlines literal inside quotes)
- Newlines inside a quoted cell collapse to a single space
- An unterminated quote runs to the end of the input

A cell counts as quoted only when it starts with a quote and its closing
quote is followed by a tab, a line break or the end of the input. Anything
else (`"Supino" reto`, `Leg press 45"`) is kept literally.
"""

import logging
import re
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

_NEWLINE_RUN = re.compile(r'\s*[\r\n]+\s*')
_WIDE_GAP = re.compile(r'\s{2,}')
_CELL_END = '\t\r\n'


def _clean_cell(value: str) -> str:
    """Trim a cell and collapse embedded newlines."""
    return _NEWLINE_RUN.sub(' ', value).strip()


def _split_wide_gaps(cells: List[str]) -> List[str]:
    """Split a tab-less row on runs of 2+ spaces (text copied from PDFs)."""
    if len(cells) != 1:
        return cells
    return [part for part in _WIDE_GAP.split(cells[0]) if part.strip()] or cells


def _read_quoted(text: str, start: int) -> Optional[Tuple[str, int]]:
    """
    Read a quoted cell whose opening quote sits at `start`.

    Returns (value, end) where `end` is the index just past the cell, or None
    when the closing quote is followed by something other than a cell end.
    """
    parts = []
    i = start + 1
    while i < len(text):
        quote = text.find('"', i)
        if quote == -1:
            break
        parts.append(text[i:quote])
        if text.startswith('""', quote):
            parts.append('"')
            i = quote + 2
            continue
        end = quote + 1
        while end < len(text) and text[end] == ' ':
            end += 1
        if end == len(text) or text[end] in _CELL_END:
            return ''.join(parts), end
        return None

    # Unterminated: the cell runs to the end of the input
    logger.debug("Unterminated quote; cell extends to end of input")
    parts.append(text[i:])
    return ''.join(parts), len(text)


def _records(text: str) -> List[List[str]]:
    records: List[List[str]] = []
    row: List[str] = []
    i = 0
    while True:
        quoted = _read_quoted(text, i) if text.startswith('"', i) else None
        if quoted:
            value, i = quoted
        else:
            end = i
            while end < len(text) and text[end] not in _CELL_END:
                end += 1
            value, i = text[i:end], end
        row.append(_clean_cell(value))

        if i >= len(text):
            records.append(row)
            return records
        if text[i] == '\t':
            i += 1
            continue
        # Row break: \n, \r\n or a lone \r
        i += 2 if text.startswith('\r\n', i) else 1
        records.append(row)
        row = []
        if i >= len(text):
            return records


def tokenize_block(text: str, split_on_spaces: bool = False) -> List[List[str]]:
    """
    Tokenize a multi-line pasted block into rows of trimmed cells.

    Rows without any non-empty cell are dropped. Input containing neither a tab
    nor a newline is returned as a single-cell, single-row result.
    """
    if not text:
        return []

    text = text.replace('\x00', '')

    rows: List[List[str]] = []
    for cells in _records(text):
        if split_on_spaces:
            cells = _split_wide_gaps(cells)
        if any(cells):
            rows.append(cells)
    return rows


def tokenize_row(line: str, split_on_spaces: bool = False) -> List[str]:
    """Tokenize one line of pasted text into its ordered cells."""
    rows = tokenize_block(line, split_on_spaces=split_on_spaces)
    return rows[0] if rows else []
