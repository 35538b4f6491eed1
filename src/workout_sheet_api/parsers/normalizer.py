"""
Batch Normalizer

Single entry point for every ingestion surface (free-text paste, table paste,
spreadsheet upload). Drives the tokenizer, link extractor and field classifier
over many rows and assembles Exercise records.

Input conventions:
- "TREINO A" .. "TREINO E" on a line of its own switches the category for the
  rows that follow (free text; optional for spreadsheet rows)
- Header/title rows ("Exercício", "Exercise", ...) and blank rows are skipped
"""

import logging
import re
from typing import Any, Callable, List, Optional, Sequence, Union

from workout_sheet_api.config import settings, CATEGORIES
from workout_sheet_api.models import Exercise, new_exercise_id
from workout_sheet_api.utils import cell_to_str
from .field_classifier import classify_fields
from .link_extractor import split_name_cell
from .tokenizer import tokenize_block

logger = logging.getLogger(__name__)

IdGenerator = Callable[[], str]
Rows = Sequence[Sequence[Any]]

CATEGORY_MARKER_PATTERN = re.compile(r'^treino\s+([a-e])$', re.IGNORECASE)  # "TREINO B"
HEADER_KEYWORDS = ('exercício', 'exercicio', 'exercise', 'treino')


def _resolve_category(category: Optional[str]) -> str:
    value = (category or settings.DEFAULT_CATEGORY).strip().upper()
    return value if value in CATEGORIES else settings.DEFAULT_CATEGORY


def category_marker(cells: Sequence[str]) -> Optional[str]:
    """Return the category named by a "TREINO X" marker row, else None."""
    filled = [c for c in cells if c]
    if len(filled) != 1:
        return None
    match = CATEGORY_MARKER_PATTERN.match(" ".join(filled[0].split()))
    return match.group(1).upper() if match else None


def is_header_row(cells: Sequence[str]) -> bool:
    """True for title/header rows: first cell mentions a header keyword."""
    first = cells[0].lower() if cells else ""
    return any(keyword in first for keyword in HEADER_KEYWORDS)


def _build_exercise(
    cells: Sequence[str],
    category: str,
    id_generator: IdGenerator,
    default_repetitions: Optional[str],
) -> Optional[Exercise]:
    name, link, trailing = split_name_cell(cells[0])
    if not name:
        return None

    fields = classify_fields(
        cells[1:],
        name,
        video_link=link,
        notes=trailing,
        default_repetitions=default_repetitions,
    )
    return Exercise(
        id=id_generator(),
        name=name,
        series=fields.series,
        repetitions=fields.repetitions,
        rest=fields.rest,
        video_link=fields.video_link,
        notes=fields.notes,
        category=category,
    )


def normalize_rows(
    rows: Rows,
    category: Optional[str] = None,
    *,
    detect_markers: bool = False,
    id_generator: Optional[IdGenerator] = None,
    default_repetitions: Optional[str] = None,
) -> List[Exercise]:
    """
    Convert pre-tokenized rows (one sheet = one category) into exercises.

    Args:
        rows: Rows of raw cell values; the first cell holds the name
        category: Category applied to every row (default from settings)
        detect_markers: Honor "TREINO X" marker rows inside the sheet
        id_generator: Callable producing unique ids (default: uuid4)
        default_repetitions: Fallback repetitions string

    Returns:
        Exercises in input order; empty when nothing could be imported
    """
    generate_id = id_generator or new_exercise_id
    current_category = _resolve_category(category)
    exercises: List[Exercise] = []
    skipped = 0

    for raw_row in rows or []:
        if raw_row is None or isinstance(raw_row, (str, bytes)):
            # A bare string is a one-cell row
            raw_row = [raw_row] if raw_row else []
        cells = [" ".join(cell_to_str(value).split()) for value in raw_row]

        if not any(cells):
            continue

        if detect_markers:
            marker = category_marker(cells)
            if marker:
                current_category = marker
                continue

        if not cells[0] or is_header_row(cells):
            skipped += 1
            continue

        exercise = _build_exercise(cells, current_category, generate_id, default_repetitions)
        if exercise is None:
            skipped += 1
            continue
        exercises.append(exercise)

    if skipped:
        logger.debug(f"Skipped {skipped} header/empty-name rows")
    return exercises


def normalize_text(
    text: str,
    default_category: Optional[str] = None,
    *,
    split_on_spaces: bool = False,
    id_generator: Optional[IdGenerator] = None,
    default_repetitions: Optional[str] = None,
) -> List[Exercise]:
    """Convert a pasted text block (tab-separated, optional TREINO markers)."""
    rows = tokenize_block(text or "", split_on_spaces=split_on_spaces)
    return normalize_rows(
        rows,
        default_category,
        detect_markers=True,
        id_generator=id_generator,
        default_repetitions=default_repetitions,
    )


def normalize(
    source: Union[str, Rows],
    default_category: Optional[str] = None,
    *,
    id_generator: Optional[IdGenerator] = None,
    detect_markers: Optional[bool] = None,
    split_on_spaces: bool = False,
    default_repetitions: Optional[str] = None,
) -> List[Exercise]:
    """
    Normalize a pasted text block or a sequence of spreadsheet rows.

    Never raises for malformed input; malformation degrades into notes and
    defaulted fields. An empty result is the only failure signal.
    """
    if source is None:
        return []

    if isinstance(source, str):
        return normalize_text(
            source,
            default_category,
            split_on_spaces=split_on_spaces,
            id_generator=id_generator,
            default_repetitions=default_repetitions,
        )

    return normalize_rows(
        source,
        default_category,
        detect_markers=bool(detect_markers),
        id_generator=id_generator,
        default_repetitions=default_repetitions,
    )
