"""
Field Classifier

Assigns the cells that follow the name cell to exercise fields.

Canonical column order is video link, series, repetitions, rest, notes, but
pasted sheets add or drop columns freely, so every cell is matched against an
ordered rule table. The first rule whose pattern matches and whose guard holds
claims the cell; anything left over is appended to the notes.

Tie-breaks are positional, never by magnitude:
- a duration ("90s", "1 min") is the rest; when a second duration follows
  before any repetitions, the first one was a timed set and moves to the
  repetitions ("30 seg", "45s");
- a range or bare number is the rest once repetitions are committed or when it
  sits in the rest column, before that it is the repetitions ("10-12");
- a bare number is the series count only while it is the first data cell.

Blank cells still occupy their column, so an empty repetitions column puts the
next cell in the rest column.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from workout_sheet_api.config import settings
from workout_sheet_api.utils import cell_to_str, positive_int
from .models import ClassifiedFields

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r'^http', re.IGNORECASE)  # "https://youtu.be/..."
DURATION_PATTERN = re.compile(
    r"^\d+(?:[.,]\d+)?\s*(?:s\b|sec|seg|min|')",
    re.IGNORECASE
)  # "90s", "30 seg", "1 min.", "1'30"
RANGE_PATTERN = re.compile(r'^\d+\s*[-–]\s*\d+$')  # "60-90"
BARE_NUMBER_PATTERN = re.compile(r'^\d+$')  # "4"
REPS_PATTERN = re.compile(
    r'^\d+(?:\s*[-–,x×/]\s*\d+)*$',
    re.IGNORECASE
)  # "12", "10-12", "12,10,8", "4x4"

# Index of the rest column among the cells that follow the name
REST_POSITION = 3


@dataclass
class RowState:
    """Fields claimed so far while walking one row"""
    video_link: str = ""
    series: Optional[int] = None
    repetitions: Optional[str] = None
    rest: str = ""
    notes: List[str] = field(default_factory=list)
    position: int = 0


@dataclass(frozen=True)
class FieldRule:
    """Pattern -> field mapping with a guard on the row state"""
    field: str
    patterns: Tuple[re.Pattern, ...]
    applies: Callable[[RowState], bool]

    def matches(self, cell: str, state: RowState) -> bool:
        return self.applies(state) and any(p.match(cell) for p in self.patterns)


# Order is significant: first match wins.
FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule(
        "video_link",
        (LINK_PATTERN,),
        lambda s: not s.video_link,
    ),
    FieldRule(
        "rest",
        (DURATION_PATTERN,),
        lambda s: not s.rest or s.repetitions is None,
    ),
    FieldRule(
        "rest",
        (RANGE_PATTERN, BARE_NUMBER_PATTERN),
        lambda s: not s.rest and (s.repetitions is not None or s.position >= REST_POSITION),
    ),
    FieldRule(
        "series",
        (BARE_NUMBER_PATTERN,),
        lambda s: s.series is None and s.repetitions is None and not s.rest and not s.notes,
    ),
    FieldRule(
        "repetitions",
        (REPS_PATTERN,),
        lambda s: s.repetitions is None,
    ),
)


def match_rule(cell: str, state: RowState) -> Optional[FieldRule]:
    """Return the first rule that claims `cell`, or None for a note."""
    for rule in FIELD_RULES:
        if rule.matches(cell, state):
            return rule
    return None


def classify_fields(
    cells: Sequence[Any],
    name: str = "",
    *,
    video_link: str = "",
    notes: str = "",
    default_repetitions: Optional[str] = None,
) -> ClassifiedFields:
    """
    Classify the cells of a row that follow the name cell.

    Args:
        cells: Raw cell values, excluding the name cell
        name: Exercise name already extracted from the name cell
        video_link: Link already found in the name cell, if any
        notes: Text from the name cell that follows its link
        default_repetitions: Fallback when no repetitions cell is found

    Returns:
        ClassifiedFields with defaults for anything not found
    """
    state = RowState(video_link=video_link or "")
    leading_notes = [notes.strip()] if notes and notes.strip() else []

    for position, raw in enumerate(cells):
        cell = cell_to_str(raw).strip()
        if not cell:
            continue

        state.position = position
        rule = match_rule(cell, state)
        if rule is None:
            state.notes.append(cell)
        elif rule.field == "video_link":
            state.video_link = cell
        elif rule.field == "rest":
            if state.rest:
                state.repetitions = state.rest
            state.rest = cell
        elif rule.field == "series":
            state.series = positive_int(cell)
        elif rule.field == "repetitions":
            state.repetitions = cell

    fields = ClassifiedFields(
        series=state.series or 1,
        repetitions=state.repetitions or default_repetitions or settings.DEFAULT_REPETITIONS,
        rest=state.rest,
        notes=" ".join(leading_notes + state.notes),
        video_link=state.video_link,
    )
    logger.debug(f"Classified '{name}': {fields.model_dump()}")
    return fields
