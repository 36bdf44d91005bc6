"""
Parsing (pasted Canvas text -> assignments).

Students copy their assignment list straight out of the Canvas web UI and
paste it in. Two shapes show up in practice:

1. The assignment table (Grades page), one cell per line:

       Name  Due  Submitted  Status  Score
       HW1
       Jan 29 by 9:50pm
       90 / 100

2. Loose text, one assignment per line:

       Homework 1 due Jan 29 at 9:50pm - 100 pts
       Project proposal | due: Feb 7, 2026

Rules:
- never raises; lines that cannot be read are dropped
- a date without a time means "due by end of that day" (23:59)
- a date without a year uses the year of `now` (current local time by default)
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional

from mycourses.model import ParsedAssignment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canvas dates
# ---------------------------------------------------------------------------

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# "Jan 29 by 9:50pm", "Jan 29 at 9:50pm", "January 30, 2026 at 5:50 PM", "Feb 7, 2026"
CANVAS_DATE_RE = re.compile(
    r"([A-Za-z]+)\s+(\d{1,2})(?:,?\s+(\d{4}))?\s*(?:(?:by|at)\s+(\d{1,2}):(\d{2})\s*([ap]m))?",
    re.IGNORECASE,
)

END_OF_DAY = (23, 59)


def parse_canvas_date(date_str: str, now: Optional[datetime] = None) -> Optional[str]:
    """
    Convert a Canvas date string to an ISO-8601 timestamp (local time, with offset).

    Returns None if the string does not look like a date, the month name is
    unknown, or the day does not exist (e.g. "Feb 30").
    """
    match = CANVAS_DATE_RE.search(date_str or "")
    if not match:
        return None

    month_name, day_s, year_s, hour_s, minute_s, meridiem = match.groups()

    month = MONTHS.get(month_name.lower())
    if month is None:
        return None

    ref = now or datetime.now()
    year = int(year_s) if year_s else ref.year
    hour = int(hour_s) if hour_s else END_OF_DAY[0]
    minute = int(minute_s) if minute_s else END_OF_DAY[1]

    # 12h -> 24h
    meridiem = (meridiem or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    try:
        local = datetime(year, month, int(day_s), hour, minute, 0)
    except ValueError:
        return None

    # naive -> aware in the machine's local timezone
    return local.astimezone().isoformat()


# ---------------------------------------------------------------------------
# Table format (Name | Due | Submitted | Status | Score)
# ---------------------------------------------------------------------------

MONTH_ABBR = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

DUE_TOKEN_RE = re.compile(rf"^(?:{MONTH_ABBR})\s+\d{{1,2}}\s+by\s+\d{{1,2}}:\d{{2}}[ap]m$", re.IGNORECASE)
# "90 / 100", "- / 50", "8.5 / 10"
SCORE_RE = re.compile(r"^[-\d.]+\s*/\s*(\d+(?:\.\d+)?)$")
LABEL_RE = re.compile(
    r"^(?:In-class Activities|Assignments|Quizzes|Grade Smoothing|missing|Submitted)$",
    re.IGNORECASE,
)
CLICK_RE = re.compile(r"^Click to", re.IGNORECASE)
NOT_A_TITLE_RE = re.compile(r"^(?:missing|Submitted)$", re.IGNORECASE)

# How many lines after a title may still hold its due date / score
LOOKAHEAD = 4

SEEKING_TITLE = "seeking_title"
SEEKING_DUE_OR_SCORE = "seeking_due_or_score"


def _is_table_header(line: str) -> bool:
    return "Name" in line and "Due" in line and "Status" in line


def _is_table_noise(line: str) -> bool:
    """
    True for lines that can never be an assignment title:
    header, section labels, due dates, scores, "Click to ..." hints.
    """
    return bool(
        _is_table_header(line)
        or LABEL_RE.match(line)
        or DUE_TOKEN_RE.match(line)
        or SCORE_RE.match(line)
        or CLICK_RE.match(line)
    )


def _emit(out: List[ParsedAssignment], title: str, due: Optional[str], points: Optional[int]) -> None:
    title = title.strip()
    if len(title) > 1 and not NOT_A_TITLE_RE.match(title):
        out.append(ParsedAssignment(title=title, due_date=due, points=points))


def _parse_table_format(lines: List[str], now: Optional[datetime]) -> List[ParsedAssignment]:
    """
    Two-state scan over the table cells.

    SEEKING_TITLE        skip noise; any other line opens an assignment
    SEEKING_DUE_OR_SCORE consume up to LOOKAHEAD noise lines, picking up the
                         due date and score; any other line closes the
                         assignment and is looked at again as a title
    """
    assignments: List[ParsedAssignment] = []

    state = SEEKING_TITLE
    title = ""
    due: Optional[str] = None
    points: Optional[int] = None
    window = 0

    i = 0
    while i < len(lines):
        line = lines[i]

        if state == SEEKING_DUE_OR_SCORE:
            if window > 0 and _is_table_noise(line):
                if DUE_TOKEN_RE.match(line):
                    due = parse_canvas_date(line, now)
                score = SCORE_RE.match(line)
                if score:
                    points = int(float(score.group(1)))
                window -= 1
                i += 1
                continue

            _emit(assignments, title, due, points)
            state = SEEKING_TITLE
            continue

        if not _is_table_noise(line):
            title, due, points, window = line, None, None, LOOKAHEAD
            state = SEEKING_DUE_OR_SCORE
        i += 1

    if state == SEEKING_DUE_OR_SCORE:
        _emit(assignments, title, due, points)

    return assignments


# ---------------------------------------------------------------------------
# Plain text format (one assignment per line)
# ---------------------------------------------------------------------------

POINTS_RE = re.compile(r"(\d+)\s*(pts?|points?)", re.IGNORECASE)

DUE_PATTERNS = [
    # "due Jan 29 at 9:50pm", "due Jan 29, 2026 at 9:50pm"
    re.compile(r"due\s+([A-Za-z]+\s+\d{1,2}(?:,?\s+\d{4})?)\s+at\s+(\d{1,2}:\d{2}\s*[ap]m)", re.IGNORECASE),
    # "due: January 30, 2026 at 5:50 PM"
    re.compile(r"due:?\s+([A-Za-z]+\s+\d{1,2},?\s+\d{4})\s+at\s+(\d{1,2}:\d{2}\s*[AP]M)", re.IGNORECASE),
    # "due: Feb 7, 2026"
    re.compile(r"due:?\s+([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE),
    # "| due: Feb 7, 2026"
    re.compile(r"\|\s*due:?\s+([A-Za-z]+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE),
]

FILLER_RE = re.compile(r"^(?:due|points?|pts)$", re.IGNORECASE)
SEPARATOR_RE = re.compile(r"\s*[-|]\s*")
SPACES_RE = re.compile(r"\s+")


def parse_single_assignment(line: str, now: Optional[datetime] = None) -> Optional[ParsedAssignment]:
    """
    Parse one free-text line such as "Homework 1 due Jan 29 at 9:50pm - 100 pts".
    Returns None if no usable title is left.
    """
    title = line
    due: Optional[str] = None
    points: Optional[int] = None

    points_match = POINTS_RE.search(line)
    if points_match:
        points = int(points_match.group(1))
        title = title.replace(points_match.group(0), "", 1).strip()

    for pattern in DUE_PATTERNS:
        match = pattern.search(line)
        if not match:
            continue

        date_text = match.group(1)
        if match.lastindex and match.lastindex >= 2:
            date_text = f"{date_text} at {match.group(2)}"

        due = parse_canvas_date(date_text, now)
        if due is None:
            logger.debug("Could not read due date %r in line %r", date_text, line)

        title = title.replace(match.group(0), "", 1).strip()
        break

    title = SEPARATOR_RE.sub(" ", title)
    title = SPACES_RE.sub(" ", title).strip()

    if len(title) < 2:
        return None

    return ParsedAssignment(title=title, due_date=due, points=points)


def _parse_plain_text_format(lines: List[str], now: Optional[datetime]) -> List[ParsedAssignment]:
    assignments: List[ParsedAssignment] = []
    for line in lines:
        # Skip lines that are clearly not assignments
        if len(line) < 5 or FILLER_RE.match(line):
            continue

        parsed = parse_single_assignment(line, now)
        if parsed:
            assignments.append(parsed)

    return assignments


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_canvas_assignment_text(text: str, now: Optional[datetime] = None) -> List[ParsedAssignment]:
    """
    Parse text pasted from Canvas into assignments.

    Uses the table parser if the text contains the "Name", "Due" and "Status"
    column headers, otherwise the line-by-line parser. Returns [] if nothing
    could be recognized.
    """
    clean = (text or "").strip()
    if not clean:
        return []

    lines = [ln.strip() for ln in clean.splitlines() if ln.strip()]

    if _is_table_header(clean):
        assignments = _parse_table_format(lines, now)
        fmt = "table"
    else:
        assignments = _parse_plain_text_format(lines, now)
        fmt = "plain text"

    logger.info("Parsed %d assignments from %d lines (%s format)", len(assignments), len(lines), fmt)
    return assignments
