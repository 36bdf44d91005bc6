"""
iCalendar (.ics) export.

We convert assignment and quiz due dates into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Each dated item becomes one VEVENT that starts and ends at the due time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_utc(iso: str) -> Optional[str]:
    """
    Convert an ISO-8601 timestamp to ICS UTC form 'YYYYMMDDTHHMMSSZ'.
    Naive timestamps are read as local time. Returns None if unreadable.
    """
    text = iso.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def course_due_items(course: dict[str, Any]) -> list[dict[str, Any]]:
    """
    All assignments and quizzes of a stored course, tagged with their kind.
    """
    items: list[dict[str, Any]] = []
    for key, kind in (("assignments", "assignment"), ("quizzes", "quiz")):
        for item in course.get(key, []) or []:
            items.append({**item, "kind": kind})
    return items


def export_due_dates_to_ics(
    courses: list[dict[str, Any]], out_path: str | Path
) -> int:
    """
    Export the due dates of the given courses to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//MyCourses//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    count = 0
    for course in courses:
        course_label = str(course.get("course_code") or course.get("title") or "").strip()

        for item in course_due_items(course):
            due = item.get("due_date")
            if not isinstance(due, str) or not due.strip():
                continue

            dtdue = _dt_utc(due)
            if dtdue is None:
                continue

            title = str(item.get("title", "")).strip()
            if course_label and title:
                summary = f"{course_label}: {title}"
            else:
                summary = course_label or title or "MyCourses due date"
            uid = f"mycourses-{course.get('id', '')}-{item['kind']}-{item.get('id', count)}"

            lines.append("BEGIN:VEVENT")
            lines.append(f"UID:{_ics_escape(uid)}")
            lines.append(f"DTSTAMP:{dtstamp}")
            lines.append(f"DTSTART:{dtdue}")
            lines.append(f"DTEND:{dtdue}")
            lines.append(f"SUMMARY:{_ics_escape(summary)}")
            points = item.get("points_possible")
            if points:
                description = f"{item['kind']} - {points} points"
                lines.append(f"DESCRIPTION:{_ics_escape(description)}")
            lines.append("END:VEVENT")
            count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
