"""
Persistent storage for imported courses.

This module manages the file:

    data/processed/library.json

Layout:

    {
      "next_id": 7,
      "courses": [
        {"id": 1, "title": ..., "outline": ...,
         "assignments": [...], "quizzes": [...], "attachments": [...],
         "file_tree": [{"name", "path", "size"}, ...]}
      ]
    }

Every course, assignment, quiz and attachment gets an integer id from the
shared "next_id" counter. Only file *metadata* is stored, never file contents.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from mycourses.canvas_export import DEFAULT_COURSE_NAME, extract_course_outline, flatten_file_structure
from mycourses.model import CanvasAssignment, CanvasQuiz, ExportArchive, ExportFile, ParsedAssignment

logger = logging.getLogger(__name__)


def _default_library_path() -> Path:
    """
    Return the default path of library.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "processed" / "library.json"


def _resolve(path: str | Path | None) -> Path:
    return Path(path) if path is not None else _default_library_path()


def _empty_library() -> dict[str, Any]:
    return {"next_id": 1, "courses": []}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _take_id(library: dict[str, Any]) -> int:
    new_id = int(library.get("next_id", 1))
    library["next_id"] = new_id + 1
    return new_id


def _as_course_id(course_id: Any) -> Optional[int]:
    try:
        return int(course_id)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _move_aside(library_path: Path) -> None:
    backup = library_path.with_name(library_path.name + ".bak")
    try:
        library_path.replace(backup)
    except OSError as exc:
        logger.warning("Could not back up unreadable library %s: %s", library_path, exc)
        return
    logger.warning("Library %s is unreadable, moved it to %s", library_path, backup)


def load_library(path: str | Path | None = None) -> dict[str, Any]:
    """
    Load the course library.

    Returns an empty library if the file does not exist or is invalid,
    so a broken file never crashes the application. An unreadable file is
    moved aside to "<name>.bak" first.
    """
    library_path = _resolve(path)

    # First run: nothing imported yet
    if not library_path.exists():
        return _empty_library()

    try:
        data = json.loads(library_path.read_text(encoding="utf-8"))
    except OSError:
        return _empty_library()
    except (json.JSONDecodeError, UnicodeDecodeError):
        _move_aside(library_path)
        return _empty_library()

    if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
        _move_aside(library_path)
        return _empty_library()

    courses = [c for c in data["courses"] if isinstance(c, dict)]
    highest = max((_as_course_id(c.get("id")) or 0 for c in courses), default=0)
    try:
        next_id = max(int(data.get("next_id", 1)), highest + 1)
    except (TypeError, ValueError):
        next_id = highest + 1

    return {"next_id": next_id, "courses": courses}


def save_library(library: dict[str, Any], path: str | Path | None = None) -> None:
    """
    Save the course library. Creates parent directories if needed.
    """
    library_path = _resolve(path)
    library_path.parent.mkdir(parents=True, exist_ok=True)
    library_path.write_text(json.dumps(library, indent=2, ensure_ascii=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def list_courses(path: str | Path | None = None) -> list[dict[str, Any]]:
    return load_library(path)["courses"]


def get_course(course_id: Any, path: str | Path | None = None) -> Optional[dict[str, Any]]:
    """
    Return the course with the given id, or None.
    """
    cid = _as_course_id(course_id)
    if cid is None:
        return None

    for course in list_courses(path):
        if course.get("id") == cid:
            return course
    return None


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------


def _assignment_record(
    library: dict[str, Any], course_id: int, item: CanvasAssignment | CanvasQuiz, now: str
) -> dict[str, Any]:
    record = {
        "id": _take_id(library),
        "course_id": course_id,
        "title": item.title or "",
        "description": item.content,
        "due_date": item.due_at,
        "lock_date": item.lock_at,
        "unlock_date": item.unlock_at,
        "points_possible": item.points_possible or 0,
        "is_graded": 1 if item.graded else 0,
        "linked_files": list(item.linked_files),
        "created_at": now,
        "updated_at": now,
    }
    if isinstance(item, CanvasAssignment):
        record["submission_type"] = item.submission_types
    return record


def _attachment_record(library: dict[str, Any], course_id: int, f: ExportFile, now: str) -> dict[str, Any]:
    suffix = Path(f.name).suffix.lstrip(".").lower()
    return {
        "id": _take_id(library),
        "course_id": course_id,
        "file_name": f.name,
        "file_size": f.size,
        "file_type": suffix or "unknown",
        "file_path": f.path,
        "uploaded_at": now,
    }


def store_course_export(
    archive: ExportArchive,
    fallback_name: str = "",
    path: str | Path | None = None,
) -> dict[str, Any]:
    """
    Save one imported Canvas export as a new course and return its record.

    fallback_name (usually derived from the ZIP filename) replaces the
    generic "Untitled Course" name and fills in a missing course code.
    """
    library = load_library(path)
    data = archive.course_data
    now = _now()

    title = data.course.name
    if not title or title == DEFAULT_COURSE_NAME:
        title = fallback_name or DEFAULT_COURSE_NAME

    course_id = _take_id(library)
    course: dict[str, Any] = {
        "id": course_id,
        "title": title,
        "course_code": data.course.code or fallback_name or None,
        "description": data.course.description or None,
        "outline": extract_course_outline(data.pages),
        "created_at": now,
        "updated_at": now,
    }
    course["assignments"] = [_assignment_record(library, course_id, a, now) for a in data.assignments]
    course["quizzes"] = [_assignment_record(library, course_id, q, now) for q in data.quizzes]
    course["attachments"] = [_attachment_record(library, course_id, f, now) for f in archive.files]
    course["file_tree"] = flatten_file_structure(data.files)

    library["courses"].append(course)
    save_library(library, path)
    return course


def add_parsed_assignments(
    course_id: Any,
    parsed: Iterable[ParsedAssignment],
    path: str | Path | None = None,
) -> list[dict[str, Any]]:
    """
    Append assignments recovered from pasted text to an existing course.

    Raises KeyError if the course does not exist.
    """
    library = load_library(path)
    cid = _as_course_id(course_id)

    course = next((c for c in library["courses"] if cid is not None and c.get("id") == cid), None)
    if course is None:
        raise KeyError(course_id)

    now = _now()
    created: list[dict[str, Any]] = []
    for item in parsed:
        created.append(
            {
                "id": _take_id(library),
                "course_id": cid,
                "title": item.title,
                "description": None,
                "due_date": item.due_date,
                "points_possible": item.points,
                "submission_type": None,
                "created_at": now,
                "updated_at": now,
            }
        )

    course.setdefault("assignments", []).extend(created)
    course["updated_at"] = now
    save_library(library, path)
    return created
