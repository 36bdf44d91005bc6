"""
Request handlers for the two import endpoints.

    POST /courses/upload     (multipart field "zipFile")  -> handle_course_upload
    POST /assignments/parse  (JSON {courseId, text})      -> handle_assignment_parse

The handlers are framework-free: each returns (status_code, json_payload) so
any web server (or the CLI) can call them. Error messages are user-facing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from mycourses import storage
from mycourses.archive import course_name_from_filename, read_export
from mycourses.errors import InvalidArchiveError, MalformedSourceError, MissingCourseDataError
from mycourses.text_parse import parse_canvas_assignment_text

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, Any]]

INVALID_EXPORT = "Invalid Canvas export: course-data.js not found"


def _error(status: int, message: str) -> Response:
    return status, {"error": message}


def handle_course_upload(
    filename: str,
    zip_bytes: bytes,
    library_path: str | Path | None = None,
) -> Response:
    """
    Import an uploaded Canvas export ZIP as a new course.
    """
    if not (filename or "").lower().endswith(".zip"):
        return _error(400, "Only ZIP files are allowed")
    if not zip_bytes:
        return _error(400, "No file uploaded")

    try:
        archive = read_export(zip_bytes, source_name=filename)
    except InvalidArchiveError:
        return _error(400, "Invalid ZIP archive")
    except (MissingCourseDataError, MalformedSourceError) as exc:
        logger.warning("Rejected upload %s: %s", filename, exc)
        return _error(400, INVALID_EXPORT)

    try:
        course = storage.store_course_export(
            archive,
            fallback_name=course_name_from_filename(filename),
            path=library_path,
        )
    except OSError as exc:
        logger.error("Could not save course from %s: %s", filename, exc)
        return _error(500, f"Failed to upload course: {exc}")

    data = archive.course_data
    return 200, {
        "success": True,
        "courseId": course["id"],
        "course": {
            "name": data.course.name,
            "code": data.course.code,
            "description": data.course.description,
        },
        "assignmentCount": len(data.assignments),
        "quizCount": len(data.quizzes),
        "fileCount": len(archive.files),
    }


def handle_assignment_parse(
    body: Any,
    library_path: str | Path | None = None,
) -> Response:
    """
    Parse pasted Canvas text and add the assignments to an existing course.
    """
    if not isinstance(body, dict):
        return _error(400, "Course ID and text are required")

    course_id = body.get("courseId")
    text = body.get("text")

    if not course_id or not text or not isinstance(text, str):
        return _error(400, "Course ID and text are required")

    if storage.get_course(course_id, library_path) is None:
        return _error(404, "Course not found")

    parsed = parse_canvas_assignment_text(text)
    if not parsed:
        return _error(400, "No assignments found in text")

    try:
        created = storage.add_parsed_assignments(course_id, parsed, library_path)
    except OSError as exc:
        logger.error("Could not save parsed assignments for course %s: %s", course_id, exc)
        return _error(500, "Failed to parse assignments")

    return 200, {"count": len(created), "assignments": created}
