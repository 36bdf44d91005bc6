"""
Parsing (course-data.js -> CourseData).

A Canvas course export ZIP ships a viewer/course-data.js file that looks like:

    window.COURSE_DATA = { "title": ..., "assignments": [...], ... };

This module:
- locates the object assigned to window.COURSE_DATA (bracket-balanced scan)
- decodes it as JSON
- normalizes assignments, quizzes, modules, pages and the file tree
- provides the file-tree flattener and the course outline extractor

Important rules:
- every list in the result defaults to [] (never None)
- content fields handed to callers are plain text (see sanitize.py)
- dates are passed through exactly as Canvas wrote them
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional

from mycourses.errors import MalformedSourceError
from mycourses.model import (
    CanvasAssignment,
    CanvasModule,
    CanvasModuleItem,
    CanvasPage,
    CanvasQuiz,
    CourseData,
    CourseInfo,
)
from mycourses.sanitize import clean_html_content, extract_file_links

logger = logging.getLogger(__name__)


DEFAULT_COURSE_NAME = "Untitled Course"

# The literal global Canvas assigns the export data to
MARKER_RE = re.compile(r"window\.COURSE_DATA\s*=\s*(?=\{)")

OUTLINE_KEYWORDS = ("syllabus", "outline", "schedule")


# ---------------------------------------------------------------------------
# Locating the embedded object
# ---------------------------------------------------------------------------


def _balanced_object_end(text: str, start: int) -> int:
    """
    Return the index of the '}' that closes the '{' at text[start],
    or -1 if the object is never closed.

    Braces inside JSON string literals (including escaped quotes) are ignored.
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]

        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i

    return -1


def _extract_course_json(raw_js: str) -> Dict[str, Any]:
    """
    Cut the window.COURSE_DATA object out of the JS source and decode it.
    """
    match = MARKER_RE.search(raw_js or "")
    if not match:
        raise MalformedSourceError("marker not found: window.COURSE_DATA is missing from course-data.js")

    start = match.end()
    end = _balanced_object_end(raw_js, start)
    if end == -1:
        raise MalformedSourceError("marker not found: window.COURSE_DATA object is never closed")

    try:
        data = json.loads(raw_js[start : end + 1])
    except json.JSONDecodeError as err:
        raise MalformedSourceError(f"course-data.js is not valid JSON: {err}") from err

    return data


# ---------------------------------------------------------------------------
# Record mapping
# ---------------------------------------------------------------------------


def _records(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """
    Return the list stored under key, keeping only JSON objects.
    Missing keys and non-list values give [].
    """
    raw = data.get(key)
    if not isinstance(raw, list):
        return []

    records: List[Dict[str, Any]] = []
    for entry in raw:
        if isinstance(entry, dict):
            records.append(entry)
        else:
            logger.warning("Skipping %s entry that is not an object: %r", key, entry)
    return records


def _parse_assignment(raw: Dict[str, Any]) -> CanvasAssignment:
    html = raw.get("content") or ""
    return CanvasAssignment(
        export_id=raw.get("exportId"),
        title=raw.get("title"),
        type=raw.get("type") or "Assignment",
        content=clean_html_content(html),
        due_at=raw.get("dueAt"),
        lock_at=raw.get("lockAt"),
        unlock_at=raw.get("unlockAt"),
        points_possible=raw.get("pointsPossible"),
        submission_types=raw.get("submissionTypes"),
        graded=raw.get("graded"),
        linked_files=extract_file_links(html),
    )


def _parse_quiz(raw: Dict[str, Any]) -> CanvasQuiz:
    html = raw.get("content") or ""
    return CanvasQuiz(
        export_id=raw.get("exportId"),
        title=raw.get("title"),
        type=raw.get("type") or "Quiz",
        content=clean_html_content(html),
        due_at=raw.get("dueAt"),
        lock_at=raw.get("lockAt"),
        unlock_at=raw.get("unlockAt"),
        points_possible=raw.get("pointsPossible"),
        assignment_export_id=raw.get("assignmentExportId"),
        question_count=raw.get("questionCount"),
        time_limit=raw.get("timeLimit"),
        attempts=raw.get("attempts"),
        graded=raw.get("graded"),
        linked_files=extract_file_links(html),
    )


def _parse_module(raw: Dict[str, Any]) -> CanvasModule:
    items = [
        CanvasModuleItem(
            export_id=item.get("exportId"),
            title=item.get("title"),
            type=item.get("type"),
            indent=item.get("indent"),
        )
        for item in _records(raw, "items")
    ]
    return CanvasModule(export_id=raw.get("exportId"), title=raw.get("title"), items=items)


def _parse_page(raw: Dict[str, Any]) -> CanvasPage:
    # No sanitizing here: pages are cleaned lazily by extract_course_outline()
    return CanvasPage(
        export_id=raw.get("exportId"),
        title=raw.get("title"),
        content=raw.get("content") or "",
        type=raw.get("type") or "Page",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_course_data(raw_js: str) -> CourseData:
    """
    Parse the text of course-data.js into a CourseData aggregate.

    Raises MalformedSourceError if window.COURSE_DATA cannot be found or
    its object is not valid JSON. Everything else degrades to defaults.
    """
    data = _extract_course_json(raw_js)

    name = data.get("title") or data.get("name") or DEFAULT_COURSE_NAME

    page_key = "pages" if "pages" in data else "wikiPages"

    files = data.get("files")
    if not isinstance(files, list):
        files = []

    course_data = CourseData(
        course=CourseInfo(name=str(name), code="", description=""),
        assignments=[_parse_assignment(a) for a in _records(data, "assignments")],
        quizzes=[_parse_quiz(q) for q in _records(data, "quizzes")],
        modules=[_parse_module(m) for m in _records(data, "modules")],
        files=files,
        pages=[_parse_page(p) for p in _records(data, page_key)],
    )

    logger.info(
        "Parsed course %r: %d assignments, %d quizzes, %d modules, %d pages",
        course_data.course.name,
        len(course_data.assignments),
        len(course_data.quizzes),
        len(course_data.modules),
        len(course_data.pages),
    )
    return course_data


def iter_file_structure(tree: Optional[List[Dict[str, Any]]], base_path: str = "") -> Iterator[Dict[str, Any]]:
    """
    Yield every file leaf of the export file tree, depth-first.

    Paths are built from the folder names joined with "/", independent of
    the operating system.
    """
    for node in tree or []:
        if not isinstance(node, dict):
            continue

        name = str(node.get("name", ""))
        current_path = f"{base_path}/{name}" if base_path else name

        kind = node.get("type")
        if kind == "file":
            yield {"name": name, "path": current_path, "size": node.get("size")}
        elif kind == "folder" and node.get("files"):
            yield from iter_file_structure(node["files"], current_path)


def flatten_file_structure(tree: Optional[List[Dict[str, Any]]], base_path: str = "") -> List[Dict[str, Any]]:
    """
    Flat list of {"name", "path", "size"} for every file in the tree.
    """
    return list(iter_file_structure(tree, base_path))


def extract_course_outline(pages: List[CanvasPage]) -> str:
    """
    Pick the course outline text from the wiki pages.

    1. the first page whose title mentions syllabus / outline / schedule
    2. otherwise the only page, if there is exactly one
    3. otherwise ""
    """
    for page in pages:
        title = (page.title or "").lower()
        if any(word in title for word in OUTLINE_KEYWORDS):
            return clean_html_content(page.content)

    if len(pages) == 1:
        return clean_html_content(pages[0].content)

    return ""
