"""
Central data model definitions used across the project.

This module defines the canonical structure of the Canvas objects so that:
- the export parser, the text parser and storage share the same field names
- every list field defaults to an empty list (never None)
- data can be turned into plain JSON dicts with one call (to_dict)
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CourseInfo:
    """
    Course metadata as found in course-data.js.

    code and description are always empty at parse time; they are
    filled in later from the upload (ZIP filename) if at all.
    """

    name: str
    code: str = ""
    description: str = ""


@dataclass
class CanvasAssignment:
    export_id: Optional[str]
    title: Optional[str]
    type: str = "Assignment"
    content: str = ""
    due_at: Optional[str] = None
    lock_at: Optional[str] = None
    unlock_at: Optional[str] = None
    points_possible: Optional[float] = None
    submission_types: Optional[str] = None
    graded: Optional[bool] = None
    linked_files: List[str] = field(default_factory=list)


@dataclass
class CanvasQuiz:
    export_id: Optional[str]
    title: Optional[str]
    type: str = "Quiz"
    content: str = ""
    due_at: Optional[str] = None
    lock_at: Optional[str] = None
    unlock_at: Optional[str] = None
    points_possible: Optional[float] = None
    assignment_export_id: Optional[str] = None
    question_count: Optional[int] = None
    time_limit: Optional[int] = None
    attempts: Optional[int] = None
    graded: Optional[bool] = None
    linked_files: List[str] = field(default_factory=list)


@dataclass
class CanvasModuleItem:
    export_id: Optional[str]
    title: Optional[str]
    type: Optional[str]
    indent: Optional[int] = None


@dataclass
class CanvasModule:
    export_id: Optional[str]
    title: Optional[str]
    items: List[CanvasModuleItem] = field(default_factory=list)


@dataclass
class CanvasPage:
    """
    A wiki page (syllabus, welcome page, ...).

    content is kept as raw HTML here; it is sanitized when the outline is built.
    """

    export_id: Optional[str]
    title: Optional[str]
    content: str = ""
    type: str = "Page"


@dataclass
class CourseData:
    """
    Everything extracted from one course-data.js file.

    files is the raw folder/file tree from the export:
        {"type": "file", "name": ..., "path": ..., "size": ...}
        {"type": "folder", "name": ..., "path": ..., "files": [...]}
    """

    course: CourseInfo
    assignments: List[CanvasAssignment] = field(default_factory=list)
    quizzes: List[CanvasQuiz] = field(default_factory=list)
    modules: List[CanvasModule] = field(default_factory=list)
    files: List[Dict[str, Any]] = field(default_factory=list)
    pages: List[CanvasPage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExportFile:
    """
    One file shipped inside the export archive (under viewer/files/).
    """

    name: str
    path: str
    size: int


@dataclass
class ExportArchive:
    """
    Result of reading a whole Canvas export ZIP.
    """

    course_data: CourseData
    files: List[ExportFile] = field(default_factory=list)
    source_name: str = ""


@dataclass
class ParsedAssignment:
    """
    One assignment recovered from text pasted out of the Canvas web UI.
    """

    title: str
    due_date: Optional[str] = None
    points: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        # camelCase keys: this is what the HTTP payload uses
        return {"title": self.title, "dueDate": self.due_date, "points": self.points}
