"""
Exceptions raised while reading a Canvas course export.

Only the archive side of the project raises. The free-text assignment parser
never does: lines it cannot read are dropped.
"""

from __future__ import annotations


class CanvasExportError(ValueError):
    """
    Base class for everything that makes an uploaded export unusable.
    """


class MalformedSourceError(CanvasExportError):
    """
    course-data.js has no window.COURSE_DATA object, or the object is not valid JSON.
    """


class MissingCourseDataError(CanvasExportError):
    """
    The ZIP archive contains no course-data.js entry.
    """


class InvalidArchiveError(CanvasExportError):
    """
    The uploaded bytes are not a readable ZIP archive.
    """
