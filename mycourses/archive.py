"""
Reading Canvas course export archives (.zip).

A Canvas export looks like:

    <export>/viewer/course-data.js      -> parsed by canvas_export.py
    <export>/viewer/files/<folder>/...  -> course files (PDFs, slides, ...)

This module only knows about the archive layout. What course-data.js means
is canvas_export.py's business.
"""

from __future__ import annotations

import logging
import re
import zipfile
import zlib
from io import BytesIO
from pathlib import PurePosixPath
from typing import List, Optional

import requests

from mycourses.canvas_export import parse_course_data
from mycourses.errors import InvalidArchiveError, MissingCourseDataError
from mycourses.model import ExportArchive, ExportFile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Archive layout
# ---------------------------------------------------------------------------

# Raised by ZipFile.read for damaged, encrypted or unsupported members
READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError)

COURSE_DATA_NAME = "course-data.js"
FILES_PREFIX = "viewer/files/"
SKIPPED_SUFFIXES = (".js", ".html")

# "Sec-004-Spring-2026-CIS-2166-2026-Jan-25_16-27-50-905.zip" -> "CIS-2166"
COURSE_CODE_RE = re.compile(r"([A-Z]{2,}[\s-]?\d{3,4})")
EXPORT_TIMESTAMP_RE = re.compile(r"\d{4}-\w{3}-\d{2}.*$")


def _entry_name(info: zipfile.ZipInfo) -> str:
    return info.filename.replace("\\", "/")


def _find_course_data(infos: List[zipfile.ZipInfo]) -> Optional[zipfile.ZipInfo]:
    """
    The data file is "course-data.js", usually at <export>/viewer/course-data.js.
    """
    for info in infos:
        if PurePosixPath(_entry_name(info)).name == COURSE_DATA_NAME:
            return info
    return None


def _export_files(infos: List[zipfile.ZipInfo]) -> List[ExportFile]:
    """
    All course files under viewer/files/ (no directories, no viewer scripts/pages).
    """
    files: List[ExportFile] = []
    for info in infos:
        name = _entry_name(info)
        if info.is_dir() or FILES_PREFIX not in name:
            continue
        if name.lower().endswith(SKIPPED_SUFFIXES):
            continue
        files.append(ExportFile(name=PurePosixPath(name).name, path=name, size=int(info.file_size or 0)))
    return files


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def course_name_from_filename(filename: str) -> str:
    """
    Guess a course name from the export's file name.

    Canvas names exports like "Sec-004-Spring-2026-CIS-2166-2026-Jan-25_16-27-50-905.zip".
    The subject code ("CIS 2166") is the best name we can get from that;
    if there is none, the cleaned-up file name (without timestamp) is used.
    """
    stem = re.sub(r"\.zip$", "", PurePosixPath(filename or "").name, flags=re.IGNORECASE)

    match = COURSE_CODE_RE.search(stem)
    if match:
        return re.sub(r"[-_]", " ", match.group(1))

    cleaned = EXPORT_TIMESTAMP_RE.sub("", stem)
    return re.sub(r"[-_]", " ", cleaned).strip()


def read_export(zip_bytes: bytes, source_name: str = "") -> ExportArchive:
    """
    Open a Canvas export ZIP and parse its course-data.js.

    Raises:
        InvalidArchiveError    bytes are not a readable ZIP archive
        MissingCourseDataError no course-data.js inside
        MalformedSourceError   course-data.js cannot be parsed
    """
    try:
        with zipfile.ZipFile(BytesIO(zip_bytes)) as archive:
            infos = archive.infolist()

            entry = _find_course_data(infos)
            if entry is None:
                raise MissingCourseDataError("Invalid Canvas export: course-data.js not found")

            raw_js = archive.read(entry.filename).decode("utf-8", errors="replace")
            files = _export_files(infos)
    except READ_ERRORS as exc:
        raise InvalidArchiveError(f"Not a readable ZIP archive: {source_name or '<upload>'}: {exc}") from exc

    course_data = parse_course_data(raw_js)
    logger.info("Found %d files in Canvas export %s", len(files), source_name or "<upload>")

    return ExportArchive(course_data=course_data, files=files, source_name=source_name)


def fetch_archive(url: str, timeout: float = 30) -> bytes:
    """
    Download an export archive (e.g. the link from Canvas' "Export Course Content" page).
    """
    logger.info("Downloading export archive from %s", url)
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.content
