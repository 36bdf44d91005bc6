"""
Tests for reading Canvas export ZIP archives.

Archives are built in memory so no fixture files are needed.
"""

import io
import unittest
import zipfile
from unittest import mock

from mycourses.archive import course_name_from_filename, fetch_archive, read_export
from mycourses.errors import InvalidArchiveError, MalformedSourceError, MissingCourseDataError

COURSE_JS = (
    'window.COURSE_DATA = {"title": "Discrete Structures", '
    '"assignments": [{"exportId": "g1", "title": "HW1", "content": "<p>Sets</p>"}], '
    '"quizzes": [{"exportId": "q1", "title": "Quiz 1"}]};'
)


def make_zip(entries: dict) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as z:
        for name, data in entries.items():
            z.writestr(name, data)
    return buf.getvalue()


def damage_member(raw: bytes, name: str) -> bytes:
    """
    Flip bytes inside the compressed data of one member; the central directory stays valid.
    """
    with zipfile.ZipFile(io.BytesIO(raw)) as z:
        info = z.getinfo(name)
    start = info.header_offset + 30 + len(info.filename.encode("utf-8")) + len(info.extra)
    data = bytearray(raw)
    for i in range(start + 2, start + 12):
        data[i] ^= 0xFF
    return bytes(data)


class TestReadExport(unittest.TestCase):
    def test_reads_course_data_and_files(self) -> None:
        raw = make_zip(
            {
                "export/viewer/course-data.js": COURSE_JS,
                "export/viewer/files/": "",
                "export/viewer/files/Lectures/Lec1.pdf": b"%PDF-1.4 lecture",
                "export/viewer/files/HW1.docx": b"docx",
                "export/viewer/files/index.html": "<html></html>",
                "export/viewer/files/viewer.js": "//",
                "export/index.html": "<html></html>",
            }
        )
        archive = read_export(raw, source_name="export.zip")

        self.assertEqual(archive.course_data.course.name, "Discrete Structures")
        self.assertEqual(len(archive.course_data.assignments), 1)
        self.assertEqual(len(archive.course_data.quizzes), 1)
        self.assertEqual(archive.source_name, "export.zip")

        self.assertEqual(
            [f.path for f in archive.files],
            ["export/viewer/files/Lectures/Lec1.pdf", "export/viewer/files/HW1.docx"],
        )
        self.assertEqual(archive.files[0].name, "Lec1.pdf")
        self.assertEqual(archive.files[0].size, len(b"%PDF-1.4 lecture"))

    def test_course_data_at_root(self) -> None:
        archive = read_export(make_zip({"course-data.js": COURSE_JS}))
        self.assertEqual(archive.course_data.course.name, "Discrete Structures")
        self.assertEqual(archive.files, [])

    def test_missing_course_data(self) -> None:
        raw = make_zip({"viewer/files/a.pdf": b"x", "viewer/other-data.js": "x"})
        with self.assertRaises(MissingCourseDataError):
            read_export(raw)

    def test_not_a_zip(self) -> None:
        with self.assertRaises(InvalidArchiveError):
            read_export(b"this is not a zip file")

    def test_damaged_member(self) -> None:
        raw = damage_member(make_zip({"viewer/course-data.js": COURSE_JS * 4}), "viewer/course-data.js")
        with self.assertRaises(InvalidArchiveError):
            read_export(raw, source_name="export.zip")

    def test_malformed_course_data(self) -> None:
        raw = make_zip({"viewer/course-data.js": "var somethingElse = 1;"})
        with self.assertRaises(MalformedSourceError):
            read_export(raw)


class TestCourseNameFromFilename(unittest.TestCase):
    def test_subject_code(self) -> None:
        name = course_name_from_filename("Sec-004-Spring-2026-CIS-2166-2026-Jan-25_16-27-50-905.zip")
        self.assertEqual(name, "CIS 2166")

    def test_cleaned_filename_without_timestamp(self) -> None:
        name = course_name_from_filename("biology-notes-2026-Jan-25_16-27-50-905.zip")
        self.assertEqual(name, "biology notes")

    def test_path_is_ignored(self) -> None:
        self.assertEqual(course_name_from_filename("/tmp/uploads/MATH 1041.ZIP"), "MATH 1041")


class TestFetchArchive(unittest.TestCase):
    def test_downloads_bytes(self) -> None:
        resp = mock.Mock()
        resp.content = b"PK..."
        with mock.patch("mycourses.archive.requests.get", return_value=resp) as get:
            data = fetch_archive("https://canvas.example.edu/export.zip", timeout=5)

        self.assertEqual(data, b"PK...")
        get.assert_called_once_with("https://canvas.example.edu/export.zip", timeout=5)
        resp.raise_for_status.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
