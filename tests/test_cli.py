"""
Tests for CLI entry points.

These tests focus on:
- Basic CLI argument validation (search requires text)
- A full import -> list -> export run against a temporary library
  (to avoid touching real user data during tests)
"""

import contextlib
import io
import tempfile
import unittest
import zipfile
from pathlib import Path

from mycourses.cli import main

COURSE_JS = (
    'window.COURSE_DATA = {"title": "Discrete Structures", '
    '"assignments": [{"exportId": "g1", "title": "HW1 Sets", "dueAt": "2026-01-24T23:59:59-05:00", '
    '"pointsPossible": 40, "content": "<p>Venn diagrams</p>"}], '
    '"pages": [{"exportId": "p1", "title": "Course Syllabus", "content": "<p>Week 1: Logic</p>"}], '
    '"files": [{"type": "folder", "name": "Week 1", "files": [{"type": "file", "name": "notes.pdf", "size": 10}]}]};'
)


def run(argv: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        with catch_exit() as code:
            main(argv)
    return code[0], out.getvalue()


@contextlib.contextmanager
def catch_exit():
    code = [0]
    try:
        yield code
    except SystemExit as exc:
        code[0] = exc.code if isinstance(exc.code, int) else 1


class TestCLI(unittest.TestCase):
    def test_cli_search_requires_text(self) -> None:
        # search without text should exit with nonzero
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(SystemExit) as ctx:
                with contextlib.redirect_stdout(io.StringIO()):
                    main(["--library", str(Path(d) / "library.json"), "search", ""])
            self.assertNotEqual(ctx.exception.code, 0)

    def test_unknown_course(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            code, out = run(["--library", str(Path(d) / "library.json"), "outline", "42"])
            self.assertEqual(code, 1)
            self.assertIn("Course not found", out)

    def test_upload_then_query(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            lib = str(Path(d) / "library.json")
            zip_path = Path(d) / "Sec-004-Spring-2026-CIS-2166-2026-Jan-25_16-27-50-905.zip"
            with zipfile.ZipFile(zip_path, "w") as z:
                z.writestr("export/viewer/course-data.js", COURSE_JS)
                z.writestr("export/viewer/files/slides.pdf", b"pdf")

            code, out = run(["--library", lib, "upload", str(zip_path)])
            self.assertEqual(code, 0)
            self.assertIn("Imported course 1: Discrete Structures", out)
            self.assertIn("1 files", out)

            code, out = run(["--library", lib, "outline", "1"])
            self.assertEqual(code, 0)
            self.assertIn("Week 1: Logic", out)

            code, out = run(["--library", lib, "files", "1"])
            self.assertEqual(code, 0)
            self.assertIn("slides.pdf", out)
            self.assertIn("Week 1/notes.pdf", out)

            code, out = run(["--library", lib, "search", "venn"])
            self.assertEqual(code, 0)
            self.assertIn("HW1 Sets", out)

            text_path = Path(d) / "pasted.txt"
            text_path.write_text("Name Due Status\nHW2\nFeb 3 by 11:59pm\n- / 25\n", encoding="utf-8")
            code, out = run(["--library", lib, "parse-text", "1", str(text_path)])
            self.assertEqual(code, 0)
            self.assertIn("Added 1 assignments", out)
            self.assertIn("HW2", out)

            ics = Path(d) / "due.ics"
            code, out = run(["--library", lib, "export", str(ics), "--course", "1"])
            self.assertEqual(code, 0)
            self.assertIn("Exported 2 due dates", out)
            self.assertIn("BEGIN:VCALENDAR", ics.read_text(encoding="utf-8"))

    def test_upload_rejects_non_zip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "notes.txt"
            p.write_text("hello", encoding="utf-8")
            code, out = run(["--library", str(Path(d) / "library.json"), "upload", str(p)])
            self.assertEqual(code, 1)
            self.assertIn("Only ZIP files are allowed", out)


if __name__ == "__main__":
    unittest.main()
