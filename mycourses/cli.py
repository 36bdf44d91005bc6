"""
CLI (Command Line Interface).

Quick terminal commands for importing Canvas data and looking at it, e.g.:

    mycourses upload <export.zip | https://...>
    mycourses parse-text <course_id> <pasted.txt | ->
    mycourses courses
    mycourses show <course_id>
    mycourses outline <course_id>
    mycourses files <course_id>
    mycourses search <text>
    mycourses export <file.ics> [--course <course_id>]

Every command takes --library to point at another library.json (handy for tests).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import requests
from rich import box
from rich.console import Console
from rich.table import Table

from mycourses import storage
from mycourses.archive import fetch_archive
from mycourses.export_ics import course_due_items, export_due_dates_to_ics
from mycourses.handlers import handle_assignment_parse, handle_course_upload

console = Console()


def _print_error(payload: dict[str, Any]) -> None:
    print(f"Error: {payload.get('error', 'unknown error')}")


def _short_date(value: Any) -> str:
    # "2026-01-29T21:50:00-05:00" -> "2026-01-29 21:50"
    text = "" if value is None else str(value)
    return text[:16].replace("T", " ") if text else "-"


def _course_or_complain(course_id: str, library: Path | None) -> dict[str, Any] | None:
    course = storage.get_course(course_id, library)
    if course is None:
        print(f"Course not found: {course_id}")
    return course


def _cmd_upload(args: argparse.Namespace) -> int:
    """
    Import a Canvas export ZIP from a local path or a URL.
    """
    source = (args.source or "").strip()
    if not source:
        print("Please provide a ZIP file or URL.")
        return 1

    if source.startswith(("http://", "https://")):
        try:
            data = fetch_archive(source)
        except requests.RequestException as exc:
            print(f"Download failed: {exc}")
            return 1
        filename = source.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        if not filename.lower().endswith(".zip"):
            filename += ".zip"
    else:
        path = Path(source)
        try:
            data = path.read_bytes()
        except OSError as exc:
            print(f"Cannot read {path}: {exc}")
            return 1
        filename = path.name

    status, payload = handle_course_upload(filename, data, library_path=args.library)
    if status != 200:
        _print_error(payload)
        return 1

    print(
        f"Imported course {payload['courseId']}: {payload['course']['name']} "
        f"({payload['assignmentCount']} assignments, {payload['quizCount']} quizzes, "
        f"{payload['fileCount']} files)"
    )
    return 0


def _cmd_parse_text(args: argparse.Namespace) -> int:
    """
    Add assignments from text copied out of the Canvas web UI.
    """
    if args.file == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(args.file).read_text(encoding="utf-8")
        except OSError as exc:
            print(f"Cannot read {args.file}: {exc}")
            return 1

    status, payload = handle_assignment_parse({"courseId": args.course_id, "text": text}, library_path=args.library)
    if status != 200:
        _print_error(payload)
        return 1

    print(f"Added {payload['count']} assignments:")
    for a in payload["assignments"]:
        points = a.get("points_possible")
        pts = f" [{points} pts]" if points is not None else ""
        print(f"- {a['title']} (due {_short_date(a.get('due_date'))}){pts}")
    return 0


def _cmd_courses(args: argparse.Namespace) -> int:
    courses = storage.list_courses(args.library)
    if not courses:
        print("No courses imported yet.")
        return 0

    table = Table(title="Courses", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Course")
    table.add_column("Code")
    table.add_column("Assignments", justify="right")
    table.add_column("Quizzes", justify="right")
    table.add_column("Files", justify="right")
    for c in courses:
        table.add_row(
            str(c.get("id", "")),
            str(c.get("title", "")),
            str(c.get("course_code") or ""),
            str(len(c.get("assignments", []) or [])),
            str(len(c.get("quizzes", []) or [])),
            str(len(c.get("attachments", []) or [])),
        )
    console.print(table)
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    """
    List assignments and quizzes of one course, sorted by due date (undated last).
    """
    course = _course_or_complain(args.course_id, args.library)
    if course is None:
        return 1

    items = course_due_items(course)
    items.sort(key=lambda it: (it.get("due_date") is None, str(it.get("due_date") or "")))

    table = Table(title=f"{course.get('title', '')}", box=box.SIMPLE)
    table.add_column("Due")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Points", justify="right")
    for it in items:
        points = it.get("points_possible")
        table.add_row(
            _short_date(it.get("due_date")),
            it["kind"],
            str(it.get("title", "")),
            "" if points is None else str(points),
        )
    console.print(table)
    return 0


def _cmd_outline(args: argparse.Namespace) -> int:
    course = _course_or_complain(args.course_id, args.library)
    if course is None:
        return 1

    outline = (course.get("outline") or "").strip()
    print(outline if outline else "No syllabus / outline page in this course.")
    return 0


def _cmd_files(args: argparse.Namespace) -> int:
    course = _course_or_complain(args.course_id, args.library)
    if course is None:
        return 1

    attachments = course.get("attachments", []) or []
    file_tree = course.get("file_tree", []) or []
    if not attachments and not file_tree:
        print("No files in this course.")
        return 0

    if attachments:
        table = Table(title="Files", box=box.SIMPLE)
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Size", justify="right")
        table.add_column("Path")
        for f in attachments:
            table.add_row(
                str(f.get("file_name", "")),
                str(f.get("file_type", "")),
                str(f.get("file_size", "")),
                str(f.get("file_path", "")),
            )
        console.print(table)

    # Files listed in course-data.js (may include files not shipped in the ZIP)
    if file_tree:
        table = Table(title="Course file tree", box=box.SIMPLE)
        table.add_column("Path")
        table.add_column("Size", justify="right")
        for f in file_tree:
            size = f.get("size")
            table.add_row(str(f.get("path", "")), "" if size is None else str(size))
        console.print(table)
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    """
    Search course titles/codes and assignment/quiz titles + descriptions by substring.
    """
    query = (args.text or "").strip().lower()
    if not query:
        print("Please provide a search text.")
        return 1

    matches: list[str] = []
    for c in storage.list_courses(args.library):
        ctitle = str(c.get("title", "") or "")
        hay = f"{ctitle} {c.get('course_code') or ''}".lower()
        if query in hay:
            matches.append(f"course {c.get('id')} | {ctitle}")

        for it in course_due_items(c):
            hay = f"{it.get('title', '')} {it.get('description') or ''}".lower()
            if query in hay:
                matches.append(f"{it['kind']} | {ctitle} | {it.get('title', '')}")

    if not matches:
        print("No results.")
        return 0

    # show max 20
    for line in matches[:20]:
        print(line)
    if len(matches) > 20:
        print(f"... and {len(matches) - 20} more results")

    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    """
    Export due dates into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    if args.course is not None:
        course = _course_or_complain(args.course, args.library)
        if course is None:
            return 1
        courses = [course]
    else:
        courses = storage.list_courses(args.library)

    n = export_due_dates_to_ics(courses, out_path)
    if n == 0:
        print("No due dates to export.")
        return 0

    print(f"Exported {n} due dates to: {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="mycourses", description="MyCourses CLI")
    parser.add_argument("--library", type=Path, default=None, help="Path to library.json (default: package data dir)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show log messages")
    sub = parser.add_subparsers(dest="command", required=True)

    p_upload = sub.add_parser("upload", help="Import a Canvas course export (.zip)")
    p_upload.add_argument("source", type=str, help="Path or URL of the export ZIP")

    p_parse = sub.add_parser("parse-text", help="Add assignments from text pasted from Canvas")
    p_parse.add_argument("course_id", type=str, help="Course ID (see 'courses')")
    p_parse.add_argument("file", type=str, nargs="?", default="-", help="Text file ('-' = stdin)")

    sub.add_parser("courses", help="List imported courses")

    p_show = sub.add_parser("show", help="Show assignments and quizzes of a course")
    p_show.add_argument("course_id", type=str)

    p_outline = sub.add_parser("outline", help="Print the course syllabus / outline")
    p_outline.add_argument("course_id", type=str)

    p_files = sub.add_parser("files", help="List files shipped with a course export")
    p_files.add_argument("course_id", type=str)

    p_search = sub.add_parser("search", help="Search courses, assignments and quizzes")
    p_search.add_argument("text", type=str, help="Search text")

    p_export = sub.add_parser("export", help="Export due dates to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. due.ics)")
    p_export.add_argument("--course", type=str, default=None, help="Only this course ID")

    return parser


COMMANDS = {
    "upload": _cmd_upload,
    "parse-text": _cmd_parse_text,
    "courses": _cmd_courses,
    "show": _cmd_show,
    "outline": _cmd_outline,
    "files": _cmd_files,
    "search": _cmd_search,
    "export": _cmd_export,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args))
