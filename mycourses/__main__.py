"""
Package entry point.

Allows running the application via:

    python -m mycourses

This simply forwards execution to mycourses.cli.main().
"""

from mycourses.cli import main

if __name__ == "__main__":
    main()
