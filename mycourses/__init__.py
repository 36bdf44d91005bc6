"""
MyCourses: Canvas course export importer + assignment tracker.
"""
