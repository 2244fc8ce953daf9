"""
End-to-end runs of the harness against the in-process fake backend.

These tests drive every phase in order through :class:`StressRun` and the
CLI entry point, asserting the ordering barriers between phases and the
final report.
"""
