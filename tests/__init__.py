"""
Test suite for the ICO stress harness.

This package contains:
- unit/: component tests against the fake backend and stub transports
- integration/: full runs through the orchestration engine and the CLI
- fakes.py: Flask-based fake of the applogic and peatio services
"""
