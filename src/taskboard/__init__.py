"""
Taskboard: a minimal task tracker.

- ``taskboard.main`` builds the Task Store API (FastAPI) over a single tasks table.
- ``taskboard.client`` mirrors the store in local state with optimistic updates.
- ``taskboard.cli`` serves the API and drives the client from a terminal.
"""

__version__ = "0.1.0"
