"""
SQL Tracking — cargo lifecycle persisted through SQLAlchemy.

This example runs the use cases against the SQLAlchemy cargo repository
with optimistic version checks, structured logging and an event bus.

Structure:
    main.py — Example runner

Configuration comes from CARGOTRACK_* environment variables, e.g.

    CARGOTRACK_DATABASE_URL=sqlite+aiosqlite:///cargo.db
    CARGOTRACK_LOG_FORMAT=console

Run:
    uv run python -m examples.sql_tracking.main
"""
