"""
Taskboard Backend — Application Package Initializer
=====================================================

What: Marks the `taskboard` directory as a Python package.
Who:  Imported by uvicorn (`taskboard.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (create / upsert / list) │  ← Orchestration, file cleanup
    ├─────────────────────────────────────┤
    │   Repositories (persistence)        │  ← Queries, public projections
    ├─────────────────────────────────────┤
    │  Models & Schemas & Validation      │  ← ORM rows, API contracts, rules
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
