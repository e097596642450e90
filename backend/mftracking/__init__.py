"""
Mutual Fund Tracking Backend — Application Package Initializer
===============================================================

What: Marks the `mftracking` directory as a Python package.
Why:  Enables module imports like `from mftracking.config import settings`.
Who:  Used by uvicorn, Alembic, and pytest.

Architecture Note:
    The backend is layered, each layer only talking to the one below it:

    ┌─────────────────────────────────────┐
    │   Pipeline (api.py + middleware)    │  ← routing, per-request context
    ├─────────────────────────────────────┤
    │        Routes (Handlers)            │  ← HTTP <-> domain translation
    ├─────────────────────────────────────┤
    │     Services (Domain Core)          │  ← business rules, validation
    ├─────────────────────────────────────┤
    │     Repositories (Store)            │  ← SQL, transactions, write lock
    ├─────────────────────────────────────┤
    │     Database (async SQLAlchemy)     │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
