"""
Tulisin Backend — Application Package Initializer
==================================================

What: Marks the `app` directory as a Python package.
Why:  Enables module imports like `from app.config import Settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │    Routes + Schemas (API Layer)     │  ← HTTP concerns, field validation
    ├─────────────────────────────────────┤
    │       Services (Business Rules)     │  ← Ownership, existence, orchestration
    ├─────────────────────────────────────┤
    │   Repositories (Data Mapping)       │  ← SQL statements, row → model
    ├─────────────────────────────────────┤
    │   Database (Connection Manager)     │  ← Pool, clients, transactions, error translation
    └─────────────────────────────────────┘

    Repositories never raise business errors and never open connections;
    services decide the access mode (client or transaction) but never
    build SQL themselves.
"""

__version__ = "1.0.0"
