"""
Tulisin Backend — Repositories
===============================

Plain async functions over an open client or transaction (`Executor`).
They return records, None or booleans and never raise business errors;
storage failures propagate to the connection manager for classification.
"""

from app.repositories.base import Executor

__all__ = ["Executor"]
