"""
Database engine and sessions for the tour service.

A single SQLModel engine targets a SQLite file in the project's
``storage`` directory.  Only viewer settings are persisted; tour
sessions themselves are transient and live in memory.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

# backend/storage, created on import.  ``TOUR_STORAGE_DIR`` relocates it.
STORAGE_DIR = Path(os.getenv("TOUR_STORAGE_DIR") or Path(__file__).resolve().parents[2] / "storage")
STORAGE_DIR.mkdir(parents=True, exist_ok=True)

engine = create_engine(f"sqlite:///{(STORAGE_DIR / 'tour.db').as_posix()}", echo=False)


def create_db_and_tables() -> None:
    """Create all tables; a no-op for tables that already exist."""
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    """Return a new session; use it as a context manager."""
    return Session(engine)
