"""Pytest configuration pointing the settings database at a scratch directory."""

from __future__ import annotations

import os
import shutil
import tempfile

# Must be set before ``tourengine.services.db`` is imported by any test module.
_STORAGE_DIR = tempfile.mkdtemp(prefix="tourengine-tests-")
os.environ["TOUR_STORAGE_DIR"] = _STORAGE_DIR


def pytest_sessionfinish(session, exitstatus) -> None:
    shutil.rmtree(_STORAGE_DIR, ignore_errors=True)
