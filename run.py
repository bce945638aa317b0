"""
Entry point for the tour navigation service.

``python run.py`` starts the FastAPI server.  The ``backend`` directory
is put on the import path so the ``tourengine`` package resolves
without installation.  ``TOUR_HOST`` and ``TOUR_PORT`` override the bind
address.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import uvicorn

logging.basicConfig(
    level=logging.DEBUG if os.getenv("TOUR_DEBUG") else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main() -> None:
    """Run the Uvicorn server hosting the tour service."""
    backend_dir = Path(__file__).resolve().parent / "backend"
    if str(backend_dir) not in sys.path:
        sys.path.append(str(backend_dir))

    from tourengine.main import app  # type: ignore

    host = os.getenv("TOUR_HOST", "0.0.0.0")
    port = int(os.getenv("TOUR_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
