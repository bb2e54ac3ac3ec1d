"""Serverless handler for the food recognition API.

The platform imports this file directly without installing the project, so
the ``src`` tree is made importable before the ASGI app is loaded.
"""

import sys
from pathlib import Path

_SRC_DIR = Path(__file__).resolve().parent.parent / "src"

if _SRC_DIR.is_dir() and str(_SRC_DIR) not in sys.path:
    sys.path.append(str(_SRC_DIR))

from food_recognition.api.asgi import app  # noqa: E402

__all__ = ["app"]
