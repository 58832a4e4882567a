# tests/conftest.py

from __future__ import annotations

import sys
from pathlib import Path

# Ensure src/ (package imports) and tests/ (shared fakes) are importable.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
TESTS_ROOT = PROJECT_ROOT / "tests"

for path in (SRC_ROOT, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
