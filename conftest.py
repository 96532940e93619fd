"""Pytest configuration.

Ensures the top-level packages can be imported during test collection.
"""

import sys
from pathlib import Path


def _prepend_sys_path(path: Path) -> None:
    resolved = str(path.resolve())
    if resolved not in sys.path:
        sys.path.insert(0, resolved)


REPO_ROOT = Path(__file__).resolve().parent

# Allow importing `settings`, `errors`, `oauth`, `transfer` as top-level modules.
_prepend_sys_path(REPO_ROOT)
