from __future__ import annotations

import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Put the repository root on ``sys.path`` when run as a plain script."""
    repo_root = str(Path(__file__).resolve().parent.parent)
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


try:
    # python -m neurodrill
    from .app import run  # type: ignore[attr-defined]
except ImportError:
    # python neurodrill/__main__.py
    _ensure_repo_root_on_path()
    from neurodrill.app import run  # type: ignore[attr-defined]


def main() -> int:
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
