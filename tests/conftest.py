from __future__ import annotations

import sys
from pathlib import Path


def _ensure_on_syspath(path: Path) -> None:
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


# Some pytest import modes don't put the repo root (or this directory, for the
# shared `_fakes` helpers) on sys.path when the project isn't installed.
_ensure_on_syspath(Path(__file__).resolve().parents[1])
_ensure_on_syspath(Path(__file__).resolve().parent)
