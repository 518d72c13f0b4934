"""
Environment + project-root helpers.

Problems this module solves:
- Developers often keep local settings in a repo-local `.env` file.
- Running the CLI or tests from different working directories can cause:
  - env vars not loaded
  - relative data paths (e.g., `data/floodplain-100.geojson`) resolving incorrectly

This module provides:
- `load_dotenv_if_present()`: best-effort `.env` loading (does not override existing env vars)
- `get_project_root()`: find the repo root (nearest ancestor holding `.env`, `.git` or `pyproject.toml`)
- `resolve_project_path()`: resolve relative paths against the project root
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def _env_path(name: str) -> Path | None:
    value = os.getenv(name)
    return Path(value).expanduser().resolve() if value else None


def _find_marked_ancestor(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """Return the best-guess project root directory (cached).

    Order: `FLOODREACH_PROJECT_ROOT`, the folder of `FLOODREACH_ENV_FILE`, the nearest
    marked ancestor of the CWD, then of this module, then the CWD itself.
    """
    override = _env_path("FLOODREACH_PROJECT_ROOT")
    if override is not None:
        return override
    env_file = _env_path("FLOODREACH_ENV_FILE")
    if env_file is not None:
        return env_file.parent

    cwd = Path.cwd().resolve()
    return (
        _find_marked_ancestor(cwd)
        or _find_marked_ancestor(Path(__file__).resolve().parent)
        or cwd
    )


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `.env` once if present; returns the loaded env path (or None).

    Never overrides env vars already set in the process environment.
    """
    env_path = _env_path("FLOODREACH_ENV_FILE") or get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
