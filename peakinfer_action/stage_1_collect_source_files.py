"""
Stage 1: Collect Source Files — PeakInfer Action

PURPOSE:
    Walk the configured path in the checked-out repository and pick up the
    source files the PeakInfer API should look at. The API finds the LLM
    inference points; this stage only decides which files it gets to see.

    This stage does NOT parse or execute anything. It reads text files and
    stops as soon as it has enough of them.

CALLED BY:
    action_main.py — passes the `path` input (default "./src").

DESIGN DECISIONS:
    - Hard cap of 50 files per run. This is a cap, not a sample: once 50 files
      are collected the walk stops, and anything later in walk order is never
      sent.
    - Walk order is lexicographic (directories and files sorted by name) so
      the same tree always yields the same 50 files, whatever order the
      filesystem happens to list entries in.
    - Dependency, build, VCS and virtualenv directories are pruned by exact
      directory name. A FILE called "build" or "vendor" is unaffected.
    - Files of 100,000 bytes or more are skipped. They are almost always
      generated or bundled output.
    - A file that can't be decoded as UTF-8 (or can't be opened at all) is
      silently skipped. One bad file never fails the run.

COST:
    $0 — local filesystem reads only.
"""

import os
from typing import List

from .logging import get_logger
from .models import CollectedFile


logger = get_logger("collect")

SUPPORTED_EXTENSIONS = {
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".go", ".java", ".kt", ".rs", ".rb",
}

SKIP_DIRS = {
    "node_modules", ".git", "dist", "build", ".next",
    "__pycache__", "vendor", ".venv", "venv",
}

MAX_FILE_BYTES = 100000


def collect_source_files(root_path: str, max_files: int = 50) -> List[CollectedFile]:
    """
    Collect up to `max_files` supported source files under `root_path`.

    This is the ONLY public function in this file.

    Args:
        root_path: Directory to scan. A missing directory is not an error;
                   it just yields nothing.
        max_files: Hard cap on the number of files returned.

    Returns:
        List of CollectedFile in walk order. Paths are `root_path` joined with
        the path inside it, normalized (e.g. "src/chat.ts" for "./src").
    """
    files: List[CollectedFile] = []

    if max_files <= 0 or not os.path.isdir(root_path):
        return files

    # os.walk is top-down, so pruning `dirs` in place keeps it from ever
    # descending into the skipped directories.
    for root, dirs, filenames in os.walk(root_path):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)

        for filename in sorted(filenames):
            ext = os.path.splitext(filename)[1]
            if ext not in SUPPORTED_EXTENSIONS:
                continue

            full_path = os.path.normpath(os.path.join(root, filename))
            content = _read_text_file(full_path)
            if content is None:
                continue

            files.append(CollectedFile(path=full_path, content=content))
            if len(files) >= max_files:
                logger.debug(f"Reached the {max_files}-file cap, stopping walk")
                return files

    return files


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _read_text_file(full_path: str):
    """Return the file's text, or None if it is too big, unreadable, or binary."""
    try:
        if not os.path.isfile(full_path) or os.path.getsize(full_path) >= MAX_FILE_BYTES:
            return None
        with open(full_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None
