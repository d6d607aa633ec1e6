"""Locating resource files next to the running program."""

from __future__ import annotations

import os
import sys

__all__ = ["file_remove_file_name", "process_path", "resource_path"]


def file_remove_file_name(filepath: str) -> str:
    """Return the directory part of a path, keeping its trailing separator."""
    cut = max(filepath.rfind("/"), filepath.rfind("\\"))
    return filepath[: cut + 1]


def process_path() -> str:
    """Return the directory of the running program, ending in a separator.

    Falls back to ``"./"`` when the program location cannot be found.
    """
    program = sys.argv[0] if sys.argv else ""
    if not program:
        return "./"
    location = os.path.realpath(program)
    if not os.path.exists(location):
        return "./"
    return os.path.dirname(location) + os.sep


def resource_path(file_name: str) -> str:
    """Return the path of a resource file beside the running program."""
    return process_path() + file_name