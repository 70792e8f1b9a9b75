"""
Filesystem path completion for the 'load' command.

Read-only and best effort: any I/O failure means "no suggestion".
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

log = logging.getLogger("bfvm.paths")


def complete_path(typed: str, cwd: Union[str, Path, None] = None) -> Optional[str]:
    """Suggest a completion for a partially typed path.

    The directory part of `typed` (relative to cwd) is listed and the
    lexicographically smallest entry starting with the name part wins.
    An exact directory match gets a trailing separator. The returned
    suggestion always starts with `typed`.
    """
    cwd = Path.cwd() if cwd is None else Path(cwd)
    head, prefix = os.path.split(typed)
    directory = cwd / head if head else cwd

    best: Optional[os.DirEntry] = None
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.name.startswith(prefix):
                    continue
                if best is None or entry.name < best.name:
                    best = entry
        if best is None:
            return None
        name = best.name
        if name == prefix and best.is_dir():
            name += os.sep
    except (OSError, ValueError) as e:
        log.debug("No path completion for %r: %s", typed, e)
        return None

    return typed[:len(typed) - len(prefix)] + name
