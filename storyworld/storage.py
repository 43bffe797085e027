# storyworld/storage.py
"""
JSON file persistence for the catalogue collections.

Each collection (``books``, ``comments``, ``feedback``, ``views``) lives
in its own ``<name>.json`` file and is always read and written as a
whole snapshot. There are no partial updates. Writes go through a
temporary file that is renamed over the target so a crash mid-write
never leaves a truncated document behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Union


logger = logging.getLogger(__name__)

Document = Union[List[Any], Dict[str, Any]]


class JsonStore:
    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def load(self, name: str) -> Document:
        """Return the parsed contents of the named backing file.

        A missing file yields an empty list. A file that cannot be read
        or parsed is logged and also yields an empty list, so callers
        never see an exception from here.
        """
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            return []
        if not isinstance(data, (list, dict)):
            logger.error("Unexpected JSON document in %s: %s", path, type(data).__name__)
            return []
        return data

    def save(self, name: str, data: Document) -> bool:
        """Overwrite the named backing file with ``data``.

        Returns ``False`` when the write fails. The caller's in-memory
        state is left untouched either way.
        """
        path = self.path_for(name)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{name}.", suffix=".tmp", dir=str(self.data_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error writing %s: %s", path, exc)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
