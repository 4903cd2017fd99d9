"""
Host Configuration Store Implementations
========================================

Concrete key-value stores for the operator's settings (credential, tone,
background, rules, scheduling link). Values are strings; an empty string
reads back as unset.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed store for tests and embedding."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key) or None

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStore:
    """
    Store persisted as one JSON object on disk.

    The file is read on every get so edits made by other processes are
    seen; writes go through a temp file and an atomic replace.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Could not read settings file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key) or None

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        data = json.dumps(values, indent=2)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp, self.path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
