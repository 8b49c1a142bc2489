"""File-backed call script lookup.

Scripts live as plain text files under ``settings.call_scripts_dir``. An
explicit id -> file name map can be configured; otherwise ``<id>.txt`` is
used.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[\w\-]+$")


class CallScriptFileError(LookupError):
    """Raised when a call script file cannot be resolved or read."""


class CallScriptFiles:
    """Resolve call script ids to text files on disk."""

    def __init__(self, root: Path, file_map: Mapping[str, str] | None = None) -> None:
        self._root = root
        self._file_map = dict(file_map or {})

    def _resolve_path(self, script_id: str) -> Path:
        file_name = self._file_map.get(script_id)
        if file_name is None:
            if not _SAFE_ID.match(script_id):
                raise CallScriptFileError(f"Call script with ID {script_id} not found")
            file_name = f"{script_id}.txt"
        path = (self._root / file_name).resolve()
        if self._root.resolve() not in path.parents:
            raise CallScriptFileError(f"Call script with ID {script_id} not found")
        return path

    def available_ids(self) -> list[str]:
        ids = set(self._file_map)
        if self._root.exists():
            ids.update(path.stem for path in self._root.glob("*.txt"))
        return sorted(ids)

    def read(self, script_id: str) -> str:
        """Return the script text for ``script_id``."""

        path = self._resolve_path(script_id)
        if not path.is_file():
            raise CallScriptFileError(
                f"Call script file {path.name} not found at path: {path}"
            )
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to read call script %s: %s", path, exc)
            raise CallScriptFileError(f"Failed to read call script content: {exc}") from exc


__all__ = ["CallScriptFiles", "CallScriptFileError"]
