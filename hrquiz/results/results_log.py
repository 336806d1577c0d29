from __future__ import annotations

"""Append-only history of past attempts.

The engine only sees the ``ResultsLog`` protocol. Two implementations live
here; the Parquet-backed one is in ``hrquiz.storage.store``.

JSON document layout (schema 1):
{
  "schema": 1,
  "results": [ {session_id, user_id, correct, total, percentage, ...}, ... ]
}

Entries are appended in submission order and never rewritten.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from ..engine.errors import PersistenceError
from ..engine.models import Result

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class ResultsLog(Protocol):
    def append(self, result: Result) -> None: ...

    def list(self) -> List[Result]: ...


class InMemoryResultsLog:
    def __init__(self, user_id: Optional[str] = None) -> None:
        self.user_id = user_id
        self._results: List[Result] = []

    def append(self, result: Result) -> None:
        self._results.append(result)

    def list(self) -> List[Result]:
        return [r for r in self._results if self.user_id is None or r.user_id == self.user_id]


class JsonResultsLog:
    def __init__(self, path: str | Path, user_id: Optional[str] = None) -> None:
        self.path = Path(path)
        self.user_id = user_id

    def _load(self, *, for_write: bool = False) -> Dict[str, Any]:
        if not self.path.exists():
            return {"schema": SCHEMA_VERSION, "results": []}
        try:
            raw_text = self.path.read_text(encoding="utf-8")
            data = json.loads(raw_text)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read results log {self.path}: {e}") from e
        if not isinstance(data, dict) or data.get("schema") != SCHEMA_VERSION:
            if not for_write:
                logger.warning("Results log %s has an unknown schema; ignoring its contents", self.path)
                return {"schema": SCHEMA_VERSION, "results": []}
            # Keep the foreign document aside before the first write replaces it
            backup_name = f"{self.path.stem}.backup-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}{self.path.suffix}"
            try:
                self.path.with_name(backup_name).write_text(raw_text, encoding="utf-8")
            except OSError as e:
                raise PersistenceError(f"Cannot back up results log {self.path}: {e}") from e
            logger.warning("Results log %s had an unknown schema; moved to %s", self.path, backup_name)
            return {"schema": SCHEMA_VERSION, "results": []}
        data.setdefault("results", [])
        if not isinstance(data["results"], list):
            raise PersistenceError(f"Results log {self.path} has a non-list \"results\" entry")
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write results log {self.path}: {e}") from e

    def append(self, result: Result) -> None:
        data = self._load(for_write=True)
        data["results"].append(result.model_dump(mode="json"))
        self._save(data)
        logger.debug("Appended result %s to %s", result.session_id, self.path)

    def list(self) -> List[Result]:
        data = self._load()
        out: List[Result] = []
        for row in data.get("results", []):
            try:
                result = Result.model_validate(row)
            except ValidationError as e:
                raise PersistenceError(f"Corrupt result entry in {self.path}: {e}") from e
            if self.user_id is None or result.user_id == self.user_id:
                out.append(result)
        return out
