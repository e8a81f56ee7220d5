"""On-disk cache of raw AI rule responses keyed by file content hash and rule id."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)


class AICache:
    def __init__(
        self,
        cache_dir: Union[str, Path] = ".vlayer/ai-cache",
        ttl_hours: float = 24.0,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_hours * 3600
        self.enabled = enabled
        self._clock = clock
        self.hits = 0

    def ensure_dir(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def file_hash(content: str) -> str:
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def path_for(self, content: str, rule_id: str) -> Path:
        return self.cache_dir / f"{self.file_hash(content)}-{rule_id}.json"

    def get(self, content: str, rule_id: str) -> Optional[Any]:
        """Cached result, or None on miss. Expired and malformed entries are deleted."""
        if not self.enabled:
            return None
        path = self.path_for(content, rule_id)
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug("Ignoring unreadable cache entry %s: %s", path, exc)
            return None

        try:
            timestamp = float(entry["timestamp"])
        except (TypeError, KeyError, ValueError):
            logger.debug("Discarding malformed cache entry %s", path)
            path.unlink(missing_ok=True)
            return None
        if self._clock() - timestamp > self.ttl_seconds:
            path.unlink(missing_ok=True)
            return None
        self.hits += 1
        return entry.get("result")

    def set(self, content: str, rule_id: str, result: Any) -> None:
        if not self.enabled:
            return
        self.ensure_dir()
        entry = {
            "file_hash": self.file_hash(content),
            "rule_id": rule_id,
            "result": result,
            "timestamp": self._clock(),
            "ttl": self.ttl_seconds,
        }
        path = self.path_for(content, rule_id)
        try:
            path.write_text(json.dumps(entry, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write AI cache entry %s: %s", path, exc)

    def clear(self) -> int:
        """Delete every cache entry. Returns the number removed."""
        self.ensure_dir()
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed
