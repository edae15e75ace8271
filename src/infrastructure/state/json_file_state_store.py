"""
Infrastructure adapter: one JSON file per user (serialised with orjson) -> IStateStore.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Snapshots are capped at *max_bytes*. Over the cap, evictable keys (the
collection list) are dropped first; the profile and selection are always
kept. A snapshot that is still too large is not written at all and any older
file is removed, so a restore never reads stale data.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

import orjson

from src.application.services.console_state import EVICTABLE_KEYS
from src.domain.ports.state_store_port import IStateStore

logger = logging.getLogger(__name__)


class JsonFileStateStore(IStateStore):
    def __init__(
        self,
        directory: str,
        max_bytes: int = 64 * 1024,
        evictable_keys: Iterable[str] = EVICTABLE_KEYS,
    ) -> None:
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._evictable_keys = tuple(evictable_keys)

    def save(self, owner: str, snapshot: dict) -> None:
        encoded = self.fit(snapshot)
        path = self._path_for(owner)
        if encoded is None:
            logger.warning("Console state over size cap even after eviction; not saved")
            path.unlink(missing_ok=True)
            return
        self._directory.mkdir(parents=True, exist_ok=True)
        # One temp file per save; concurrent saves for an owner must not share it.
        with tempfile.NamedTemporaryFile(
            dir=self._directory, prefix=f"{path.stem}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp.write(encoded)
        try:
            os.replace(tmp.name, path)
        except OSError:
            Path(tmp.name).unlink(missing_ok=True)
            raise

    def load(self, owner: str) -> Optional[dict]:
        path = self._path_for(owner)
        if not path.exists():
            return None
        try:
            data = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError:
            logger.warning("Discarding unreadable console state", extra={"path": str(path)})
            path.unlink(missing_ok=True)
            return None
        return data if isinstance(data, dict) else None

    def clear(self, owner: str) -> None:
        self._path_for(owner).unlink(missing_ok=True)

    def fit(self, snapshot: dict) -> Optional[bytes]:
        """Encode *snapshot*, evicting optional keys until it fits the cap."""
        candidate = dict(snapshot)
        encoded = orjson.dumps(candidate)
        for key in self._evictable_keys:
            if len(encoded) <= self._max_bytes:
                break
            if key in candidate:
                candidate.pop(key)
                logger.info("Evicted key from console state", extra={"evicted": key})
                encoded = orjson.dumps(candidate)
        if len(encoded) > self._max_bytes:
            return None
        return encoded

    def _path_for(self, owner: str) -> Path:
        digest = hashlib.sha256(owner.encode("utf-8")).hexdigest()[:32]
        return self._directory / f"{digest}.json"
