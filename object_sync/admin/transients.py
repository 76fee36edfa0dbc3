"""
Transient Storage

Short-lived key/value entries that carry a submitted form across a
redirect, so a failed submission can be re-rendered with the user's input.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class TransientStore:
    """
    Key/value store persisted to a JSON file.

    Each entry is stored as {"value": ..., "expires": <unix time or 0>}.
    An expiry of 0 means the entry lives until it is deleted.
    Without a path the store only lives in memory. A file that exists but
    cannot be parsed is left alone: reads find nothing and writes fail.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._memory: Dict[str, Dict[str, Any]] = {}

    def _load(self) -> Optional[Dict[str, Dict[str, Any]]]:
        if self.path is None:
            return self._memory
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading transients from {self.path}: {e}", exc_info=True)
            return None

    def _save(self, entries: Dict[str, Dict[str, Any]]) -> bool:
        if self.path is None:
            self._memory = entries
            return True
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", dir=self.path.parent, prefix=f".{self.path.name}.",
                                             suffix=".tmp", delete=False) as f:
                tmp_name = f.name
                json.dump(entries, f, indent=2)
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error(f"Error saving transients to {self.path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """
        Store a value.

        Args:
            key: Transient key
            value: JSON-serializable value
            ttl: Seconds until expiry, 0 for no expiry

        Returns:
            True if the value was written
        """
        entries = self._load()
        if entries is None:
            return False
        expires = time.time() + ttl if ttl > 0 else 0
        entries[key] = {"value": value, "expires": expires}
        saved = self._save(entries)
        if saved:
            logger.info(f"Stored transient {key} (ttl={ttl})")
        return saved

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if it is absent or expired."""
        entries = self._load()
        if not entries:
            return None
        entry = entries.get(key)
        if entry is None:
            return None
        expires = entry.get("expires", 0)
        if expires and expires <= time.time():
            logger.debug(f"Transient {key} expired")
            del entries[key]
            self._save(entries)
            return None
        return entry.get("value")

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns False when there was nothing to remove."""
        entries = self._load()
        if not entries or key not in entries:
            return False
        del entries[key]
        if not self._save(entries):
            return False
        logger.info(f"Deleted transient {key}")
        return True
