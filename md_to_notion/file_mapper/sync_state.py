"""Per-file change tracking backed by a JSON state file.

The state file is a flat JSON object mapping each markdown file's path
(relative to the synced directory) to the MD5 fingerprint of its content at
the last successful sync. It is used to skip files that have not changed.

Read and write failures never abort a sync: they are logged and the tracker
degrades to treating files as changed (fail-open).
"""

import hashlib
import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = os.path.join('~', '.md-to-notion')
DEFAULT_STATE_FILE = 'sync-state.json'


def default_state_path() -> str:
    """Return the default state file location (~/.md-to-notion/sync-state.json)."""
    return os.path.expanduser(os.path.join(DEFAULT_STATE_DIR, DEFAULT_STATE_FILE))


class ChangeTracker:
    """Detects changed files across runs using content fingerprints.

    Fingerprints computed during a run are kept pending until the file has
    been synchronized; commit() then persists that file's fingerprint. Only
    committed fingerprints are ever written, so a crash mid-run loses at most
    the in-flight file's record.

    Example:
        >>> tracker = ChangeTracker("/tmp/state.json")
        >>> if tracker.changed("docs/intro.md", content):
        ...     sync(...)
        ...     tracker.commit("docs/intro.md")
        >>> tracker.flush_all()
    """

    def __init__(self, state_path: Optional[str] = None):
        """Initialize the tracker and load the state file.

        Args:
            state_path: Path to the JSON state file (default: ~/.md-to-notion/sync-state.json)
        """
        self.state_path = state_path or default_state_path()
        self._committed: Dict[str, str] = self._load()
        # path -> fingerprint not yet persisted
        self._pending: Dict[str, str] = {}

    @staticmethod
    def fingerprint(content: str) -> str:
        """Return the MD5 hex digest of ``content``."""
        return hashlib.md5(content.encode('utf-8')).hexdigest()

    def changed(self, path: str, content: str) -> bool:
        """Return True if ``content`` differs from the last committed fingerprint.

        A changed (or never seen) file gets its new fingerprint recorded as
        pending; it is persisted only by commit() or flush_all().
        """
        current = self.fingerprint(content)
        if self._committed.get(path) == current:
            self._pending.pop(path, None)
            return False

        self._pending[path] = current
        return True

    def commit(self, path: str) -> None:
        """Persist the pending record for ``path``.

        Does nothing (and performs no I/O) when ``path`` has no pending record,
        i.e. for unchanged files.
        """
        if path not in self._pending:
            return
        self._committed[path] = self._pending.pop(path)
        self._save()

    def flush_all(self) -> None:
        """Persist every remaining pending record."""
        if not self._pending:
            return
        self._committed.update(self._pending)
        self._pending.clear()
        self._save()

    def _load(self) -> Dict[str, str]:
        """Load committed fingerprints; any failure yields an empty state."""
        try:
            with open(self.state_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            # Missing state file is normal for the first sync
            return {}
        except OSError as e:
            logger.error(f"Error loading sync state from {self.state_path}: {e}")
            return {}

        if not content.strip():
            return {}

        try:
            data = json.loads(content)
        except ValueError as e:
            logger.error(f"Error loading sync state from {self.state_path}: invalid JSON ({e})")
            return {}

        if not isinstance(data, dict):
            logger.error(
                f"Error loading sync state from {self.state_path}: "
                f"expected a JSON object, got {type(data).__name__}"
            )
            return {}

        return {
            str(path): value for path, value in data.items()
            if isinstance(value, str)
        }

    def _save(self) -> None:
        """Write committed fingerprints; failures are logged, not raised."""
        try:
            state_dir = os.path.dirname(self.state_path)
            if state_dir:
                os.makedirs(state_dir, exist_ok=True)
            with open(self.state_path, 'w', encoding='utf-8') as f:
                json.dump(self._committed, f, indent=2, sort_keys=True)
        except OSError as e:
            logger.error(f"Error saving sync state to {self.state_path}: {e}")
