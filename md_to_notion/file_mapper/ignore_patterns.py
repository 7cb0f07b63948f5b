"""Gitignore-style ignore patterns read from a .notionignore file.

This module provides:
- IgnorePatterns: pattern matching for paths relative to the synced root
- IGNORE_FILE_NAME: name of the file patterns are loaded from
"""

import fnmatch
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = '.notionignore'


class IgnorePatterns:
    """Matches relative paths against gitignore-style patterns.

    Rules:
    - blank lines and lines starting with '#' are skipped
    - 'dir/' matches the directory and everything below it
    - patterns without '/' also match a path's basename
    - '!pattern' re-includes a previously ignored path
    - later patterns win over earlier ones
    """

    def __init__(self, patterns: Optional[List[str]] = None):
        self._patterns: List[str] = list(patterns or [])

    @property
    def patterns(self) -> List[str]:
        return list(self._patterns)

    @classmethod
    def parse(cls, text: str) -> 'IgnorePatterns':
        """Build patterns from the text of an ignore file."""
        patterns = []
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith('#'):
                patterns.append(line)
        return cls(patterns)

    @classmethod
    def load(cls, root: Path) -> 'IgnorePatterns':
        """Load patterns from ``root/.notionignore``; missing file means no patterns."""
        ignore_file = Path(root) / IGNORE_FILE_NAME
        try:
            text = ignore_file.read_text(encoding='utf-8')
        except FileNotFoundError:
            logger.debug(f"No {IGNORE_FILE_NAME} found in {root}")
            return cls()
        except OSError as e:
            logger.warning(f"Could not read {ignore_file}: {e}")
            return cls()
        return cls.parse(text)

    @staticmethod
    def _normalize_pattern(pattern: str) -> str:
        # A trailing slash means "this directory and everything under it"
        if pattern.endswith('/'):
            return pattern + '**'
        return pattern

    @staticmethod
    def _matches(path: str, pattern: str) -> bool:
        pattern = pattern.lstrip('/')
        parts = path.split('/')
        if pattern.endswith('/**'):
            directory = pattern[:-3]
            if '/' in directory:
                prefixes = ['/'.join(parts[:i]) for i in range(1, len(parts) + 1)]
                return any(fnmatch.fnmatch(prefix, directory) for prefix in prefixes)
            return any(fnmatch.fnmatch(part, directory) for part in parts)
        if fnmatch.fnmatch(path, pattern):
            return True
        # Patterns without '/' match the basename at any level
        return '/' not in pattern and fnmatch.fnmatch(parts[-1], pattern)

    def should_ignore(self, relative_path: str) -> bool:
        """Check if a path (relative to the root, e.g. './a/b.md') is ignored."""
        path = relative_path.replace('\\', '/')
        if path.startswith('./'):
            path = path[2:]

        ignored = False
        for raw in self._patterns:
            if raw.startswith('!'):
                if self._matches(path, self._normalize_pattern(raw[1:])):
                    ignored = False
            elif self._matches(path, self._normalize_pattern(raw)):
                ignored = True
        return ignored
