"""YAML frontmatter parsing for markdown files.

Markdown files may start with a YAML frontmatter block delimited by '---'
lines. The block is metadata for other tools, not page content, so it is
stripped before a file is fingerprinted and converted to Notion blocks.
"""

import re
from typing import Any, Dict, Tuple

import yaml

from .errors import FrontmatterError


def _nesting_depth(obj: Any) -> int:
    if isinstance(obj, dict):
        return 1 + max((_nesting_depth(v) for v in obj.values()), default=0)
    if isinstance(obj, list):
        return 1 + max((_nesting_depth(v) for v in obj), default=0)
    return 0


class FrontmatterHandler:
    """Splits YAML frontmatter from markdown content.

    Frontmatter format:
        ---
        title: Optional metadata
        tags: [a, b]
        ---
        # Markdown body
    """

    # Leading block between '---' lines, tolerant of CRLF and a missing
    # trailing newline
    PATTERN = re.compile(r'^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)', re.DOTALL)

    MAX_YAML_DEPTH = 10

    @classmethod
    def parse(cls, file_path: str, content: str) -> Tuple[Dict[str, Any], str]:
        """Split markdown content into frontmatter metadata and body.

        Args:
            file_path: Path to the file (for error messages)
            content: Full markdown content including frontmatter

        Returns:
            Tuple of (metadata dict, markdown body). Files without frontmatter
            yield an empty dict and the unchanged content.

        Raises:
            FrontmatterError: If the frontmatter is not a valid YAML mapping
        """
        match = cls.PATTERN.match(content)
        if match is None:
            return {}, content
        body = content[match.end():]

        try:
            metadata = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontmatterError(file_path, f"Invalid YAML syntax: {e}") from e

        if metadata is None:
            return {}, body
        if not isinstance(metadata, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(metadata).__name__}",
            )
        if _nesting_depth(metadata) > cls.MAX_YAML_DEPTH:
            raise FrontmatterError(
                file_path, f"YAML structure exceeds maximum depth of {cls.MAX_YAML_DEPTH}"
            )
        return metadata, body

    @classmethod
    def strip(cls, file_path: str, content: str) -> str:
        """Return ``content`` without its frontmatter block."""
        return cls.parse(file_path, content)[1]
