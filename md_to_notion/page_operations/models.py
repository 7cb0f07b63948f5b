"""Data models for page operations."""

from dataclasses import dataclass


@dataclass
class UpdateResult:
    """Result of synchronizing one page's content.

    Attributes:
        page_id: Page that was updated
        blocks_appended: Blocks created, nested follow-up appends included
        blocks_deleted: Existing blocks deleted
    """

    page_id: str
    blocks_appended: int = 0
    blocks_deleted: int = 0

    @property
    def unchanged(self) -> bool:
        """True when the merge produced no writes."""
        return self.blocks_appended == 0 and self.blocks_deleted == 0
