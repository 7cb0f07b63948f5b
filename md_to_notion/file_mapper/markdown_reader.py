"""Local markdown tree reader.

Walks a directory, applying .notionignore patterns and an include/exclude
path filter, and builds the LocalNode tree the Tree Reconciler syncs. Each
markdown file's body (frontmatter removed) is fingerprinted through the
Change Tracker; conversion to Notion blocks is deferred until the file is
actually synced, since it needs the link map of every known page.
"""

import logging
import os
from typing import Callable, List, Optional

from md_to_notion.content_converter.link_replacer import (
    remove_invalid_links,
    replace_internal_links,
)
from md_to_notion.content_converter.markdown_converter import MarkdownConverter
from md_to_notion.models.notion_block import Block

from .errors import FilesystemError
from .frontmatter_handler import FrontmatterHandler
from .ignore_patterns import IgnorePatterns
from .models import LinkMap, LinkReplacer, LocalFile, LocalNode

logger = logging.getLogger(__name__)

ROOT_NODE_NAME = '.'
MARKDOWN_EXTENSION = '.md'
DEFAULT_EXCLUDE = 'node_modules'

PathFilter = Callable[[str], bool]


def make_path_filter(include: Optional[str] = None, exclude: Optional[str] = None) -> PathFilter:
    """Build a substring filter over './'-prefixed relative paths.

    Args:
        include: Keep only paths containing this text (default: keep all)
        exclude: Drop paths containing this text (default: 'node_modules')
    """
    exclude = exclude or DEFAULT_EXCLUDE

    def path_filter(path: str) -> bool:
        if include and include not in path:
            return False
        return exclude not in path

    return path_filter


def _make_content_producer(
    body: str,
    path_from_root: str,
    replacer: Optional[LinkReplacer],
    converter: MarkdownConverter,
) -> Callable[[LinkMap], List[Block]]:
    def get_content(link_map: LinkMap) -> List[Block]:
        linked = replace_internal_links(body, link_map, path_from_root, replacer)
        return converter.to_blocks(remove_invalid_links(linked))
    return get_content


def read_markdown_files(
    dir_path: str,
    path_filter: Optional[PathFilter] = None,
    replacer: Optional[LinkReplacer] = None,
    change_tracker=None,
    converter: Optional[MarkdownConverter] = None,
) -> Optional[LocalNode]:
    """Read a directory into a LocalNode tree.

    Entries are visited in sorted order; symbolic links are followed.
    Folders without markdown anywhere below them are omitted, and the result
    is None when ``dir_path`` holds no markdown at all.

    Args:
        dir_path: Root directory to read
        path_filter: Predicate over './relative/path' (default: exclude node_modules)
        replacer: Optional link replacer for relative links to non-page targets
        change_tracker: Optional ChangeTracker; without one every file is changed
        converter: MarkdownConverter to use (default: a new one)

    Returns:
        Root LocalNode named '.', or None if no markdown files were found

    Raises:
        FilesystemError: If ``dir_path`` is not a readable directory
    """
    if not os.path.isdir(dir_path):
        raise FilesystemError(dir_path, 'read', 'not a directory')

    path_filter = path_filter or make_path_filter()
    converter = converter or MarkdownConverter()
    ignore = IgnorePatterns.load(dir_path)
    frontmatter = FrontmatterHandler()

    def walk(current_path: str) -> Optional[LocalNode]:
        node = LocalNode(
            name=ROOT_NODE_NAME if current_path == dir_path else os.path.basename(current_path)
        )

        try:
            entries = sorted(os.listdir(current_path))
        except OSError as e:
            raise FilesystemError(current_path, 'list', str(e)) from e

        for entry in entries:
            entry_path = os.path.join(current_path, entry)
            path_from_root = os.path.relpath(entry_path, dir_path).replace(os.sep, '/')
            normalized = f"./{path_from_root}"

            if ignore.should_ignore(normalized):
                logger.info(f"Ignoring path due to .notionignore: {path_from_root}")
                continue
            if not path_filter(normalized):
                logger.info(f"Skipping path: {path_from_root}")
                continue

            # isdir/isfile follow symbolic links
            if os.path.isdir(entry_path):
                subfolder = walk(entry_path)
                if subfolder:
                    node.subfolders.append(subfolder)
            elif os.path.isfile(entry_path) and entry.endswith(MARKDOWN_EXTENSION):
                try:
                    with open(entry_path, 'r', encoding='utf-8') as f:
                        raw = f.read()
                except (OSError, UnicodeDecodeError) as e:
                    raise FilesystemError(entry_path, 'read', str(e)) from e

                body = frontmatter.strip(path_from_root, raw)
                changed = change_tracker.changed(path_from_root, body) if change_tracker else True
                node.files.append(LocalFile(
                    name=entry[:-len(MARKDOWN_EXTENSION)],
                    path=path_from_root,
                    get_content=_make_content_producer(body, path_from_root, replacer, converter),
                    changed=changed,
                ))

        if node.files or node.subfolders:
            return node
        return None

    root = walk(dir_path)
    if root:
        print_folder_hierarchy(root, ignore=ignore, base_path=dir_path)
    return root


def print_folder_hierarchy(
    node: Optional[LocalNode],
    indent: str = '',
    ignore: Optional[IgnorePatterns] = None,
    base_path: Optional[str] = None,
    relative_path: str = '',
) -> None:
    """Log the tree, one line per folder and file, marking ignored markdown files."""
    if node is None:
        return

    logger.info(f"{indent}{node.name}/")
    for local_file in node.files:
        logger.info(f"{indent}  - {local_file.name}.md")

    if ignore is not None and base_path is not None:
        current = os.path.join(base_path, relative_path) if relative_path else base_path
        try:
            entries = sorted(os.listdir(current))
        except OSError:
            logger.debug(f"Could not read directory: {current}")
            entries = []
        ignored = [
            entry for entry in entries
            if entry.endswith(MARKDOWN_EXTENSION)
            and ignore.should_ignore(f"./{relative_path}/{entry}" if relative_path else f"./{entry}")
        ]
        if ignored:
            logger.info(f"{indent}  [ignored]")
            for entry in ignored:
                logger.info(f"{indent}    - {entry}")

    for subfolder in node.subfolders:
        child_path = f"{relative_path}/{subfolder.name}" if relative_path else subfolder.name
        print_folder_hierarchy(subfolder, indent + '  ', ignore, base_path, child_path)
