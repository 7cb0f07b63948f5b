"""Markdown link rewriting.

Relative links between markdown files cannot be followed inside Notion. This
module rewrites links to other synced files into links to their Notion
pages, hands other relative links to an optional user-supplied replacer
(e.g. raw GitHub URLs), and finally reduces any link Notion would reject to
its plain text.
"""

import logging
import posixpath
import re
from typing import Callable, Mapping, Optional

logger = logging.getLogger(__name__)

# [text](target) or ![alt](target), with an optional "title"
MARKDOWN_LINK_PATTERN = re.compile(
    r'(?P<image>!?)\[(?P<text>[^\]]*)\]\((?P<target>[^)\s]+)(?:\s+"[^"]*")?\)'
)

ABSOLUTE_URL_PATTERN = re.compile(r'^(?:https?://|mailto:)', re.IGNORECASE)

REPL_TEXT = '${text}'
REPL_LINK_PATH_FROM_ROOT = '${linkPathFromRoot}'
REPL_GITHUB_PATH = '${githubPath}'
GITHUB_LINK_REPLACEMENT = (
    f"[{REPL_TEXT}](https://github.com/{REPL_GITHUB_PATH}/{REPL_LINK_PATH_FROM_ROOT}?raw=true)"
)

Replacer = Callable[[str, str], str]


def is_absolute_url(target: str) -> bool:
    """Return True for http(s) and mailto URLs, the only links Notion accepts."""
    return bool(ABSOLUTE_URL_PATTERN.match(target))


def resolve_link_path(target: str, path_from_root: str) -> Optional[str]:
    """Resolve a relative link target against the linking file's folder.

    Args:
        target: Link target as written in markdown (e.g. '../guide.md#setup')
        path_from_root: Linking file's path relative to the synced root

    Returns:
        The target's path relative to the root (e.g. 'docs/guide.md'), or None
        for absolute URLs, pure anchors and paths escaping the root
    """
    target = target.split('#', 1)[0].split('?', 1)[0]
    if not target or is_absolute_url(target) or ':' in target.split('/', 1)[0]:
        return None

    if target.startswith('/'):
        joined = posixpath.normpath(target.lstrip('/'))
    else:
        base_dir = posixpath.dirname(path_from_root.replace('\\', '/'))
        joined = posixpath.normpath(posixpath.join(base_dir, target))

    if joined in ('.', '') or joined.startswith('..'):
        return None
    return joined


def link_key(link_path: str) -> str:
    """Return the PageIndex key of the page a root-relative path maps to.

    Example:
        >>> link_key('docs/guide.md')
        './docs/guide'
    """
    if link_path.endswith('.md'):
        link_path = link_path[:-3]
    return f"./{link_path}"


def make_template_replacer(template: str) -> Replacer:
    """Build a replacer from a template using ${text} and ${linkPathFromRoot}."""
    def replacer(text: str, link_path_from_root: str) -> str:
        return (
            template
            .replace(REPL_TEXT, text)
            .replace(REPL_LINK_PATH_FROM_ROOT, link_path_from_root)
        )
    return replacer


def make_github_replacer(github_path: str) -> Replacer:
    """Build a replacer producing raw GitHub links.

    Args:
        github_path: e.g. 'owner/repo/blob/main'
    """
    return make_template_replacer(
        GITHUB_LINK_REPLACEMENT.replace(REPL_GITHUB_PATH, github_path.strip('/'))
    )


def replace_internal_links(
    content: str,
    link_map: Mapping[str, str],
    path_from_root: str,
    replacer: Optional[Replacer] = None,
) -> str:
    """Rewrite relative links in ``content``.

    Links whose target maps to a known page (``link_map`` key) point to that
    page's URL. Other relative links are passed to ``replacer`` when given,
    and left untouched otherwise.

    Args:
        content: Markdown text
        link_map: PageIndex key -> page URL
        path_from_root: Path of the file being converted, relative to the root
        replacer: Optional (text, link_path_from_root) -> markdown callable
    """
    def substitute(match: re.Match) -> str:
        is_image = bool(match.group('image'))
        text = match.group('text')
        link_path = resolve_link_path(match.group('target'), path_from_root)
        if link_path is None:
            return match.group(0)

        if not is_image:
            url = link_map.get(link_key(link_path))
            if url:
                return f"[{text}]({url})"

        if replacer is not None:
            replaced = replacer(text, link_path)
            return f"!{replaced}" if is_image and not replaced.startswith('!') else replaced

        logger.debug(f"Unresolved link '{match.group('target')}' in {path_from_root}")
        return match.group(0)

    return MARKDOWN_LINK_PATTERN.sub(substitute, content)


def remove_invalid_links(content: str) -> str:
    """Replace links Notion would reject (non-absolute targets) by their text.

    Images with relative sources keep their alt text only.
    """
    def substitute(match: re.Match) -> str:
        if is_absolute_url(match.group('target')):
            return match.group(0)
        return match.group('text')

    return MARKDOWN_LINK_PATTERN.sub(substitute, content)
