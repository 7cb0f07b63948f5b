"""Markdown to Notion block conversion.

This module converts markdown text into a list of Notion block dicts ready
for the append endpoint. Parsing is line-based: each line is classified as a
fence, heading, divider, table, quote, list item, image or paragraph text,
and inline markup is turned into Notion rich text with annotations.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from md_to_notion.models.notion_block import Block

logger = logging.getLogger(__name__)

# Notion rejects rich text items longer than this
MAX_TEXT_LENGTH = 2000

DEFAULT_ANNOTATIONS = {
    'bold': False,
    'italic': False,
    'strikethrough': False,
    'underline': False,
    'code': False,
    'color': 'default',
}

FENCE_PATTERN = re.compile(r'^\s*(```|~~~)\s*([\w+#.\-/]*)')
HEADING_PATTERN = re.compile(r'^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$')
DIVIDER_PATTERN = re.compile(r'^\s*(?:(?:\*\s*){3,}|(?:-\s*){3,}|(?:_\s*){3,})$')
LIST_ITEM_PATTERN = re.compile(r'^(\s*)([-*+]|\d+[.)])\s+(.*)$')
TODO_PATTERN = re.compile(r'^\[([ xX])\]\s+(.*)$')
QUOTE_PATTERN = re.compile(r'^\s*>\s?(.*)$')
TABLE_SEPARATOR_PATTERN = re.compile(r'^\s*\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?\s*$')
IMAGE_LINE_PATTERN = re.compile(r'^\s*!\[(?P<alt>[^\]]*)\]\((?P<src>[^)\s]+)(?:\s+"[^"]*")?\)\s*$')

INLINE_PATTERN = re.compile(
    r'(?P<code>`[^`]+`)'
    r'|(?P<link>\[(?P<link_text>[^\]]+)\]\((?P<link_url>[^)\s]+)(?:\s+"[^"]*")?\))'
    r'|\*\*(?P<bold>.+?)\*\*'
    r'|__(?P<bold_alt>.+?)__'
    r'|~~(?P<strike>.+?)~~'
    r'|\*(?P<italic>[^*\s](?:[^*]*[^*\s])?)\*'
    r'|(?<![\w])_(?P<italic_alt>[^_\s](?:[^_]*[^_\s])?)_(?![\w])'
)

# Fence info strings mapped to Notion code languages
LANGUAGE_ALIASES = {
    'sh': 'shell',
    'zsh': 'shell',
    'console': 'shell',
    'js': 'javascript',
    'jsx': 'javascript',
    'ts': 'typescript',
    'tsx': 'typescript',
    'py': 'python',
    'rb': 'ruby',
    'rs': 'rust',
    'kt': 'kotlin',
    'yml': 'yaml',
    'md': 'markdown',
    'cpp': 'c++',
    'cs': 'c#',
    'csharp': 'c#',
    'dockerfile': 'docker',
    'text': 'plain text',
    'txt': 'plain text',
    'plaintext': 'plain text',
    'ps1': 'powershell',
    'proto': 'protobuf',
    'objc': 'objective-c',
}

NOTION_LANGUAGES = frozenset({
    'abap', 'arduino', 'bash', 'basic', 'c', 'clojure', 'coffeescript', 'c++',
    'c#', 'css', 'dart', 'diff', 'docker', 'elixir', 'elm', 'erlang', 'flow',
    'fortran', 'f#', 'gherkin', 'glsl', 'go', 'graphql', 'groovy', 'haskell',
    'html', 'java', 'javascript', 'json', 'julia', 'kotlin', 'latex', 'less',
    'lisp', 'livescript', 'lua', 'makefile', 'markdown', 'markup', 'matlab',
    'mermaid', 'nix', 'objective-c', 'ocaml', 'pascal', 'perl', 'php',
    'plain text', 'powershell', 'prolog', 'protobuf', 'python', 'r', 'reason',
    'ruby', 'rust', 'sass', 'scala', 'scheme', 'scss', 'shell', 'sql', 'swift',
    'typescript', 'vb.net', 'verilog', 'vhdl', 'visual basic', 'webassembly',
    'xml', 'yaml',
})


def _is_url(target: str) -> bool:
    return target.startswith(('http://', 'https://', 'mailto:'))


class MarkdownConverter:
    """Converts markdown text to Notion blocks.

    Supported: headings (levels 4-6 collapse to heading_3), paragraphs,
    bulleted/numbered/to-do lists with nesting, fenced code, block quotes,
    dividers, images with absolute URLs, and pipe tables. Inline bold,
    italic, strikethrough, code and links become rich text annotations.

    Example:
        >>> converter = MarkdownConverter()
        >>> blocks = converter.to_blocks("# Title\\n\\nSome *text*.")
        >>> blocks[0]['type']
        'heading_1'
    """

    def to_blocks(self, markdown: str) -> List[Block]:
        """Convert a markdown document to a list of top-level blocks."""
        lines = markdown.replace('\r\n', '\n').replace('\r', '\n').split('\n')
        blocks: List[Block] = []
        i = 0

        while i < len(lines):
            line = lines[i]

            if not line.strip():
                i += 1
                continue

            fence = FENCE_PATTERN.match(line)
            if fence:
                block, i = self._parse_code(lines, i, fence.group(1), fence.group(2))
                blocks.append(block)
                continue

            heading = HEADING_PATTERN.match(line)
            if heading:
                level = min(len(heading.group(1)), 3)
                blocks.append(self._text_block(f"heading_{level}", heading.group(2)))
                i += 1
                continue

            if DIVIDER_PATTERN.match(line):
                blocks.append({'object': 'block', 'type': 'divider', 'divider': {}})
                i += 1
                continue

            if self._is_table_start(lines, i):
                block, i = self._parse_table(lines, i)
                blocks.append(block)
                continue

            if QUOTE_PATTERN.match(line):
                block, i = self._parse_quote(lines, i)
                blocks.append(block)
                continue

            if LIST_ITEM_PATTERN.match(line):
                items, i = self._parse_list(lines, i)
                blocks.extend(items)
                continue

            image = IMAGE_LINE_PATTERN.match(line)
            if image:
                blocks.append(self._image_block(image.group('alt'), image.group('src')))
                i += 1
                continue

            block, i = self._parse_paragraph(lines, i)
            blocks.append(block)

        return blocks

    def _starts_block(self, lines: List[str], i: int) -> bool:
        line = lines[i]
        return bool(
            not line.strip()
            or FENCE_PATTERN.match(line)
            or HEADING_PATTERN.match(line)
            or DIVIDER_PATTERN.match(line)
            or QUOTE_PATTERN.match(line)
            or LIST_ITEM_PATTERN.match(line)
            or IMAGE_LINE_PATTERN.match(line)
            or self._is_table_start(lines, i)
        )

    def _parse_paragraph(self, lines: List[str], i: int) -> Tuple[Block, int]:
        parts = [lines[i]]
        i += 1
        while i < len(lines) and not self._starts_block(lines, i):
            parts.append(lines[i])
            i += 1

        text = ''
        for index, part in enumerate(parts):
            # Two trailing spaces mark a hard line break
            hard_break = part.endswith('  ')
            text += part.strip()
            if index < len(parts) - 1:
                text += '\n' if hard_break else ' '
        return self._text_block('paragraph', text), i

    def _parse_code(self, lines: List[str], i: int, fence: str, info: str) -> Tuple[Block, int]:
        body: List[str] = []
        i += 1
        while i < len(lines) and not lines[i].strip().startswith(fence):
            body.append(lines[i])
            i += 1
        # Skip the closing fence (an unclosed fence runs to end of document)
        i += 1

        code = '\n'.join(body)
        block = {
            'object': 'block',
            'type': 'code',
            'code': {
                'rich_text': self._text_items(code, {}, None),
                'language': self._language(info),
            },
        }
        return block, i

    @staticmethod
    def _language(info: str) -> str:
        language = info.strip().lower()
        language = LANGUAGE_ALIASES.get(language, language)
        if language not in NOTION_LANGUAGES:
            if language:
                logger.debug(f"Unsupported code language '{info}', using plain text")
            return 'plain text'
        return language

    def _parse_quote(self, lines: List[str], i: int) -> Tuple[Block, int]:
        parts: List[str] = []
        while i < len(lines):
            match = QUOTE_PATTERN.match(lines[i])
            if not match:
                break
            parts.append(match.group(1))
            i += 1
        return self._text_block('quote', '\n'.join(parts).strip()), i

    @staticmethod
    def _split_row(line: str) -> List[str]:
        row = line.strip()
        if row.startswith('|'):
            row = row[1:]
        if row.endswith('|') and not row.endswith('\\|'):
            row = row[:-1]
        cells = re.split(r'(?<!\\)\|', row)
        return [cell.strip().replace('\\|', '|') for cell in cells]

    @staticmethod
    def _is_table_start(lines: List[str], i: int) -> bool:
        return (
            '|' in lines[i]
            and i + 1 < len(lines)
            and '-' in lines[i + 1]
            and bool(TABLE_SEPARATOR_PATTERN.match(lines[i + 1]))
        )

    def _parse_table(self, lines: List[str], i: int) -> Tuple[Block, int]:
        rows = [self._split_row(lines[i])]
        i += 2
        while i < len(lines) and lines[i].strip() and '|' in lines[i]:
            rows.append(self._split_row(lines[i]))
            i += 1

        width = max(len(row) for row in rows)
        children = [
            {
                'object': 'block',
                'type': 'table_row',
                'table_row': {
                    'cells': [
                        self._rich_text(cell)
                        for cell in row + [''] * (width - len(row))
                    ],
                },
            }
            for row in rows
        ]
        block = {
            'object': 'block',
            'type': 'table',
            'table': {
                'table_width': width,
                'has_column_header': True,
                'has_row_header': False,
                'children': children,
            },
        }
        return block, i

    def _parse_list(self, lines: List[str], i: int) -> Tuple[List[Block], int]:
        """Parse consecutive list items, nesting them by indentation."""
        items: List[Block] = []
        # [indent, block, raw text] for the open items, outermost first
        stack: List[List[Any]] = []

        while i < len(lines):
            line = lines[i]

            if not line.strip():
                j = i + 1
                while j < len(lines) and not lines[j].strip():
                    j += 1
                if j < len(lines) and LIST_ITEM_PATTERN.match(lines[j]):
                    i = j
                    continue
                break

            match = LIST_ITEM_PATTERN.match(line)
            if not match:
                if stack and line[:1].isspace() and not self._starts_block(lines, i):
                    # Lazy continuation of the innermost item's text
                    entry = stack[-1]
                    entry[2] = f"{entry[2]} {line.strip()}"
                    self._set_list_text(entry[1], entry[2])
                    i += 1
                    continue
                break

            indent = len(match.group(1).expandtabs(4))
            block, text = self._list_item(match.group(2), match.group(3))

            while stack and stack[-1][0] >= indent:
                stack.pop()
            if stack:
                parent = stack[-1][1]
                parent[parent['type']].setdefault('children', []).append(block)
            else:
                items.append(block)
            stack.append([indent, block, text])
            i += 1

        return items, i

    def _list_item(self, marker: str, text: str) -> Tuple[Block, str]:
        todo = TODO_PATTERN.match(text)
        if todo:
            text = todo.group(2)
            block = {
                'object': 'block',
                'type': 'to_do',
                'to_do': {
                    'rich_text': self._rich_text(text),
                    'checked': todo.group(1) in ('x', 'X'),
                },
            }
            return block, text

        block_type = 'bulleted_list_item' if marker in ('-', '*', '+') else 'numbered_list_item'
        return self._text_block(block_type, text), text

    def _set_list_text(self, block: Block, text: str) -> None:
        block[block['type']]['rich_text'] = self._rich_text(text)

    def _image_block(self, alt: str, src: str) -> Block:
        if not _is_url(src):
            # Notion only embeds externally hosted images
            logger.debug(f"Skipping image with relative source '{src}'")
            return self._text_block('paragraph', alt)

        block = {
            'object': 'block',
            'type': 'image',
            'image': {'type': 'external', 'external': {'url': src}},
        }
        if alt:
            block['image']['caption'] = self._rich_text(alt)
        return block

    def _text_block(self, block_type: str, text: str) -> Block:
        return {
            'object': 'block',
            'type': block_type,
            block_type: {'rich_text': self._rich_text(text)},
        }

    def _rich_text(
        self,
        text: str,
        annotations: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Convert inline markdown to a list of Notion rich text items."""
        annotations = annotations or {}
        items: List[Dict[str, Any]] = []
        position = 0

        for match in INLINE_PATTERN.finditer(text):
            if match.start() > position:
                items.extend(self._text_items(text[position:match.start()], annotations, link))

            if match.group('code'):
                items.extend(self._text_items(
                    match.group('code')[1:-1], {**annotations, 'code': True}, link
                ))
            elif match.group('link'):
                url = match.group('link_url')
                items.extend(self._rich_text(
                    match.group('link_text'), annotations, url if _is_url(url) else link
                ))
            elif match.group('bold') or match.group('bold_alt'):
                inner = match.group('bold') or match.group('bold_alt')
                items.extend(self._rich_text(inner, {**annotations, 'bold': True}, link))
            elif match.group('strike'):
                items.extend(self._rich_text(
                    match.group('strike'), {**annotations, 'strikethrough': True}, link
                ))
            else:
                inner = match.group('italic') or match.group('italic_alt')
                items.extend(self._rich_text(inner, {**annotations, 'italic': True}, link))

            position = match.end()

        if position < len(text):
            items.extend(self._text_items(text[position:], annotations, link))

        return items

    @staticmethod
    def _text_items(
        content: str,
        annotations: Dict[str, Any],
        link: Optional[str],
    ) -> List[Dict[str, Any]]:
        """Build text items for ``content``, split at Notion's length limit."""
        items = []
        for start in range(0, len(content), MAX_TEXT_LENGTH):
            text: Dict[str, Any] = {'content': content[start:start + MAX_TEXT_LENGTH]}
            if link:
                text['link'] = {'url': link}
            items.append({
                'type': 'text',
                'text': text,
                'annotations': {**DEFAULT_ANNOTATIONS, **annotations},
            })
        return items
