"""Import layering between md_to_notion packages."""

import ast
from pathlib import Path

import pytest

import md_to_notion

PACKAGE_ROOT = Path(md_to_notion.__file__).parent
LIBRARY_PACKAGES = ["notion_api", "models", "content_converter", "file_mapper", "page_operations"]


def _imported_modules(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.module
        elif isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name


class TestLayering:
    """Library packages work without the command-line layer."""

    @pytest.mark.parametrize("package", LIBRARY_PACKAGES)
    def test_library_does_not_import_cli(self, package):
        offenders = [
            f"{path.name}: {module}"
            for path in sorted((PACKAGE_ROOT / package).glob("*.py"))
            for module in _imported_modules(path)
            if module == "md_to_notion.cli" or module.startswith("md_to_notion.cli.")
        ]
        assert offenders == []
