"""Unit tests for file_mapper.ignore_patterns module."""

from md_to_notion.file_mapper.ignore_patterns import IgnorePatterns


class TestIgnorePatterns:
    """Test cases for IgnorePatterns matching."""

    def test_parse_skips_comments_and_blanks(self):
        patterns = IgnorePatterns.parse("# comment\n\ndrafts/\n*.tmp.md\n")

        assert patterns.patterns == ["drafts/", "*.tmp.md"]

    def test_directory_pattern_matches_contents(self):
        """'drafts/' ignores the folder and everything below it."""
        patterns = IgnorePatterns(["drafts/"])

        assert patterns.should_ignore("./drafts")
        assert patterns.should_ignore("./drafts/idea.md")
        assert patterns.should_ignore("./docs/drafts/idea.md")
        assert not patterns.should_ignore("./docs/final.md")

    def test_basename_pattern_matches_any_level(self):
        patterns = IgnorePatterns(["*.tmp.md"])

        assert patterns.should_ignore("./a/b/notes.tmp.md")
        assert not patterns.should_ignore("./a/b/notes.md")

    def test_path_pattern_matches_from_root(self):
        patterns = IgnorePatterns(["docs/private.md"])

        assert patterns.should_ignore("./docs/private.md")
        assert not patterns.should_ignore("./other/docs/private.md")

    def test_negation_reincludes(self):
        """A later '!pattern' wins over an earlier match."""
        patterns = IgnorePatterns(["*.md", "!README.md"])

        assert patterns.should_ignore("./notes.md")
        assert not patterns.should_ignore("./README.md")

    def test_load_missing_file(self, tmp_path):
        """No .notionignore means nothing is ignored."""
        assert IgnorePatterns.load(tmp_path).patterns == []

    def test_load_from_file(self, tmp_path):
        (tmp_path / ".notionignore").write_text("secret.md\n", encoding="utf-8")

        assert IgnorePatterns.load(tmp_path).should_ignore("./secret.md")
