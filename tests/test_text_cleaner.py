"""
Unit tests for TextCleaner
"""

from utils.text_cleaner import TextCleaner


class TestStripCodeFences:
    def test_plain_text_unchanged(self):
        assert TextCleaner.strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_json_fence_removed(self):
        assert TextCleaner.strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence_removed(self):
        assert TextCleaner.strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'


class TestContainsAny:
    def test_case_insensitive(self):
        assert TextCleaner.contains_any("WHY is that", ["why"])

    def test_substring_match(self):
        assert TextCleaner.contains_any("somehow", ["how"])

    def test_no_match(self):
        assert not TextCleaner.contains_any("Tell me more", ["why", "how"])
