"""
Unit tests for legacy separator normalization.
"""
from flashdrill.content.normalizer import normalize_legacy_separators, normalize_line


class TestNormalizeLine:

    def test_first_semicolon_replaced(self):
        assert normalize_line("ahoj; hello; hi") == "ahoj =  hello; hi"

    def test_line_with_equals_untouched(self):
        assert normalize_line("a; b = c") == "a; b = c"

    def test_header_untouched(self):
        assert normalize_line("=== Lesson; part 1") == "=== Lesson; part 1"

    def test_blank_and_plain_lines_untouched(self):
        assert normalize_line("   ") == "   "
        assert normalize_line("no separator") == "no separator"


class TestNormalizeText:

    def test_mixed_text(self):
        text = "=== S\nahoj;hello\nmama = mother\n\notec;father"
        assert normalize_legacy_separators(text) == (
            "=== S\nahoj = hello\nmama = mother\n\notec = father"
        )

    def test_idempotent(self, sample_text):
        legacy = "=== S\nahoj;hello\nrodina ; family\n"
        once = normalize_legacy_separators(legacy)
        assert normalize_legacy_separators(once) == once
        assert normalize_legacy_separators(sample_text) == sample_text

    def test_normalized_text_parses(self, parser):
        text = normalize_legacy_separators("=== S\nahoj;hello")
        result = parser.parse(text)
        assert result.cards[0].question == "ahoj"
        assert result.cards[0].answer == "hello"
