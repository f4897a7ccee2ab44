"""
Unit tests for LessonTextParser.

Covers headers, card lines, notes, rejected lines and history carry-over.
Run: pytest tests/unit/test_lesson_parser.py -v
"""
import pytest

from flashdrill.content.models import Card, CardMetadata, Rating
from flashdrill.content.parser import LessonTextParser, parse_lessons
from flashdrill.errors import (
    HeaderFormatError,
    LessonParseError,
    LineFormatError,
    MarkupRejectedError,
)


class TestHeaders:
    """Test '===' section header parsing."""

    def test_plain_header_uses_default_language(self, parser):
        result = parser.parse("=== Pozdravy\nahoj = hello")
        assert len(result.lessons) == 1
        lesson = result.lessons[0]
        assert lesson.name == "Pozdravy"
        assert lesson.language == "en-GB"
        assert lesson.note == ""

    def test_header_with_language_and_note(self, parser):
        result = parser.parse("=== Deutsch #de-DE# [Grundlagen]\njeden = eins")
        lesson = result.lessons[0]
        assert lesson.name == "Deutsch"
        assert lesson.language == "de-DE"
        assert lesson.note == "Grundlagen"

    def test_header_with_note_only(self, parser):
        lesson = parser.parse_header("=== Phrasal verbs [give, take]")
        assert lesson.name == "Phrasal verbs"
        assert lesson.language == "en-GB"
        assert lesson.note == "give, take"

    def test_configured_default_language(self):
        result = parse_lessons("=== Zahlen\neins = one", default_language="de-DE")
        assert result.lessons[0].language == "de-DE"
        assert result.cards[0].language == "de-DE"

    def test_empty_header_name_is_fatal(self, parser):
        with pytest.raises(HeaderFormatError) as exc_info:
            parser.parse("=== \nahoj = hello")
        assert exc_info.value.line_number == 1

    def test_header_name_with_hash(self, parser):
        result = parser.parse("=== C# basics\nvar = variable")
        lesson = result.lessons[0]
        assert lesson.name == "C# basics"
        assert lesson.language == "en-GB"
        assert result.cards[0].section == "C# basics"

    def test_header_name_with_brackets(self, parser):
        lesson = parser.parse_header("=== Lesson 1 [part 2] review")
        assert lesson.name == "Lesson 1 [part 2] review"
        assert lesson.note == ""

    def test_unclosed_language_stays_in_name(self, parser):
        lesson = parser.parse_header("=== Lesson #de-DE")
        assert lesson.name == "Lesson #de-DE"
        assert lesson.language == "en-GB"

    def test_fatal_header_wins_over_line_errors(self, parser):
        text = "bad line\n=== #de-DE#\nahoj = hello"
        with pytest.raises(HeaderFormatError) as exc_info:
            parser.parse(text)
        assert exc_info.value.line_number == 2

    def test_header_without_space_is_line_error(self, parser):
        with pytest.raises(LessonParseError) as exc_info:
            parser.parse("===Pozdravy\nahoj = hello")
        errors = exc_info.value.errors
        assert [type(e) for e in errors] == [LineFormatError, LineFormatError]
        assert errors[0].line_number == 1


class TestCardLines:
    """Test question/answer line parsing."""

    def test_question_note_extracted(self, parser):
        result = parser.parse("=== Pozdravy\ndobrý deň [doobeda] = good morning")
        card = result.cards[0]
        assert card.question == "dobrý deň"
        assert card.question_note == "(doobeda)"
        assert card.answer == "good morning"
        assert card.answer_note == ""

    def test_answer_note_extracted(self, parser):
        result = parser.parse("=== Pozdravy\ndobrý deň [poobede] = good evening [from noon]")
        card = result.cards[0]
        assert card.answer == "good evening"
        assert card.answer_note == "(from noon)"

    def test_equals_inside_note_is_not_a_separator(self, parser):
        result = parser.parse("=== S\na [x=y] = b")
        card = result.cards[0]
        assert card.question == "a"
        assert card.question_note == "(x=y)"
        assert card.answer == "b"

    def test_whitespace_trimmed(self, parser):
        result = parser.parse("=== S\n   mama   =   mother   ")
        card = result.cards[0]
        assert card.question == "mama"
        assert card.answer == "mother"

    def test_cards_inherit_section_and_language(self, parser, sample_text):
        result = parser.parse(sample_text)
        assert [c.section for c in result.cards] == [
            "Pozdravy", "Pozdravy", "Pozdravy", "Deutsch", "Deutsch",
        ]
        assert result.cards[-1].language == "de-DE"
        assert result.cards[0].language == "en-GB"

    def test_ids_are_sequential_across_lessons(self, parser, sample_text):
        result = parser.parse(sample_text)
        assert [c.metadata.id for c in result.cards] == [0, 1, 2, 3, 4]

    def test_new_cards_start_unreviewed(self, parser, sample_text):
        for card in parser.parse(sample_text).cards:
            assert card.metadata.last_rating is None
            assert card.metadata.score == 1
            assert card.metadata.is_builtin is False

    def test_blank_lines_and_crlf(self, parser):
        result = parser.parse("=== S\r\n\r\n   \r\nahoj = hello\r\n")
        assert len(result.cards) == 1
        assert result.cards[0].answer == "hello"

    def test_emphasis_is_kept_verbatim(self, parser):
        result = parser.parse("=== S\ndobré ráno = good *morning*")
        assert result.cards[0].answer == "good *morning*"

    def test_sections_and_counts(self, parser, sample_text):
        result = parser.parse(sample_text)
        assert result.sections == ["Pozdravy", "Deutsch"]
        assert result.count("Pozdravy") == 3
        assert result.count("Deutsch") == 2


class TestRejectedLines:
    """Test that invalid lines are collected and reported together."""

    def test_markup_rejected(self, parser):
        with pytest.raises(LessonParseError) as exc_info:
            parser.parse("=== S\n<b>hi</b> = ahoj")
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert isinstance(errors[0], MarkupRejectedError)
        assert errors[0].line_number == 2
        assert errors[0].raw_line == "<b>hi</b> = ahoj"

    def test_all_errors_reported_in_order(self, parser):
        text = "=== S\nno separator\nok = fine\na = b = c\n<i>x</i> = y\n"
        with pytest.raises(LessonParseError) as exc_info:
            parser.parse(text)
        errors = exc_info.value.errors
        assert [e.line_number for e in errors] == [2, 4, 5]
        assert [type(e) for e in errors] == [
            LineFormatError, LineFormatError, MarkupRejectedError,
        ]

    def test_card_before_header_rejected(self, parser):
        with pytest.raises(LessonParseError) as exc_info:
            parser.parse("ahoj = hello\n=== S\nmama = mother")
        assert exc_info.value.errors[0].line_number == 1

    def test_legacy_separator_rejected_by_parser(self, parser):
        """The parser itself does not accept ';'; normalization runs at load time."""
        with pytest.raises(LessonParseError):
            parser.parse("=== S\nahoj; hello")

    def test_note_in_middle_rejected(self, parser):
        with pytest.raises(LessonParseError):
            parser.parse("=== S\nahoj [x] ty = hello")

    def test_comparison_operators_are_not_markup(self, parser):
        result = parser.parse("=== Math\n1 < 2 = true")
        assert result.cards[0].question == "1 < 2"


class TestHistoryCarryOver:
    """Test that re-parsing keeps review history of unchanged cards."""

    def test_reparse_preserves_history(self, parser, sample_text):
        first = parser.parse(sample_text)
        first.cards[0].metadata.last_rating = Rating.GOOD
        first.cards[0].metadata.score = 67.0
        first.cards[3].metadata.last_rating = Rating.FAIL
        first.cards[3].metadata.score = 0.33

        second = parser.parse(sample_text, first.cards)

        for before, after in zip(first.cards, second.cards):
            assert after.metadata.last_rating == before.metadata.last_rating
            assert after.metadata.score == before.metadata.score

    def test_edited_answer_resets_history(self, parser):
        prior = [
            Card("S", "en-GB", "ahoj", "hello",
                 metadata=CardMetadata(last_rating=Rating.GOOD, score=90.0)),
        ]
        result = parser.parse("=== S\nahoj = hi", prior)
        assert result.cards[0].metadata.last_rating is None
        assert result.cards[0].metadata.score == 1

    def test_builtin_flag_not_carried(self, parser):
        prior = [
            Card("S", "en-GB", "ahoj", "hello",
                 metadata=CardMetadata(id=7, score=50.0, is_builtin=True)),
        ]
        card = parser.parse("=== S\nahoj = hello", prior).cards[0]
        assert card.metadata.score == 50.0
        assert card.metadata.is_builtin is False
        assert card.metadata.id == 0

    def test_failed_parse_returns_no_cards(self):
        parser = LessonTextParser()
        with pytest.raises(LessonParseError) as exc_info:
            parser.parse("=== S\nahoj = hello\nbroken")
        assert "1 invalid line" in str(exc_info.value)
