"""
Lesson text parser.

Turns the plain-text lesson format into Lesson and Card records:

    === <lesson name> [#<lang>#] [[<note>]]
    <question> [[<note>]] = <answer> [[<note>]]

Blank lines are skipped. Every rejected line is collected and reported
together; a malformed '===' header aborts the parse immediately.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from ..errors import (
    HeaderFormatError,
    LessonLineError,
    LessonParseError,
    LineFormatError,
    MarkupRejectedError,
)
from .merger import carry_forward
from .models import Card, CardMetadata, Lesson
from .normalizer import HEADER_PREFIX


@dataclass
class ParseResult:
    """Lessons and cards produced by one parse pass."""

    lessons: list[Lesson] = field(default_factory=list)
    cards: list[Card] = field(default_factory=list)

    @property
    def sections(self) -> list[str]:
        return [lesson.name for lesson in self.lessons]

    def count(self, section: str) -> int:
        return sum(1 for card in self.cards if card.section == section)

    def mark_builtin(self, is_builtin: bool = True) -> ParseResult:
        for card in self.cards:
            card.metadata.is_builtin = is_builtin
        return self


class LessonTextParser:
    """Parser and validator for lesson text."""

    MARKUP_PATTERN = re.compile(r"</?[a-z][\s\S]*?>", re.IGNORECASE)

    # Either a header or exactly one '=' with an optional trailing [note] per side
    LINE_PATTERN = re.compile(
        r"=== .+|[^=\[]+(?: \[[^\]]+\])?\s*=\s*[^=\[]+(?: \[[^\]]+\])?"
    )

    HEADER_PATTERN = re.compile(
        r"===\s*(?P<name>.*?)\s*"
        r"(?:#(?P<language>[^#]*)#)?\s*"
        r"(?:\[(?P<note>[^\]]*)\])?\s*"
    )

    NOTE_PATTERN = re.compile(r"\[(.*?)\]")

    # An '=' not enclosed in a [note]
    SEPARATOR_PATTERN = re.compile(r"=(?![^\[]*\])")

    def __init__(self, default_language: str = "en-GB"):
        self.default_language = default_language

    def parse(self, text: str, prior_cards: Iterable[Card] = ()) -> ParseResult:
        """
        Parse lesson text.

        Args:
            text: Raw lesson text
            prior_cards: Previously known cards whose history is carried forward

        Returns:
            ParseResult with lessons and cards

        Raises:
            HeaderFormatError: On a malformed section header
            LessonParseError: If any line was rejected (all errors attached)
        """
        prior = [card for card in prior_cards if card is not None]
        result = ParseResult()
        errors: list[LessonLineError] = []
        current: Lesson | None = None

        for line_number, raw in enumerate(text.split("\n"), 1):
            if not raw.strip():
                continue
            line = raw.rstrip("\r")

            if self.MARKUP_PATTERN.search(line):
                errors.append(MarkupRejectedError(line_number, line))
                continue

            if line.startswith(HEADER_PREFIX):
                lesson = self.parse_header(line, line_number)
                if not self.LINE_PATTERN.fullmatch(line):
                    errors.append(LineFormatError(line_number, line))
                    continue
                current = lesson
                result.lessons.append(lesson)
                continue

            if not self.LINE_PATTERN.fullmatch(line) or current is None:
                errors.append(LineFormatError(line_number, line))
                continue

            card = self._build_card(line, current, len(result.cards))
            if carry_forward(card, prior):
                logger.debug(f"Carried history forward for '{card.question}' ({card.section})")
            result.cards.append(card)

        if errors:
            logger.info(f"Lesson text rejected: {len(errors)} invalid line(s)")
            raise LessonParseError(errors)

        logger.debug(
            f"Parsed {len(result.lessons)} lessons, {len(result.cards)} cards"
        )
        return result

    def parse_header(self, line: str, line_number: int = 0) -> Lesson:
        """
        Parse a '===' section header line.

        Raises:
            HeaderFormatError: If the header has no name
        """
        match = self.HEADER_PATTERN.fullmatch(line)
        if not match or not match.group("name").strip():
            raise HeaderFormatError(line_number, line)

        language = (match.group("language") or "").strip()
        note = (match.group("note") or "").strip()

        return Lesson(
            name=match.group("name").strip(),
            language=language or self.default_language,
            note=note,
        )

    def _split_note(self, side: str) -> tuple[str, str]:
        """Separate '[note]' from one side of a card line."""
        match = self.NOTE_PATTERN.search(side)
        note = f"({match.group(1)})" if match else ""
        text = self.NOTE_PATTERN.sub("", side, count=1).strip()
        return text, note

    def _build_card(self, line: str, lesson: Lesson, position: int) -> Card:
        question_raw, answer_raw = (
            part.strip() for part in self.SEPARATOR_PATTERN.split(line, maxsplit=1)
        )
        question, question_note = self._split_note(question_raw)
        answer, answer_note = self._split_note(answer_raw)

        return Card(
            section=lesson.name,
            language=lesson.language,
            question=question,
            answer=answer,
            question_note=question_note,
            answer_note=answer_note,
            metadata=CardMetadata(id=position),
        )


def parse_lessons(
    text: str,
    prior_cards: Iterable[Card] = (),
    default_language: str = "en-GB",
) -> ParseResult:
    """Parse lesson text with a one-off parser."""
    return LessonTextParser(default_language).parse(text, prior_cards)
