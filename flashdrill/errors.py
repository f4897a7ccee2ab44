"""
Error types for flashdrill.

Line-level errors (LineFormatError, MarkupRejectedError) are collected while
parsing and reported together through LessonParseError. HeaderFormatError
aborts a parse immediately.
"""
from __future__ import annotations


class FlashdrillError(Exception):
    """Base class for all flashdrill errors."""
    pass


# =============================================================================
# Lesson Text
# =============================================================================


class LessonLineError(FlashdrillError):
    """A single rejected line of lesson text."""

    reason = "Invalid line format."

    def __init__(self, line_number: int, raw_line: str):
        self.line_number = line_number
        self.raw_line = raw_line
        super().__init__(f"line {line_number}: {raw_line!r} ({self.reason})")


class LineFormatError(LessonLineError):
    """Line does not match the lesson text grammar."""

    reason = "Invalid line format."


class MarkupRejectedError(LessonLineError):
    """Line contains tag-like markup."""

    reason = "Markup tags are not allowed."


class HeaderFormatError(LessonLineError):
    """Malformed '===' section header. Fatal for the whole parse."""

    reason = "Invalid section header."


class LessonParseError(FlashdrillError):
    """Raised when one or more lines of lesson text were rejected."""

    def __init__(self, errors: list[LessonLineError]):
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} invalid line(s) in lesson text")


# =============================================================================
# Built-in Lessons
# =============================================================================


class FetchError(FlashdrillError):
    """Built-in lesson content could not be fetched."""

    def __init__(self, name: str, detail: str = ""):
        self.name = name
        message = f"Failed to fetch {name}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


# =============================================================================
# Review
# =============================================================================


class EmptyDeckError(FlashdrillError):
    """A rating was applied to an empty deck."""
    pass


class ReviewStateError(FlashdrillError):
    """Review step called out of order (e.g. rating before reveal)."""
    pass
