"""
Content: lesson text parsing, history merging and built-in lessons.

Core modules:
- models: Lesson, Card, CardMetadata, Rating
- normalizer: legacy ';' separator rewrite
- parser: lesson text -> lessons + cards
- merger: carry review history across re-imports
- builtin: manifest-driven built-in lesson loading
"""

from .builtin import (
    DirectoryLessonSource,
    HttpLessonSource,
    load_builtin_lessons,
    make_source,
    parse_manifest,
)
from .merger import carry_forward, find_prior
from .models import Card, CardMetadata, Lesson, Rating, content_key
from .normalizer import normalize_legacy_separators
from .parser import LessonTextParser, ParseResult, parse_lessons

__all__ = [
    # Records
    "Lesson",
    "Card",
    "CardMetadata",
    "Rating",
    "content_key",
    # Parsing
    "LessonTextParser",
    "ParseResult",
    "parse_lessons",
    "normalize_legacy_separators",
    # History
    "find_prior",
    "carry_forward",
    # Built-in lessons
    "HttpLessonSource",
    "DirectoryLessonSource",
    "load_builtin_lessons",
    "make_source",
    "parse_manifest",
]
