"""
Lesson and card records.

Cards serialize to the camelCase JSON layout kept in the state store:

    {"section": ..., "language": ..., "question": ..., "answer": ...,
     "questionNote": ..., "answerNote": ...,
     "metadata": {"id": 0, "lastRating": null, "score": 1, "isBuiltIn": false}}
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import IntEnum

DEFAULT_SCORE = 1.0


class Rating(IntEnum):
    """User feedback on recall quality."""

    FAIL = 0
    PARTIAL = 50
    GOOD = 100


def content_key(section: str, question: str, answer: str) -> str:
    """Stable identity of a card across re-imports."""
    raw = "\x1f".join((section, question, answer))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Lesson:
    """A named group of cards sharing a topic and language."""

    name: str
    language: str
    note: str = ""


@dataclass
class CardMetadata:
    """Review state of a card."""

    id: int = 0
    last_rating: Rating | None = None
    score: float = DEFAULT_SCORE
    is_builtin: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> CardMetadata:
        last_rating = data.get("lastRating")
        score = data.get("score")
        return cls(
            id=int(data.get("id", 0)),
            last_rating=Rating(last_rating) if last_rating is not None else None,
            score=float(score) if score is not None else DEFAULT_SCORE,
            is_builtin=bool(data.get("isBuiltIn", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lastRating": int(self.last_rating) if self.last_rating is not None else None,
            "score": self.score,
            "isBuiltIn": self.is_builtin,
        }


@dataclass
class Card:
    """
    One question/answer pair plus review metadata.

    ``metadata.id`` is the card's position within the parse that produced it
    and is only used for display. Storage identity is ``key``, derived from
    (section, question, answer).
    """

    section: str
    language: str
    question: str
    answer: str
    question_note: str = ""
    answer_note: str = ""
    metadata: CardMetadata = field(default_factory=CardMetadata)

    @property
    def key(self) -> str:
        return content_key(self.section, self.question, self.answer)

    @property
    def score(self) -> float:
        return self.metadata.score

    @classmethod
    def from_dict(cls, data: dict) -> Card:
        """
        Create a Card from its stored dictionary form.

        Args:
            data: Dictionary from the state store

        Returns:
            Card instance
        """
        return cls(
            section=data["section"],
            language=data.get("language", ""),
            question=data["question"],
            answer=data["answer"],
            question_note=data.get("questionNote", ""),
            answer_note=data.get("answerNote", ""),
            metadata=CardMetadata.from_dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "section": self.section,
            "language": self.language,
            "question": self.question,
            "answer": self.answer,
            "questionNote": self.question_note,
            "answerNote": self.answer_note,
            "metadata": self.metadata.to_dict(),
        }
