"""
Review session state.

One card goes through:

    QUESTION_HIDDEN -> QUESTION_SHOWN -> ANSWER_SHOWN -> (rated) -> QUESTION_HIDDEN

where the last step already belongs to the next head of the deck. Calls out
of that order raise ReviewStateError.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from ..content.models import Card, Rating
from ..errors import EmptyDeckError, ReviewStateError
from .card_store import CardRepository
from .scheduler import ScoreScheduler


class ReviewPhase(str, Enum):
    QUESTION_HIDDEN = "question_hidden"
    QUESTION_SHOWN = "question_shown"
    ANSWER_SHOWN = "answer_shown"


@dataclass
class ReviewSession:
    """A training session over a deck built from selected sections."""

    repository: CardRepository
    scheduler: ScoreScheduler = field(default_factory=ScoreScheduler)
    deck: list[Card] = field(default_factory=list)
    sections: list[str] = field(default_factory=list)
    phase: ReviewPhase = ReviewPhase.QUESTION_HIDDEN
    reviews: int = 0

    @classmethod
    def start(
        cls,
        repository: CardRepository,
        sections: Iterable[str],
        scheduler: ScoreScheduler | None = None,
    ) -> ReviewSession:
        """Build a fresh deck for the given sections."""
        scheduler = scheduler or ScoreScheduler()
        sections = list(sections)
        deck = scheduler.build_deck(sections, repository.all())

        logger.info(f"Session started: {len(deck)} cards in {len(sections)} sections")
        return cls(repository=repository, scheduler=scheduler, deck=deck, sections=sections)

    @property
    def is_finished(self) -> bool:
        return not self.deck

    @property
    def current(self) -> Card:
        if not self.deck:
            raise EmptyDeckError("Deck is empty")
        return self.deck[0]

    def show_question(self) -> Card:
        if self.phase is not ReviewPhase.QUESTION_HIDDEN:
            raise ReviewStateError(f"Cannot show question in phase {self.phase.value}")
        card = self.current
        self.phase = ReviewPhase.QUESTION_SHOWN
        return card

    def reveal_answer(self) -> Card:
        if self.phase is not ReviewPhase.QUESTION_SHOWN:
            raise ReviewStateError(f"Cannot reveal answer in phase {self.phase.value}")
        self.phase = ReviewPhase.ANSWER_SHOWN
        return self.current

    def rate(self, rating: Rating | int) -> Card:
        """
        Rate the current card, persist it and advance to the next head.

        Returns:
            The rated card
        """
        if self.phase is not ReviewPhase.ANSWER_SHOWN:
            raise ReviewStateError(f"Cannot rate in phase {self.phase.value}")

        card = self.current
        self.scheduler.apply_rating(self.deck, rating, self.repository)
        self.reviews += 1
        self.phase = ReviewPhase.QUESTION_HIDDEN
        return card


# =============================================================================
# Progress helpers
# =============================================================================

BREAKDOWN_KEYS: tuple[int | None, ...] = (None, 0, 50, 100)


def rating_breakdown(cards: Iterable[Card]) -> dict[int | None, float]:
    """
    Percentage of cards per last rating.

    Keys are None (never reviewed), 0, 50 and 100; all are always present.
    """
    counts = Counter(
        int(c.metadata.last_rating) if c.metadata.last_rating is not None else None
        for c in cards
    )
    total = sum(counts.values())
    if total == 0:
        return {key: 0.0 for key in BREAKDOWN_KEYS}
    return {key: round(counts.get(key, 0) / total * 100, 2) for key in BREAKDOWN_KEYS}


def rating_band(last_rating: int | None) -> str:
    """Display color for a card's last rating."""
    if last_rating is None:
        return "grey"
    if last_rating <= 34:
        return "red"
    if last_rating >= 65:
        return "green"
    return "orange"
