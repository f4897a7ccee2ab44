"""
Score-based review scheduler.

Implements:
- Deck construction: weakest cards (lowest score) first, ties shuffled
- Score update: weighted moving average, latest rating counts twice
- Re-insertion: reviewed card returns before the first stronger card,
  but never sooner than a minimum gap

Rating scale:
0   - Fail
50  - Partial recall
100 - Good recall

New cards start at score 1, so they surface before well-known cards.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable
from dataclasses import dataclass
from itertools import groupby
from typing import TYPE_CHECKING

from loguru import logger

from ..content.models import Card, Rating
from ..errors import EmptyDeckError

if TYPE_CHECKING:
    from .card_store import CardRepository


def round2(value: float) -> float:
    """Round half up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


@dataclass
class SchedulerConfig:
    """Configuration for the score scheduler."""

    min_gap: int = 3  # Cards shown before a reviewed card comes back
    rating_weight: int = 2  # Weight of the latest rating vs. accumulated score


class ScoreScheduler:
    """
    Orders cards by mastery score and re-inserts reviewed cards.

    Each card carries a score in roughly [0, 100]:
    - Lower score = weaker mastery = shown sooner
    - Updated after every rating as (score + 2 * rating) / 3
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize the scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
            rng: Random source for tie shuffling (module random if None)
        """
        self.config = config or SchedulerConfig()
        self.rng = rng or random.Random()

    def build_deck(self, selected_sections: Iterable[str], cards: Iterable[Card]) -> list[Card]:
        """
        Build a training deck.

        Args:
            selected_sections: Sections to train
            cards: All known cards

        Returns:
            Cards of the selected sections, ascending by score, equal scores shuffled
        """
        wanted = set(selected_sections)
        chosen = sorted((c for c in cards if c.section in wanted), key=lambda c: c.score)

        deck: list[Card] = []
        for _, group in groupby(chosen, key=lambda c: c.score):
            tied = list(group)
            self.rng.shuffle(tied)
            deck.extend(tied)

        logger.debug(f"Deck built: {len(deck)} cards from {len(wanted)} sections")
        return deck

    def next_score(self, score: float, rating: Rating | int) -> float:
        """Weighted moving average of the old score and the new rating."""
        weight = self.config.rating_weight
        return round2((score + weight * int(rating)) / (weight + 1))

    def insert_position(self, deck: list[Card], score: float) -> int:
        """
        Where a card with the given score goes back into the deck.

        Before the first card with a strictly greater score, clamped to
        [min_gap, len(deck)].
        """
        position = next(
            (i for i, card in enumerate(deck) if card.score > score),
            len(deck),
        )
        position = max(position, self.config.min_gap)
        return min(position, len(deck))

    def apply_rating(
        self,
        deck: list[Card],
        rating: Rating | int,
        repository: CardRepository | None = None,
    ) -> list[Card]:
        """
        Rate the head card of the deck and re-insert it.

        Args:
            deck: Current deck; its head is the reviewed card (mutated in place)
            rating: User rating
            repository: Repository to persist the card to (optional)

        Returns:
            The same deck, with the reviewed card re-inserted

        Raises:
            EmptyDeckError: If the deck is empty
        """
        if not deck:
            raise EmptyDeckError("No card to rate")

        rating = Rating(rating)
        card = deck.pop(0)
        old_score = card.metadata.score

        card.metadata.last_rating = rating
        card.metadata.score = self.next_score(old_score, rating)

        if repository is not None:
            repository.update(card)

        position = self.insert_position(deck, card.metadata.score)
        deck.insert(position, card)

        logger.debug(
            f"Rated '{card.question}': {rating.name} score {old_score} -> "
            f"{card.metadata.score}, reinserted at {position}/{len(deck)}"
        )
        return deck


# =============================================================================
# Module-level helpers
# =============================================================================

_default_scheduler = ScoreScheduler()


def build_deck(selected_sections: Iterable[str], cards: Iterable[Card]) -> list[Card]:
    return _default_scheduler.build_deck(selected_sections, cards)


def apply_rating(
    deck: list[Card],
    rating: Rating | int,
    repository: CardRepository | None = None,
) -> list[Card]:
    return _default_scheduler.apply_rating(deck, rating, repository)
