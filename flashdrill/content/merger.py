"""
History merging for re-imported cards.

A freshly parsed card inherits the review state of the first previously known
card with the same (section, question, answer). Any edit to the question or
answer text makes it a new card with fresh history.
"""
from __future__ import annotations

from collections.abc import Iterable

from .models import Card, CardMetadata


def same_content(a: Card, b: Card) -> bool:
    return a.section == b.section and a.question == b.question and a.answer == b.answer


def find_prior(candidate: Card, existing_cards: Iterable[Card]) -> CardMetadata | None:
    """
    Find the metadata of the first existing card matching the candidate.

    Args:
        candidate: Newly parsed card
        existing_cards: Previously known cards, scanned in order

    Returns:
        Metadata of the first match, or None
    """
    for card in existing_cards:
        if card is not None and same_content(card, candidate):
            return card.metadata
    return None


def carry_forward(candidate: Card, existing_cards: Iterable[Card]) -> bool:
    """
    Copy last rating and score from a prior card onto the candidate.

    id and is_builtin are never copied; they belong to the current operation.

    Returns:
        True if a prior card was found
    """
    prior = find_prior(candidate, existing_cards)
    if prior is None:
        return False

    candidate.metadata.last_rating = prior.last_rating
    candidate.metadata.score = prior.score
    return True
