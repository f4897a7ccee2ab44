"""
Card repository and lesson library.

CardRepository is the authoritative in-memory set of known cards, kept in two
explicitly tagged partitions (user-authored and built-in) and written back to
the state store after every mutation.

LessonLibrary ties the repository to the lesson text parser and the built-in
lesson loader: committing edited user text, opting into built-in lessons and
refreshing them.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from loguru import logger

from ..content.builtin import LessonTextSource, load_builtin_lessons
from ..content.models import Card
from ..content.normalizer import normalize_legacy_separators
from ..content.parser import LessonTextParser, ParseResult
from .state_store import BUILTIN_SELECTION_KEY, CARDS_KEY, RAW_TEXT_KEY, StateStore

DEFAULT_LESSON_TEXT = """=== Pozdravy
ahoj = hello
dobré ráno = good *morning*
dobrý večer = good *evening*
dobrý deň [doobeda] = good morning
dobrý deň [poobede] = good evening [from noon]

=== Rodina
rodina = family
mama = mother
otec = father"""


class Origin(str, Enum):
    """Where a card comes from."""

    USER = "user"
    BUILTIN = "builtin"


# =============================================================================
# Card Repository
# =============================================================================


class CardRepository:
    """
    All cards the application knows about.

    Features:
    - User and built-in partitions, replaced wholesale and never interleaved
    - Flat view is always user cards followed by built-in cards
    - Identity by content key (section, question, answer)
    """

    def __init__(self, store: StateStore):
        self.store = store
        self._partitions: dict[Origin, list[Card]] = {
            Origin.USER: [],
            Origin.BUILTIN: [],
        }

    def __len__(self) -> int:
        return sum(len(cards) for cards in self._partitions.values())

    def load(self) -> int:
        """
        Load cards from the state store.

        Returns:
            Number of cards loaded
        """
        for cards in self._partitions.values():
            cards.clear()

        raw_cards = self.store.get_json(CARDS_KEY, default=[]) or []
        for data in raw_cards:
            if data is None:
                continue
            try:
                card = Card.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid stored card: {e}")
                continue
            self._partitions[self._origin_of(card)].append(card)

        logger.info(
            f"CardRepository loaded: {len(self.partition(Origin.USER))} user, "
            f"{len(self.partition(Origin.BUILTIN))} built-in cards"
        )
        return len(self)

    def save(self) -> None:
        """Write all cards back to the state store."""
        self.store.set_json(CARDS_KEY, [card.to_dict() for card in self.all()])

    @staticmethod
    def _origin_of(card: Card) -> Origin:
        return Origin.BUILTIN if card.metadata.is_builtin else Origin.USER

    # =========================================================================
    # Queries
    # =========================================================================

    def all(self) -> list[Card]:
        """Flat view: user partition, then built-in partition."""
        return self._partitions[Origin.USER] + self._partitions[Origin.BUILTIN]

    def partition(self, origin: Origin) -> list[Card]:
        return list(self._partitions[origin])

    def sections(self, origin: Origin | None = None) -> list[str]:
        """Distinct section names in first-seen order."""
        cards = self.all() if origin is None else self._partitions[origin]
        return list(dict.fromkeys(card.section for card in cards))

    def count(self, section: str) -> int:
        return sum(1 for card in self.all() if card.section == section)

    def in_sections(self, sections: Iterable[str]) -> list[Card]:
        wanted = set(sections)
        return [card for card in self.all() if card.section in wanted]

    def find(self, key: str) -> Card | None:
        for card in self.all():
            if card.key == key:
                return card
        return None

    # =========================================================================
    # Mutations
    # =========================================================================

    def replace_partition(self, origin: Origin, cards: Iterable[Card]) -> None:
        """
        Replace every card of one origin. The other partition is untouched.

        Args:
            origin: Partition to replace
            cards: New cards (their is_builtin flag is set to match origin)
        """
        new_cards = list(cards)
        for card in new_cards:
            card.metadata.is_builtin = origin is Origin.BUILTIN

        self._partitions[origin] = new_cards
        self.save()
        logger.info(f"Replaced {origin.value} partition with {len(new_cards)} cards")

    def update(self, card: Card) -> bool:
        """
        Persist the review state of a card.

        The stored card that is this very object is replaced. Cards loaded
        elsewhere fall back to the first stored card with the same content
        key in the card's partition. Returns False if no such card is stored.
        """
        cards = self._partitions[self._origin_of(card)]

        index = next((i for i, stored in enumerate(cards) if stored is card), None)
        if index is None:
            key = card.key
            index = next((i for i, stored in enumerate(cards) if stored.key == key), None)

        if index is not None:
            cards[index] = card
            self.save()
            return True

        logger.warning(f"Card not in repository, review not persisted: '{card.question}'")
        return False


# =============================================================================
# Lesson Library
# =============================================================================


class LessonLibrary:
    """Imports user lesson text and built-in lessons into a repository."""

    def __init__(
        self,
        store: StateStore,
        repository: CardRepository,
        parser: LessonTextParser,
        source: LessonTextSource | None = None,
        manifest: str = "files.txt",
    ):
        """
        Initialize the library.

        Args:
            store: State store holding raw text and built-in selection
            repository: Loaded card repository
            parser: Lesson text parser
            source: Built-in lesson source (built-in operations need one)
            manifest: Built-in manifest file name
        """
        self.store = store
        self.repository = repository
        self.parser = parser
        self.source = source
        self.manifest = manifest

    # =========================================================================
    # User Lessons
    # =========================================================================

    def load_user_text(self) -> str:
        """
        Load the stored user lesson text, normalizing legacy separators.

        A normalized text that differs from the stored one is written back.
        Without stored text the sample lessons are returned.
        """
        stored = self.store.get(RAW_TEXT_KEY)
        raw = stored if stored is not None else DEFAULT_LESSON_TEXT
        normalized = normalize_legacy_separators(raw)

        if stored is not None and normalized != stored:
            logger.warning("Converted legacy ';' separators in stored lesson text")
            self.store.set(RAW_TEXT_KEY, normalized)

        return normalized

    def commit_user_text(self, text: str) -> ParseResult:
        """
        Parse and commit user lesson text.

        On any parse error nothing is stored and the repository is untouched.

        Raises:
            LessonParseError: If lines were rejected
            HeaderFormatError: On a malformed section header
        """
        result = self.parser.parse(text, self.repository.all())
        result.mark_builtin(False)

        self.store.set(RAW_TEXT_KEY, text)
        self.repository.replace_partition(Origin.USER, result.cards)

        logger.info(
            f"Committed user text: {len(result.lessons)} lessons, {len(result.cards)} cards"
        )
        return result

    def bootstrap(self) -> None:
        """Import the stored (or sample) user text if no cards are known yet."""
        if len(self.repository) == 0:
            self.commit_user_text(self.load_user_text())

    # =========================================================================
    # Built-in Lessons
    # =========================================================================

    def selected_builtin(self) -> list[str]:
        return list(self.store.get_json(BUILTIN_SELECTION_KEY, default=[]) or [])

    async def fetch_builtin(self) -> ParseResult:
        """
        Fetch and parse all built-in lessons.

        Raises:
            FetchError: If the manifest or a lesson file is unavailable
        """
        if self.source is None:
            raise RuntimeError("No built-in lesson source configured")

        return await load_builtin_lessons(
            self.source,
            self.parser,
            prior_cards=self.repository.all(),
            manifest=self.manifest,
        )

    async def activate_builtin(
        self,
        sections: Iterable[str],
        available: ParseResult | None = None,
    ) -> list[Card]:
        """
        Opt into built-in sections, replacing the built-in partition.

        Args:
            sections: Built-in section names to include
            available: Already fetched built-in lessons (fetched if None)

        Returns:
            Built-in cards now in the repository
        """
        selected = list(dict.fromkeys(sections))
        if available is None:
            available = await self.fetch_builtin()

        wanted = set(selected)
        cards = [card for card in available.cards if card.section in wanted]

        self.store.set_json(BUILTIN_SELECTION_KEY, selected)
        self.repository.replace_partition(Origin.BUILTIN, cards)
        return cards

    async def refresh_builtin(self) -> list[Card]:
        """Re-apply the stored built-in selection with freshly fetched lessons."""
        selected = self.selected_builtin()
        if not selected:
            self.repository.replace_partition(Origin.BUILTIN, [])
            return []
        return await self.activate_builtin(selected)
