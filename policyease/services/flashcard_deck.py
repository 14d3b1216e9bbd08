from dataclasses import dataclass, field
from typing import Optional, Sequence

from policyease.agent.schemas.analysis import Flashcard
from policyease.agent.schemas.requests import OutputLanguage
from policyease.i18n import t


@dataclass
class FlashcardDeck:
    """
    Navigation state for studying the flashcards of an analysis.

    Moving to another card always shows its question side first; navigation wraps
    around at both ends.
    """

    cards: Sequence[Flashcard]
    index: int = 0
    flipped: bool = field(default=False)

    @property
    def current(self) -> Optional[Flashcard]:
        if not self.cards:
            return None
        return self.cards[self.index]

    def next(self) -> Optional[Flashcard]:
        if self.cards:
            self.flipped = False
            self.index = (self.index + 1) % len(self.cards)
        return self.current

    def prev(self) -> Optional[Flashcard]:
        if self.cards:
            self.flipped = False
            self.index = (self.index - 1 + len(self.cards)) % len(self.cards)
        return self.current

    def flip(self) -> bool:
        if self.cards:
            self.flipped = not self.flipped
        return self.flipped

    def label(self, language: OutputLanguage) -> str:
        if not self.cards:
            return t(language, "flashcards.empty")
        return t(language, "flashcards.count", current=self.index + 1, total=len(self.cards))
