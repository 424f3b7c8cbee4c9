from __future__ import annotations

import enum
import logging
import random
import sqlite3
from typing import Iterator, List, Sequence, Tuple

from .trigrams import TrigramFilter, TrigramStore
from .words import SENTINEL_ID

logger = logging.getLogger(__name__)

DEFAULT_MAX_PRODUCTIONS = 200


class Direction(enum.Enum):
    """Column order per mode: leading columns filter, the next one is produced."""

    FORWARD = ("word1", "word2", "word3")
    BACKWARD = ("word3", "word2", "word1")
    # Single-shot gap fill between two known words; the result does not chain.
    MIDDLE = ("word1", "word3", "word2")

    @property
    def columns(self) -> Tuple[str, str, str]:
        return self.value


def draw(
    store: TrigramStore,
    trigram_filter: TrigramFilter,
    select_column: str,
    rng: random.Random | None = None,
) -> int | None:
    """Pick one ``select_column`` value among matching rows, weighted by freq."""
    rng = rng or random
    total = store.total_freq_where(trigram_filter)
    if total <= 0:
        return None
    pick = rng.randint(1, total)
    return store.weighted_pick(trigram_filter, select_column, pick)


class ChainCursor(Iterator[int]):
    """Lazy, non-restartable sequence of word ids walked through the trigram table.

    The cursor keeps only a window of the last two produced (or seed) ids. An
    empty window starts from the phrase boundary sentinel. Store errors end the
    sequence instead of propagating.
    """

    def __init__(
        self,
        store: TrigramStore,
        direction: Direction,
        seed: Sequence[int] = (),
        *,
        rng: random.Random | None = None,
        max_productions: int = DEFAULT_MAX_PRODUCTIONS,
    ) -> None:
        self.store = store
        self.direction = direction
        self.window: List[int] = list(seed)[-2:] or [SENTINEL_ID]
        self.rng = rng or random
        self.max_productions = max_productions
        self.produced = 0
        self.exhausted = False

    def __iter__(self) -> "ChainCursor":
        return self

    def __next__(self) -> int:
        if self.exhausted:
            raise StopIteration
        word_id = self._advance()
        if word_id is None:
            self.exhausted = True
            raise StopIteration
        return word_id

    def current_filter(self) -> Tuple[TrigramFilter, str]:
        columns = self.direction.columns
        return TrigramFilter.from_columns(columns, self.window), columns[len(self.window)]

    def _advance(self) -> int | None:
        if self.produced >= self.max_productions:
            logger.warning(
                "Aborting long phrase, possible loop, current window: %s", self.window
            )
            return None
        self.produced += 1
        trigram_filter, select_column = self.current_filter()
        try:
            word_id = draw(self.store, trigram_filter, select_column, self.rng)
        except sqlite3.Error as exc:
            logger.warning("Ending early due to %s", exc)
            return None
        if word_id is None:
            return None
        self._push(word_id)
        return word_id

    def _push(self, word_id: int) -> None:
        self.window.append(word_id)
        del self.window[:-2]
