from __future__ import annotations

import logging
import random
import sqlite3
from typing import Iterable, List, Sequence

from .cursor import DEFAULT_MAX_PRODUCTIONS, ChainCursor, Direction, draw
from .trigrams import TrigramFilter, TrigramStore
from .words import SENTINEL_ID, SENTINEL_SPELLING, WordStore

logger = logging.getLogger(__name__)


def tokenize(text: str) -> List[str]:
    """Split on whitespace; boundary sentinels are added at ingestion time."""
    return text.split()


def find_nearby(target: str, tokens: Sequence[str]) -> List[List[str]]:
    """Locate ``target`` and return the word pairs just before and after it.

    Matching is a case-insensitive prefix match, so "baz" also matches "Bazzy,".
    The token sequence is framed by sentinels, which is how an empty spelling
    can appear inside a returned pair. Returns:
        * ``[]`` when the target is not found,
        * ``[[""]]`` when it is found but no surrounding pair exists,
        * otherwise one or two pairs (before first).
    """
    needle = target.lower()
    framed = [SENTINEL_SPELLING, *tokens, SENTINEL_SPELLING]
    pos = next(
        (idx for idx, token in enumerate(framed) if token.lower().startswith(needle)),
        None,
    )
    if pos is None:
        return []
    found: List[List[str]] = []
    if pos > 1:
        found.append([framed[pos - 2], framed[pos - 1]])
    if pos < len(framed) - 2:
        found.append([framed[pos + 1], framed[pos + 2]])
    if not found:
        found.append([SENTINEL_SPELLING])
    return found


def join_phrase(*phrases: Iterable[str]) -> str:
    """Join word lists with single spaces, dropping sentinel spellings."""
    return " ".join(word for phrase in phrases for word in phrase if word)


class CompletionEngine:
    """Drives chain cursors over the trigram table to build phrases."""

    def __init__(
        self,
        words: WordStore,
        trigrams: TrigramStore,
        *,
        rng: random.Random | None = None,
        max_chain: int = DEFAULT_MAX_PRODUCTIONS,
    ) -> None:
        self.words = words
        self.trigrams = trigrams
        self.rng = rng or random.Random()
        self.max_chain = max_chain

    # ------------------------------------------------------------------ #
    # Cursors
    # ------------------------------------------------------------------ #
    def cursor(self, direction: Direction, seed: Sequence[int] = ()) -> ChainCursor:
        return ChainCursor(
            self.trigrams,
            direction,
            seed,
            rng=self.rng,
            max_productions=self.max_chain,
        )

    def forward(self, seed: Sequence[int] = ()) -> ChainCursor:
        return self.cursor(Direction.FORWARD, seed)

    def backward(self, seed: Sequence[int] = ()) -> ChainCursor:
        return self.cursor(Direction.BACKWARD, seed)

    def middle(self, seed: Sequence[int]) -> ChainCursor:
        return self.cursor(Direction.MIDDLE, seed)

    # ------------------------------------------------------------------ #
    # Word resolution
    # ------------------------------------------------------------------ #
    def _resolve(self, token: str) -> int | None:
        try:
            word_id = self.words.lookup_id(token)
        except sqlite3.Error as exc:
            logger.error("ignoring an error looking up %r: %s", token, exc)
            return None
        if word_id is None:
            logger.warning("ignoring unknown word %r", token)
        return word_id

    def resolve_ids(self, tokens: Iterable[str]) -> List[int]:
        """Known tokens to ids; unknown tokens are dropped. Never adds words."""
        ids: List[int] = []
        for token in tokens:
            word_id = self._resolve(token)
            if word_id is not None:
                ids.append(word_id)
        return ids

    def spellings(self, word_ids: Iterable[int]) -> List[str]:
        """Map ids back to spellings, silently dropping stale ids."""
        result: List[str] = []
        for word_id in word_ids:
            try:
                spelling = self.words.spelling_of(word_id)
            except sqlite3.Error as exc:
                logger.error("ignoring an error spelling word %s: %s", word_id, exc)
                continue
            if spelling is not None:
                result.append(spelling)
        return result

    # ------------------------------------------------------------------ #
    # Completion
    # ------------------------------------------------------------------ #
    def complete(self, prefix_tokens: Sequence[str]) -> List[str]:
        """Continue after the known words of ``prefix_tokens`` (continuation only)."""
        prefix_ids = self.resolve_ids(prefix_tokens)
        return self.spellings(self.forward(prefix_ids[-2:]))

    def complete_and_map(self, prefix_ids: Sequence[int]) -> List[str]:
        """Spell ``prefix_ids`` followed by a forward continuation of its last two ids."""
        prefix = list(prefix_ids)
        continuation = list(self.forward(prefix[-2:]))
        return self.spellings(prefix + continuation)

    def _extend_backward(self, sequence: Sequence[int]) -> List[int]:
        """Prepend a backward walk seeded by the first two ids of ``sequence``."""
        back_seed = list(reversed(sequence[:2]))
        back_words = list(self.backward(back_seed))
        return list(reversed(back_words)) + list(sequence)

    def complete_middle_out(self, prefix: Sequence[str]) -> List[str]:
        """Fill the gap between ``prefix[0]`` and ``prefix[2]``, then grow both ways.

        ``prefix`` holds up to three slots: [before, match, after]; the match slot
        is ignored. Falls back to a brand-new phrase when no connector exists.
        """
        logger.debug("complete middle out prefix: %s", list(prefix))
        first = self._resolve(prefix[0]) if len(prefix) > 0 else None
        last = self._resolve(prefix[2]) if len(prefix) > 2 else None
        middle = self._fill_gap(first, last)
        if middle is None:
            logger.debug("No middle out match for %s, start new phrase", list(prefix))
            return self.complete_and_map([SENTINEL_ID])
        seed = [word_id for word_id in (first, middle, last) if word_id is not None]
        return self.complete_and_map(self._extend_backward(seed))

    def _fill_gap(self, first: int | None, last: int | None) -> int | None:
        if first is None and last is None:
            return None
        if first is not None and last is not None:
            return next(self.middle([first, last]), None)
        # One endpoint: bind it in its own column and draw the word between.
        gap = TrigramFilter(word1=first, word3=last)
        try:
            return draw(self.trigrams, gap, "word2", self.rng)
        except sqlite3.Error as exc:
            logger.warning("Ending early due to %s", exc)
            return None

    # ------------------------------------------------------------------ #
    # Priming from nearby context
    # ------------------------------------------------------------------ #
    def _support(self, ids: Sequence[int]) -> int:
        if len(ids) == 2:
            try:
                return self.trigrams.pair_support(ids[0], ids[1])
            except sqlite3.Error as exc:
                logger.error("ignoring an error counting %s: %s", list(ids), exc)
                return 0
        if len(ids) == 1:
            # Uncounted, but still eligible.
            return 1
        return 0

    def prime_from_nearby(self, contexts: Sequence[Sequence[str]]) -> List[int]:
        """Choose one context pair, weighted by corpus support, as resolved ids.

        Falls back to ``[SENTINEL_ID]`` when no candidate has positive support.
        """
        # TODO: resolved pairs score by corpus freq while singletons get a flat 1;
        # the scales differ and favour sparse contexts on small corpora.
        scored: List[tuple[int, List[int]]] = []
        total = 0
        for context in contexts:
            ids = self.resolve_ids(context)
            score = self._support(ids)
            if score > 0:
                scored.append((score, ids))
                total += score
        if total > 0:
            pick = self.rng.randint(1, total)
            for score, ids in scored:
                pick -= score
                if pick <= 0:
                    return ids
        return [SENTINEL_ID]

    def complete_nearby(self, contexts: Sequence[Sequence[str]]) -> List[str]:
        """Prime from ``contexts`` (see ``find_nearby``) and grow a phrase around it."""
        primer = self.prime_from_nearby(contexts)
        if primer[0] == SENTINEL_ID:
            return self.complete_and_map(primer)
        return self.complete_and_map(self._extend_backward(primer))

    # ------------------------------------------------------------------ #
    # Ingestion
    # ------------------------------------------------------------------ #
    def add_phrase(self, tokens: Sequence[str]) -> int:
        """Intern ``tokens`` and count every sentinel-padded trigram; returns windows added."""
        with self.words.db.transaction():
            word_ids = [SENTINEL_ID]
            word_ids.extend(self.words.get_or_create_id(token) for token in tokens)
            word_ids.append(SENTINEL_ID)
            return self.trigrams.add_ids(word_ids)
