from __future__ import annotations

import logging
import random
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .completion import CompletionEngine, find_nearby, join_phrase, tokenize
from .db import WordsDatabase
from .errors import BazError
from .migration import Migrator
from .settings import BazSettings, load_settings
from .trigrams import TrigramStore
from .words import SENTINEL_SPELLING, WordStore

logger = logging.getLogger(__name__)

PLACEHOLDER = "_"
PROGRESS_EVERY = 1000


def check_line_encoding(encoding: str) -> None:
    """Files are split on raw newline bytes, so the codec must be ASCII-compatible."""
    try:
        newline = "\n".encode(encoding)
    except LookupError as exc:
        raise BazError(f"unknown encoding {encoding!r}") from exc
    if newline != b"\n":
        raise BazError(f"encoding {encoding!r} is not ASCII-compatible, re-encode the file first")


@dataclass(frozen=True)
class StoreSummary:
    path: str
    words: int | None
    phrases: int | None
    error: str | None = None

    def lines(self) -> List[str]:
        lines = [f"Summary of {self.path}"]
        lines.append(f"Words: {self.words}" if self.words is not None else f"Error counting words: {self.error}")
        lines.append(
            f"Phrases: {self.phrases}" if self.phrases is not None else f"Error counting phrases: {self.error}"
        )
        if self.error:
            lines.append("Migration may be necessary, is this a valid database?")
        return lines


class BazEngine:
    """Façade over the words database: ingestion, completion and diagnostics."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        settings: BazSettings | None = None,
        *,
        rng: random.Random | None = None,
        migrate: bool = True,
    ) -> None:
        self.settings = settings or load_settings()
        self.db = WordsDatabase(db_path or self.settings.words_path)
        self.migrator = Migrator(self.db)
        if migrate:
            self.migrate()
        self.words = WordStore(self.db)
        self.trigrams = TrigramStore(self.db)
        self.completion = CompletionEngine(
            self.words,
            self.trigrams,
            rng=rng,
            max_chain=self.settings.max_chain,
        )

    def close(self) -> None:
        self.db.close()

    def migrate(self) -> List[str]:
        """Bring the schema up to date; raises MigrationError on failure."""
        return self.migrator.migrate()

    # ------------------------------------------------------------------ #
    # Ingestion
    # ------------------------------------------------------------------ #
    def add_phrase(self, tokens: Sequence[str]) -> None:
        self.completion.add_phrase(tokens)

    def add_line(self, line: str) -> None:
        self.completion.add_phrase(tokenize(line))

    def read_file(self, path: str | Path, *, encoding: str = "utf-8") -> int:
        """Ingest one phrase per line inside a single transaction; returns lines added.

        Lines that cannot be decoded are skipped. A store error rolls back the
        whole file.
        """
        check_line_encoding(encoding)
        file_path = Path(path)
        lines = 0
        with file_path.open("rb") as handle, self.db.transaction():
            for line_no, raw in enumerate(handle, start=1):
                try:
                    line = raw.decode(encoding)
                except UnicodeDecodeError as exc:
                    logger.warning("skipping %s line %d: %s", file_path, line_no, exc)
                    continue
                self.add_line(line)
                lines += 1
                if lines % PROGRESS_EVERY == 0:
                    logger.debug("Added %d lines", lines)
        logger.info("Added %d lines from %s", lines, file_path)
        return lines

    # ------------------------------------------------------------------ #
    # Completion
    # ------------------------------------------------------------------ #
    def complete(self, prefix: Sequence[str]) -> str:
        return join_phrase(self.completion.complete(prefix))

    def complete_middle_out(self, prefix: Sequence[str]) -> str:
        return join_phrase(self.completion.complete_middle_out(prefix))

    def complete_nearby(self, contexts: Sequence[Sequence[str]]) -> str:
        return join_phrase(self.completion.complete_nearby(contexts))

    def complete_placeholder(self, tokens: Sequence[str], placeholder: str = PLACEHOLDER) -> str | None:
        """Complete around ``placeholder`` in ``tokens``; None if it is absent.

        With no tokens at all a brand-new phrase is generated.
        """
        if not tokens:
            contexts = [[SENTINEL_SPELLING]]
        else:
            contexts = find_nearby(placeholder, tokens)
        if not contexts:
            return None
        return self.complete_nearby(contexts)

    @staticmethod
    def find_nearby(target: str, tokens: Sequence[str]) -> List[List[str]]:
        return find_nearby(target, tokens)

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #
    def summary(self) -> StoreSummary:
        try:
            words = self.words.count()
            phrases = self.trigrams.count()
        except sqlite3.Error as exc:
            return StoreSummary(self.db.path, None, None, str(exc))
        return StoreSummary(self.db.path, words, phrases)
