from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from .db import WordsDatabase

WORD_COLUMNS: Tuple[str, str, str] = ("word1", "word2", "word3")


@dataclass(frozen=True)
class TrigramFilter:
    """Equality filter over 0-3 of the phrase position columns."""

    word1: int | None = None
    word2: int | None = None
    word3: int | None = None

    @classmethod
    def from_columns(cls, columns: Sequence[str], values: Sequence[int]) -> "TrigramFilter":
        """Bind ``values`` to ``columns`` pairwise; extra columns stay unbound."""
        bound = {}
        for column, value in zip(columns, values):
            if column not in WORD_COLUMNS:
                raise ValueError(f"unknown phrase column {column!r}")
            bound[column] = value
        return cls(**bound)

    @property
    def bound(self) -> List[Tuple[str, int]]:
        return [
            (column, getattr(self, column))
            for column in WORD_COLUMNS
            if getattr(self, column) is not None
        ]

    def where_clause(self) -> Tuple[str, List[int]]:
        bound = self.bound
        if not bound:
            return "", []
        clause = " and ".join(f"{column} = ?" for column, _ in bound)
        return f"where {clause}", [value for _, value in bound]


class TrigramStore:
    """Frequency table of observed (word1, word2, word3) triples."""

    def __init__(self, db: WordsDatabase) -> None:
        self.db = db

    # ------------------------------------------------------------------ #
    # Ingestion
    # ------------------------------------------------------------------ #
    def increment(self, word1: int, word2: int, word3: int) -> None:
        self.db.execute(
            """
            insert into phrases (word1, word2, word3, freq)
            values (?, ?, ?, 1)
            on conflict (word1, word2, word3) do update
            set freq = freq + 1
            """,
            (word1, word2, word3),
        )

    def add_ids(self, word_ids: Sequence[int]) -> int:
        """Increment every consecutive 3-id window; returns the number of windows."""
        windows = 0
        for idx in range(len(word_ids) - 2):
            self.increment(word_ids[idx], word_ids[idx + 1], word_ids[idx + 2])
            windows += 1
        return windows

    # ------------------------------------------------------------------ #
    # Retrieval
    # ------------------------------------------------------------------ #
    def freq(self, word1: int, word2: int, word3: int) -> int:
        value = self.db.query_value(
            "select freq from phrases where word1 = ? and word2 = ? and word3 = ?",
            (word1, word2, word3),
            default=0,
        )
        return int(value)

    def total_freq_where(self, trigram_filter: TrigramFilter) -> int:
        where, values = trigram_filter.where_clause()
        total = self.db.query_value(
            f"select coalesce(sum(freq), 0) from phrases {where}", values, default=0
        )
        return int(total)

    def candidates(self, trigram_filter: TrigramFilter, select_column: str) -> Iterator[Tuple[int, int]]:
        """Yield (freq, word id) for matching rows in the order roulette picks walk them."""
        if select_column not in WORD_COLUMNS:
            raise ValueError(f"unknown phrase column {select_column!r}")
        where, values = trigram_filter.where_clause()
        # Summing per word in SQL was measured slower than walking the raw rows.
        sql = f"select freq, {select_column} from phrases {where}"
        for row in self.db.iter_rows(sql, values):
            yield int(row[0]), int(row[1])

    def weighted_pick(
        self,
        trigram_filter: TrigramFilter,
        select_column: str,
        pick: int,
    ) -> int | None:
        """Roulette-wheel selection: ``pick`` must lie in [1, total_freq_where(filter)]."""
        remaining = pick
        for freq, word_id in self.candidates(trigram_filter, select_column):
            remaining -= freq
            if remaining <= 0:
                return word_id
        return None

    def pair_support(self, word1: int, word2: int) -> int:
        """Summed freq of the pair appearing as the leading or trailing two positions."""
        value = self.db.query_value(
            """
            select coalesce(sum(freq), 0) from phrases
            where (word1 = ? and word2 = ?) or (word2 = ? and word3 = ?)
            """,
            (word1, word2, word1, word2),
            default=0,
        )
        return int(value)

    def count(self) -> int:
        return int(self.db.query_value("select count(*) from phrases", default=0))
