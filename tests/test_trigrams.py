from __future__ import annotations

import unittest

from bazbot.db import WordsDatabase
from bazbot.migration import Migrator
from bazbot.trigrams import TrigramFilter, TrigramStore
from bazbot.words import WordStore


class TrigramFilterTests(unittest.TestCase):
    def test_empty_filter_has_no_where_clause(self) -> None:
        self.assertEqual(TrigramFilter().where_clause(), ("", []))

    def test_where_clause_follows_column_order(self) -> None:
        clause, values = TrigramFilter(word3=7, word1=5).where_clause()
        self.assertEqual(clause, "where word1 = ? and word3 = ?")
        self.assertEqual(values, [5, 7])

    def test_from_columns_binds_pairwise(self) -> None:
        built = TrigramFilter.from_columns(("word3", "word2", "word1"), [4, 9])
        self.assertEqual(built, TrigramFilter(word2=9, word3=4))

    def test_from_columns_rejects_unknown_column(self) -> None:
        with self.assertRaises(ValueError):
            TrigramFilter.from_columns(("freq",), [1])


class TrigramStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = WordsDatabase(":memory:")
        Migrator(self.db).migrate()
        self.words = WordStore(self.db)
        self.store = TrigramStore(self.db)
        self.a, self.b, self.c, self.d = (
            self.words.get_or_create_id(word) for word in ("a", "b", "c", "d")
        )

    def tearDown(self) -> None:
        self.db.close()

    def _seed(self) -> None:
        for _ in range(3):
            self.store.increment(self.a, self.b, self.c)
        self.store.increment(self.a, self.b, self.d)
        self.store.increment(self.b, self.c, self.d)
        self.store.increment(self.b, self.c, self.d)

    def test_increment_creates_then_counts(self) -> None:
        self.store.increment(self.a, self.b, self.c)
        self.assertEqual(self.store.freq(self.a, self.b, self.c), 1)
        self.store.increment(self.a, self.b, self.c)
        self.assertEqual(self.store.freq(self.a, self.b, self.c), 2)
        self.assertEqual(self.store.count(), 1)

    def test_total_freq_matches_rows(self) -> None:
        self._seed()
        self.assertEqual(self.store.total_freq_where(TrigramFilter()), 6)
        self.assertEqual(self.store.total_freq_where(TrigramFilter(word1=self.a, word2=self.b)), 4)
        self.assertEqual(self.store.total_freq_where(TrigramFilter(word2=self.c)), 2)
        self.assertEqual(self.store.total_freq_where(TrigramFilter(word3=self.d)), 3)
        self.assertEqual(self.store.total_freq_where(TrigramFilter(word1=self.d)), 0)

    def test_weighted_pick_walks_the_roulette_wheel(self) -> None:
        self._seed()
        flt = TrigramFilter(word1=self.a, word2=self.b)
        rows = list(self.store.candidates(flt, "word3"))
        self.assertEqual(sorted(word for _, word in rows), sorted([self.c, self.d]))
        (first_freq, first_word), (_, second_word) = rows
        self.assertEqual(self.store.weighted_pick(flt, "word3", 1), first_word)
        self.assertEqual(self.store.weighted_pick(flt, "word3", first_freq), first_word)
        self.assertEqual(self.store.weighted_pick(flt, "word3", first_freq + 1), second_word)
        self.assertEqual(self.store.weighted_pick(flt, "word3", 4), second_word)
        self.assertIsNone(self.store.weighted_pick(flt, "word3", 5))

    def test_weighted_pick_without_matches(self) -> None:
        self._seed()
        self.assertIsNone(self.store.weighted_pick(TrigramFilter(word1=self.d), "word2", 1))

    def test_weighted_pick_rejects_unknown_column(self) -> None:
        with self.assertRaises(ValueError):
            self.store.weighted_pick(TrigramFilter(), "freq", 1)

    def test_add_ids_counts_windows(self) -> None:
        windows = self.store.add_ids([0, self.a, self.b, self.c, 0])
        self.assertEqual(windows, 3)
        self.assertEqual(self.store.freq(0, self.a, self.b), 1)
        self.assertEqual(self.store.freq(self.b, self.c, 0), 1)
        self.assertEqual(self.store.add_ids([0, 0]), 0)

    def test_pair_support_counts_leading_and_trailing(self) -> None:
        self.store.add_ids([0, self.a, self.b, self.c, 0])
        # (0, a, b) trails with the pair, (a, b, c) leads with it
        self.assertEqual(self.store.pair_support(self.a, self.b), 2)
        self.assertEqual(self.store.pair_support(self.c, self.a), 0)

    def test_spelling_view_joins_words(self) -> None:
        self.store.add_ids([0, self.a, self.b, 0])
        rows = self.db.query("SELECT word1, word2, word3, freq FROM phrases_spelling ORDER BY word1")
        self.assertEqual(
            sorted(tuple(row) for row in rows),
            sorted([("", "a", "b", 1), ("a", "b", "", 1)]),
        )


if __name__ == "__main__":
    unittest.main()
