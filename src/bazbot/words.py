from __future__ import annotations

from typing import Dict

from .db import WordsDatabase

SENTINEL_ID = 0
SENTINEL_SPELLING = ""


class WordStore:
    """Interns word spellings to stable integer ids, with transparent caching.

    Id 0 is the phrase boundary sentinel and always spells as the empty string;
    it is inserted by the schema migration, never here.
    """

    def __init__(self, db: WordsDatabase) -> None:
        self.db = db
        self._spelling_to_id: Dict[str, int] = {}
        self._id_to_spelling: Dict[int, str] = {}
        db.add_rollback_hook(self.forget)

    def _remember(self, spelling: str, word_id: int) -> None:
        self._spelling_to_id[spelling] = word_id
        self._id_to_spelling[word_id] = spelling

    def forget(self) -> None:
        self._spelling_to_id.clear()
        self._id_to_spelling.clear()

    def get_or_create_id(self, spelling: str) -> int:
        word_id = self.lookup_id(spelling)
        if word_id is not None:
            return word_id
        word_id = self.db.insert_with_id(
            "insert into words (spelling) values (?)", (spelling,)
        )
        self._remember(spelling, word_id)
        return word_id

    def lookup_id(self, spelling: str) -> int | None:
        cached = self._spelling_to_id.get(spelling)
        if cached is not None:
            return cached
        word_id = self.db.query_value(
            "select word_id from words where spelling = ?", (spelling,)
        )
        if word_id is not None:
            self._remember(spelling, word_id)
        return word_id

    def spelling_of(self, word_id: int) -> str | None:
        cached = self._id_to_spelling.get(word_id)
        if cached is not None:
            return cached
        spelling = self.db.query_value(
            "select spelling from words where word_id = ?", (word_id,)
        )
        if spelling is not None:
            self._remember(spelling, word_id)
        return spelling

    def count(self) -> int:
        return int(self.db.query_value("select count(*) from words", default=0))
