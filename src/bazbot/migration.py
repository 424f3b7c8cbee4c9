"""
Ordered, append-only schema migrations for the words database.

Released migrations are part of the on-disk contract: never edit or reorder
an entry of ``MIGRATIONS``, only append new ones.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import List, Sequence

from .db import WordsDatabase
from .errors import MigrationError

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "migrations"


@dataclass(frozen=True)
class Migration:
    m_id: str
    sql: str


# Creates the log table itself, so it is detected through sqlite_master
# rather than by a row in the log.
BASE_MIGRATION = Migration(
    m_id="init",
    sql="create table migrations ( m_id primary key );",
)

MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        m_id="words_and_phrases_init",
        sql="""
        CREATE TABLE words (word_id integer primary key autoincrement, spelling text not null);
        CREATE TABLE phrases (
            word1 integer not null, word2 integer not null, word3 integer not null, freq integer not null,
            foreign key (word1) references words(word_id),
            foreign key (word2) references words(word_id),
            foreign key (word3) references words(word_id)
        );
        insert into words (word_id, spelling) values (0,'');
        CREATE UNIQUE INDEX idx_words on words (word_id);
        CREATE UNIQUE INDEX idx_spelling on words (spelling);
        CREATE UNIQUE INDEX idx_phrases_u on phrases (word1,word2,word3);
        """,
    ),
    Migration(
        m_id="phrases_spelling_view",
        sql="""
        create view phrases_spelling as
        select w1.spelling as word1, w2.spelling as word2, w3.spelling as word3, freq
        from phrases
        inner join words w1 on phrases.word1 = w1.word_id
        inner join words w2 on phrases.word2 = w2.word_id
        inner join words w3 on phrases.word3 = w3.word_id;
        """,
    ),
    Migration(
        m_id="idx_phrases_backward",
        # Middle lookups run once per completion and can use idx_phrases_u.
        sql="create index idx_phrases_backward on phrases(word3, word2);",
    ),
)


class Migrator:
    """Brings a words database up to the latest schema; safe to run on every startup."""

    def __init__(
        self,
        db: WordsDatabase,
        migrations: Sequence[Migration] = MIGRATIONS,
    ) -> None:
        self.db = db
        self.migrations = tuple(migrations)

    def migrate(self) -> List[str]:
        """Apply pending migrations in declared order and return the ids that ran."""
        applied: List[str] = []
        if self.base_migration():
            applied.append(BASE_MIGRATION.m_id)
        for migration in self.migrations:
            if not self.is_applied(migration):
                self.run_migration(migration)
                applied.append(migration.m_id)
        return applied

    def base_migration(self) -> bool:
        if self.db.table_exists(MIGRATIONS_TABLE):
            return False
        self.run_migration(BASE_MIGRATION)
        return True

    def is_applied(self, migration: Migration) -> bool:
        try:
            row = self.db.query_value(
                "select 1 from migrations where m_id = ?", (migration.m_id,)
            )
        except sqlite3.OperationalError:
            # no migrations table yet
            return False
        return row is not None

    def applied_ids(self) -> List[str]:
        if not self.db.table_exists(MIGRATIONS_TABLE):
            return []
        return [row["m_id"] for row in self.db.query("select m_id from migrations")]

    def pending(self) -> List[str]:
        return [m.m_id for m in self.migrations if not self.is_applied(m)]

    def run_migration(self, migration: Migration) -> None:
        logger.info("run migration: %s", migration.m_id)
        try:
            self.db.execute_batch(
                migration.sql,
                followup=[("insert into migrations (m_id) values (?)", (migration.m_id,))],
            )
        except sqlite3.Error as exc:
            raise MigrationError(migration.m_id, exc) from exc


def migrate(db: WordsDatabase) -> List[str]:
    return Migrator(db).migrate()
