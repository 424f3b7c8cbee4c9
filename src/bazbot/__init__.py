"""
SQLite-backed trigram word chains.

Phrases are interned word by word and counted as sentinel-padded trigrams:
    * words.WordStore: spelling <-> id interning (id 0 is the phrase boundary).
    * trigrams.TrigramStore: frequency table with roulette-wheel picks.
    * cursor.ChainCursor: forward / backward / middle walks over the table.
    * completion.CompletionEngine: forward, middle-out and primed completion.

See pipeline.BazEngine for the façade used by the command line and chat adapters.
"""

from .db import WordsDatabase
from .errors import BazError, MigrationError
from .pipeline import BazEngine

__all__ = ["BazEngine", "BazError", "MigrationError", "WordsDatabase"]
