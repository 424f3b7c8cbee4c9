from __future__ import annotations


class BazError(Exception):
    """Base class for failures the bot cannot recover from on its own."""


class MigrationError(BazError):
    """Raised when a schema migration batch fails; the store must not be used."""

    def __init__(self, m_id: str, cause: BaseException) -> None:
        super().__init__(f"migration '{m_id}' failed: {cause}")
        self.m_id = m_id
        self.cause = cause
