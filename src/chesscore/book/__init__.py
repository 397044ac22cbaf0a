from __future__ import annotations

from typing import Optional

from .polyglot import PolyglotBook, polyglot_key


def open_book(path: Optional[str]) -> Optional[PolyglotBook]:
    if not path:
        return None
    return PolyglotBook(path)


__all__ = ["PolyglotBook", "open_book", "polyglot_key"]
