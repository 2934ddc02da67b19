from __future__ import annotations

import threading

from crypto_exchange.errors import InvalidQuoteError
from crypto_exchange.schemas.quote import CryptoQuote


def _key(symbol: str | None) -> str:
    if symbol is None:
        return ""
    return str(symbol).strip().upper()


class QuoteStore:
    """Latest-quote cache keyed by upper-case symbol.

    Writes are serialised by a lock; reads are single dict operations and take
    no lock, so readers never wait on each other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, CryptoQuote] = {}

    @staticmethod
    def _require_key(quote: CryptoQuote | None) -> str:
        if quote is None:
            raise InvalidQuoteError()
        key = _key(quote.symbol)
        if not key:
            raise InvalidQuoteError()
        return key

    def upsert(self, quote: CryptoQuote | None) -> CryptoQuote:
        key = self._require_key(quote)
        with self._lock:
            self._rows[key] = quote
        return quote

    def replace_if_present(self, quote: CryptoQuote | None) -> bool:
        """Replace the record only while its symbol is still tracked."""
        key = self._require_key(quote)
        with self._lock:
            if key not in self._rows:
                return False
            self._rows[key] = quote
            return True

    def get(self, symbol: str | None) -> CryptoQuote | None:
        key = _key(symbol)
        if not key:
            return None
        return self._rows.get(key)

    def list_all(self) -> list[CryptoQuote]:
        return list(self._rows.copy().values())

    def remove(self, symbol: str | None) -> bool:
        key = _key(symbol)
        if not key:
            return False
        with self._lock:
            return self._rows.pop(key, None) is not None

    def exists(self, symbol: str | None) -> bool:
        key = _key(symbol)
        if not key:
            return False
        return key in self._rows

    def count(self) -> int:
        return len(self._rows)

    def symbols(self) -> list[str]:
        return list(self._rows.copy())

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
