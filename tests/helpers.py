from datetime import datetime, timezone

from crypto_exchange.schemas.quote import CryptoQuote

FIXED_TS = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_quote(symbol: str, price: float = 100.0, **overrides) -> CryptoQuote:
    data = {
        "symbol": symbol,
        "name": symbol.title(),
        "slug": symbol.lower(),
        "price": price,
        "last_updated": FIXED_TS,
    }
    data.update(overrides)
    return CryptoQuote(**data)


class StubFetcher:
    """In-memory fetcher: ``quotes`` maps upper-case symbols to the quote to return."""

    def __init__(self, quotes: dict | None = None, configured: bool = True) -> None:
        self.quotes = dict(quotes or {})
        self.configured = configured
        self.fetch_one_calls: list[str] = []
        self.fetch_many_calls: list[list[str]] = []

    def is_configured(self) -> bool:
        return self.configured

    def fetch_one(self, symbol: str):
        self.fetch_one_calls.append(symbol)
        return self.quotes.get(symbol.upper())

    def fetch_many(self, symbols):
        batch = [s.upper() for s in symbols]
        self.fetch_many_calls.append(batch)
        return {s: self.quotes[s] for s in batch if s in self.quotes}
