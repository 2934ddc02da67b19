from __future__ import annotations

import logging
import threading

from crypto_exchange.schemas.quote import CryptoQuote, RefreshResult
from crypto_exchange.services.quote_store import QuoteStore

logger = logging.getLogger(__name__)


class CryptoTrackingService:
    """Combines the quote store with the upstream fetcher per tracking operation.

    The fetcher is any object exposing ``is_configured()``, ``fetch_one(symbol)``
    and ``fetch_many(symbols)``. Fetch outcomes are advisory: a missing result
    leaves the store as it was.
    """

    def __init__(self, *, quote_store: QuoteStore, fetcher) -> None:
        self.quote_store = quote_store
        self.fetcher = fetcher
        self._refresh_all_lock = threading.Lock()

    @staticmethod
    def _normalize(symbol: str) -> str:
        return str(symbol or "").strip().upper()

    def is_api_configured(self) -> bool:
        return bool(self.fetcher.is_configured())

    def _fetch_one(self, symbol: str) -> CryptoQuote | None:
        if not self.is_api_configured():
            logger.warning("[TRACK][fetch_skipped] symbol=%s reason=api_not_configured", symbol)
            return None
        try:
            return self.fetcher.fetch_one(symbol)
        except Exception as exc:
            logger.error("[TRACK][fetch_error] symbol=%s error=%s", symbol, exc)
            return None

    def _fetch_many(self, symbols: list[str]) -> dict[str, CryptoQuote]:
        if not self.is_api_configured():
            logger.warning("[TRACK][fetch_skipped] symbols=%d reason=api_not_configured", len(symbols))
            return {}
        try:
            return dict(self.fetcher.fetch_many(symbols) or {})
        except Exception as exc:
            logger.error("[TRACK][batch_fetch_error] symbols=%d error=%s", len(symbols), exc)
            return {}

    def get(self, symbol: str) -> CryptoQuote | None:
        return self.quote_store.get(symbol)

    def list_all(self) -> list[CryptoQuote]:
        return self.quote_store.list_all()

    def count(self) -> int:
        return self.quote_store.count()

    def add(self, symbol: str) -> CryptoQuote | None:
        upper_symbol = self._normalize(symbol)
        if not upper_symbol:
            return None

        existing = self.quote_store.get(upper_symbol)
        if existing is not None:
            logger.info("[TRACK][add_existing] symbol=%s", upper_symbol)
            return existing

        fetched = self._fetch_one(upper_symbol)
        if fetched is None:
            logger.warning("[TRACK][add_failed] symbol=%s", upper_symbol)
            return None
        self.quote_store.upsert(fetched)
        logger.info("[TRACK][add] symbol=%s price=%s", upper_symbol, fetched.price)
        return fetched

    def remove(self, symbol: str) -> bool:
        upper_symbol = self._normalize(symbol)
        removed = self.quote_store.remove(upper_symbol)
        if removed:
            logger.info("[TRACK][remove] symbol=%s", upper_symbol)
        return removed

    def refresh_one(self, symbol: str) -> CryptoQuote | None:
        # fetches whether or not the symbol is tracked; a success starts tracking it
        upper_symbol = self._normalize(symbol)
        if not upper_symbol:
            return None

        fetched = self._fetch_one(upper_symbol)
        if fetched is None:
            logger.warning("[TRACK][refresh_failed] symbol=%s", upper_symbol)
            return None
        self.quote_store.upsert(fetched)
        logger.info("[TRACK][refresh] symbol=%s price=%s", upper_symbol, fetched.price)
        return fetched

    def refresh_all(self, *, blocking: bool = True) -> RefreshResult:
        if not self._refresh_all_lock.acquire(blocking=blocking):
            logger.info("[TRACK][refresh_all_skipped] reason=already_running")
            return RefreshResult(updated=0, attempted=0, skipped=True)
        try:
            return self._refresh_all_locked()
        finally:
            self._refresh_all_lock.release()

    def _refresh_all_locked(self) -> RefreshResult:
        symbols = self.quote_store.symbols()
        if not symbols:
            logger.info("[TRACK][refresh_all] target_count=0")
            return RefreshResult(updated=0, attempted=0)

        fetched = self._fetch_many(symbols)
        updated = 0
        for symbol in symbols:
            quote = fetched.get(symbol)
            if quote is None or quote.symbol != symbol:
                continue
            # symbols removed while the batch was in flight stay removed
            try:
                replaced = self.quote_store.replace_if_present(quote)
            except ValueError as exc:
                logger.warning("[TRACK][refresh_all_invalid] symbol=%s error=%s", symbol, exc)
                continue
            if replaced:
                updated += 1

        logger.info(
            "[TRACK][refresh_all] target_count=%d updated_count=%d",
            len(symbols),
            updated,
        )
        return RefreshResult(updated=updated, attempted=len(symbols))

    def seed(self, symbols: list[str]) -> int:
        """Track every symbol the batch fetch returns; returns the seeded count."""
        targets = [s for s in (self._normalize(s) for s in symbols) if s]
        if not targets:
            return 0

        fetched = self._fetch_many(targets)
        seeded = 0
        for quote in fetched.values():
            try:
                self.quote_store.upsert(quote)
            except ValueError as exc:
                logger.warning("[TRACK][seed_invalid] error=%s", exc)
                continue
            seeded += 1

        logger.info("[TRACK][seed] target_count=%d seeded_count=%d", len(targets), seeded)
        return seeded
