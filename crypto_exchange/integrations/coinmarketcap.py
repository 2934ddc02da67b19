from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import requests

from crypto_exchange.schemas.quote import CryptoQuote

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    try:
        if value is None or value == "":
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    try:
        if value is None or value == "":
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_last_updated(value: Any, now: Optional[datetime] = None) -> datetime:
    """Upstream timestamp if it parses as ISO-8601, otherwise the local fetch time."""
    fallback = now or datetime.now(timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return fallback
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_quote(data: Dict[str, Any], convert: str = "USD") -> CryptoQuote:
    """Map one entry of the quotes/latest ``data`` object onto a CryptoQuote."""
    quote = (data.get("quote") or {}).get(convert) or {}

    return CryptoQuote(
        cmc_id=_to_int(data.get("id")),
        symbol=str(data.get("symbol") or ""),
        name=str(data.get("name") or ""),
        slug=str(data.get("slug") or ""),
        rank=_to_int(data.get("cmc_rank")),
        circulating_supply=_to_float(data.get("circulating_supply")),
        total_supply=_to_float(data.get("total_supply")),
        max_supply=_to_float(data.get("max_supply")),
        price=_to_float(quote.get("price")),
        volume_24h=_to_float(quote.get("volume_24h")),
        percent_change_1h=_to_float(quote.get("percent_change_1h")),
        percent_change_24h=_to_float(quote.get("percent_change_24h")),
        percent_change_7d=_to_float(quote.get("percent_change_7d")),
        market_cap=_to_float(quote.get("market_cap")),
        last_updated=parse_last_updated(quote.get("last_updated")),
    )


class CoinMarketCapClient:
    """CoinMarketCap quotes/latest client for single and batch symbol lookups."""

    BASE_URL = "https://pro-api.coinmarketcap.com"
    QUOTES_PATH = "/v1/cryptocurrency/quotes/latest"
    CONVERT = "USD"

    def __init__(
        self,
        api_key: str,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.session = session or requests
        self.timeout = timeout
        if not self.api_key:
            logger.warning("[CMC][not_configured] set COINMARKETCAP_API_KEY to enable quote fetches")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request_quotes(self, symbol_param: str) -> Dict[str, Any] | None:
        try:
            response = self.session.get(
                f"{self.base_url}{self.QUOTES_PATH}",
                headers={
                    "X-CMC_PRO_API_KEY": self.api_key,
                    "Accept": "application/json",
                },
                params={"symbol": symbol_param, "convert": self.CONVERT},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error("[CMC][request_error] symbols=%s error=%s", symbol_param, exc)
            return None
        except ValueError as exc:
            logger.error("[CMC][decode_error] symbols=%s error=%s", symbol_param, exc)
            return None

        status = payload.get("status") or {}
        error_code = status.get("error_code", 0)
        if error_code not in (0, None, "0"):
            logger.warning(
                "[CMC][api_error] symbols=%s error_code=%s error=%s",
                symbol_param,
                error_code,
                status.get("error_message"),
            )
            return None

        data = payload.get("data")
        if not isinstance(data, dict):
            logger.warning("[CMC][empty_data] symbols=%s", symbol_param)
            return None
        return data

    def fetch_one(self, symbol: str) -> CryptoQuote | None:
        if not self.is_configured():
            logger.error("[CMC][fetch_skipped] reason=api_key_missing")
            return None
        upper_symbol = str(symbol or "").strip().upper()
        if not upper_symbol:
            return None

        logger.info("[CMC][fetch_one] symbol=%s", upper_symbol)
        data = self._request_quotes(upper_symbol)
        if data is None or upper_symbol not in data:
            logger.warning("[CMC][fetch_one_miss] symbol=%s", upper_symbol)
            return None

        try:
            quote = parse_quote(data[upper_symbol], convert=self.CONVERT)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.error("[CMC][parse_error] symbol=%s error=%s", upper_symbol, exc)
            return None
        logger.info("[CMC][fetch_one_ok] symbol=%s price=%s", upper_symbol, quote.price)
        return quote

    def fetch_many(self, symbols: Iterable[str]) -> Dict[str, CryptoQuote]:
        if not self.is_configured():
            logger.error("[CMC][fetch_skipped] reason=api_key_missing")
            return {}

        unique_symbols: list[str] = []
        seen: set[str] = set()
        for symbol in symbols or ():
            value = str(symbol).strip().upper()
            if not value or value in seen:
                continue
            seen.add(value)
            unique_symbols.append(value)
        if not unique_symbols:
            return {}

        symbol_param = ",".join(unique_symbols)
        logger.info("[CMC][fetch_many] symbols=%s", symbol_param)
        data = self._request_quotes(symbol_param)
        if data is None:
            return {}

        out: Dict[str, CryptoQuote] = {}
        for key, entry in data.items():
            if not isinstance(entry, dict):
                continue
            try:
                quote = parse_quote({"symbol": key, **entry}, convert=self.CONVERT)
            except (TypeError, ValueError, AttributeError) as exc:
                logger.error("[CMC][parse_error] symbol=%s error=%s", key, exc)
                continue
            if not quote.symbol:
                continue
            out[quote.symbol] = quote

        logger.info(
            "[CMC][fetch_many_ok] target_count=%d fetched_count=%d",
            len(unique_symbols),
            len(out),
        )
        return out
