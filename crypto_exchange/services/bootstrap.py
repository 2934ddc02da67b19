from __future__ import annotations

import logging
from typing import Sequence

from crypto_exchange.services.tracking import CryptoTrackingService

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ["BTC", "ETH", "BNB", "XRP", "ADA", "DOGE", "SOL", "DOT", "LTC", "MATIC"]


def seed_default_quotes(
    tracking_service: CryptoTrackingService,
    symbols: Sequence[str] | None = None,
) -> int:
    """Seed the store with one batch fetch of the default symbols; returns the seeded count."""
    if not tracking_service.is_api_configured():
        logger.info("[BOOT][seed_skipped] reason=api_not_configured")
        return 0

    targets = list(symbols) if symbols else list(DEFAULT_SYMBOLS)
    seeded = tracking_service.seed(targets)
    logger.info("[BOOT][seed] target_count=%d seeded_count=%d", len(targets), seeded)
    return seeded
