from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from crypto_exchange.api.routes import router
from crypto_exchange.config.settings import get_settings
from crypto_exchange.errors import register_error_handlers
from crypto_exchange.integrations.coinmarketcap import CoinMarketCapClient
from crypto_exchange.logging_conf import setup_logging
from crypto_exchange.services.bootstrap import seed_default_quotes
from crypto_exchange.services.quote_store import QuoteStore
from crypto_exchange.services.refresh_scheduler import RefreshScheduler
from crypto_exchange.services.tracking import CryptoTrackingService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    setup_logging(settings.LOG_LEVEL)

    seeded = seed_default_quotes(app.state.tracking_service, settings.DEFAULT_SYMBOLS)
    logger.info("[APP][startup] seeded=%d api_configured=%s", seeded, settings.api_configured)

    app.state.refresh_scheduler.start()
    try:
        yield
    finally:
        app.state.refresh_scheduler.stop()
        logger.info("[APP][shutdown]")


def build_tracking_service(settings) -> CryptoTrackingService:
    fetcher = CoinMarketCapClient(
        api_key=settings.COINMARKETCAP_API_KEY,
        base_url=settings.COINMARKETCAP_BASE_URL,
        timeout=settings.COINMARKETCAP_TIMEOUT_SEC,
    )
    return CryptoTrackingService(quote_store=QuoteStore(), fetcher=fetcher)


app = FastAPI(title="Crypto Exchange", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/api")
register_error_handlers(app)

app.state.get_settings = get_settings
app.state.tracking_service = build_tracking_service(get_settings())
app.state.refresh_scheduler = RefreshScheduler(
    tracking_service=app.state.tracking_service,
    interval_sec=get_settings().REFRESH_INTERVAL_SEC,
)
