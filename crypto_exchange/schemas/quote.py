from datetime import datetime

from pydantic import BaseModel, field_validator


class CryptoQuote(BaseModel):
    cmc_id: int | None = None
    symbol: str
    name: str = ""
    slug: str = ""
    rank: int | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None
    max_supply: float | None = None
    price: float | None = None
    volume_24h: float | None = None
    percent_change_1h: float | None = None
    percent_change_24h: float | None = None
    percent_change_7d: float | None = None
    market_cap: float | None = None
    last_updated: datetime

    @field_validator("symbol")
    @classmethod
    def _canonical_symbol(cls, value: str) -> str:
        return value.strip().upper()


class RefreshResult(BaseModel):
    updated: int
    attempted: int
    skipped: bool = False


class ApiStatus(BaseModel):
    api_configured: bool
    tracked_currencies: int
    message: str


class MessageResponse(BaseModel):
    message: str
