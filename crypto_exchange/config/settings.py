import os
from functools import lru_cache

from pydantic import BaseModel, Field

_DEFAULT_SYMBOLS = "BTC,ETH,BNB,XRP,ADA,DOGE,SOL,DOT,LTC,MATIC"


class Settings(BaseModel):
    COINMARKETCAP_API_KEY: str = ""
    COINMARKETCAP_BASE_URL: str = "https://pro-api.coinmarketcap.com"
    COINMARKETCAP_TIMEOUT_SEC: float = Field(default=10.0, gt=0)
    REFRESH_INTERVAL_SEC: float = Field(default=300.0, gt=0)
    DEFAULT_SYMBOLS: list[str]
    LOG_LEVEL: str = "INFO"

    @property
    def api_configured(self) -> bool:
        return bool(self.COINMARKETCAP_API_KEY.strip())

    @classmethod
    def from_env(cls) -> "Settings":
        raw_symbols = os.getenv("DEFAULT_SYMBOLS", _DEFAULT_SYMBOLS)
        symbols = [s.strip().upper() for s in raw_symbols.split(",") if s.strip()]

        return cls.model_validate(
            {
                "COINMARKETCAP_API_KEY": os.getenv("COINMARKETCAP_API_KEY", "").strip(),
                "COINMARKETCAP_BASE_URL": os.getenv(
                    "COINMARKETCAP_BASE_URL", "https://pro-api.coinmarketcap.com"
                ),
                "COINMARKETCAP_TIMEOUT_SEC": os.getenv("COINMARKETCAP_TIMEOUT_SEC", "10"),
                "REFRESH_INTERVAL_SEC": os.getenv("REFRESH_INTERVAL_SEC", "300"),
                "DEFAULT_SYMBOLS": symbols,
                "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
