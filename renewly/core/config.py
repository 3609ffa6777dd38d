from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "RenewlyInsights"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Currency
    DEFAULT_CURRENCY: str = Field(default="USD")
    CURRENCY_FACTORS_JSON: Optional[str] = Field(default="config/currency_factors.json")

    # Analytics tuning
    ANOMALY_SIGMA: float = 2.0
    SAVINGS_LIMIT: int = 10
    RENEWAL_WINDOW_DAYS: int = 60
    ALERT_WINDOW_DAYS: int = 7

    # Assistant conversation history (turns kept per user)
    HISTORY_CAPACITY: int = 15

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
