from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "FIFA Penalty Predictor"
    environment: str = "development"

    # Feed LiveFeed del book (deportes virtuales)
    live_feed_url: str = "https://1xbet.com/service-api/LiveFeed/Get1x2_VZip"
    live_feed_count: int = 40
    live_feed_lang: str = "fr"
    live_feed_country: int = 96
    live_feed_mode: int = 4
    live_feed_timeout_seconds: int = 45
    live_feed_cache_ttl_seconds: int = 5

    sport_id: int = 85
    fallback_group_id: int = 285

    # Rango de cuotas que consideran los bots
    valid_odds_min: float = 1.399
    valid_odds_max: float = 3.0

    coupon_default_size: int = 3
    coupon_max_size: int = 12
    drift_threshold_percent: float = 6.0

    # Chat
    chat_rate_limit_requests: int = 10
    chat_rate_limit_window_seconds: int = 60
    trust_forwarded_for: bool = False  # solo detrás de un proxy propio
    llm_provider: Optional[str] = None  # "anthropic" | "openai"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-haiku-20241022"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: int = 20
    llm_max_tokens: int = 600

    # Telegram
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_timeout_seconds: int = 20

    # Servidor
    host: str = "0.0.0.0"
    port: int = 3029
    port_retries: int = 20

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
