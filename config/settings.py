from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Cache
    cache_backend: str = "memory"  # "memory" or "redis"
    redis_url: str = "redis://localhost:6379/0"
    report_cache_ttl_sec: int = 3600  # 1 hour, same as the analyze endpoint
    report_cache_prefix: str = "token:analysis"

    # Source collection
    collection_deadline_ms: int = 8000  # caller deadline for the whole fan-out
    sol_price_fallback_usd: float = 150.0  # used when a liquidity source omits SOL/USD

    # Bundle detector
    bundle_min_wallets: int = 3  # co-funded wallets in one slot to call it a bundle

    # Sniper detector
    sniper_block_window: int = 3  # first N slots after pool creation

    # Wash trading detector
    wash_lookback_sec: int = 3600
    wash_volume_ratio: float = 0.5  # circular volume / total liquidity (SOL)

    # Honeypot detector
    honeypot_sell_tax_ceiling: float = 95.0
    honeypot_failed_sell_ratio: float = 0.30
    honeypot_min_buys: int = 10

    # Scoring threshold overrides (JSON file, optional)
    scoring_thresholds_path: str = ""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_quiet_tags: list[str] = []  # e.g. ["[CACHE]"], hidden on the console only

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_debug: bool = False


settings = Settings()
