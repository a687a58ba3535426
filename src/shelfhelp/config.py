# ABOUTME: Runtime settings for scrapers, orchestration, and validation.
# ABOUTME: Loaded from SHELFHELP_-prefixed environment variables or a .env file.

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Scrapers. Timeouts are seconds; rate limits and delays are milliseconds.
    ku_search_url: str = "https://www.amazon.com/s"
    ku_timeout: float = 15.0
    ku_rate_limit_ms: int = 2000

    hoopla_search_url: str = "https://www.hoopladigital.com/search"
    hoopla_timeout: float = 10.0
    hoopla_rate_limit_ms: int = 1500

    library_timeout: float = 15.0
    library_rate_limit_ms: int = 3000
    library_system_delay_ms: int = 1000

    max_retries: int = 3

    # Orchestrator
    batch_size: int = 3
    batch_delay_ms: int = 5000
    max_concurrent: int = 2
    group_delay_ms: int = 1000

    # Validation
    min_confidence_threshold: float = 0.3
    high_confidence_threshold: float = 0.7
    consensus_threshold: float = 0.6
    enable_cross_validation: bool = True
    validator_logging: bool = False

    model_config = {"env_prefix": "SHELFHELP_", "env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
