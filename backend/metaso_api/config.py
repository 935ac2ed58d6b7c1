import logging
import sys

from pydantic_settings import BaseSettings


def setup_logging():
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Initialize logging on import
setup_logging()

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Upstream (metaso.cn)
    upstream_base_url: str = "https://metaso.cn"
    lang: str = "zh"
    default_model: str = "concise"

    # Timeout settings (seconds)
    request_timeout: float = 15.0
    # Upper bound on the total duration of one search stream
    stream_timeout: float = 300.0

    # Retry settings (0 disables retry)
    max_retry_count: int = 0
    retry_delay: float = 5.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
