"""Configuration settings for Kahaani."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    app_name: str = "Kahaani AI"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origin: str = "*"

    # LLM
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4.1"
    json_mode: bool = True
    research_temperature: float = 0.7
    research_max_tokens: int = 2000
    writer_temperature: float = 0.8
    writer_max_tokens: int = 8000
    strict_writer_decode: bool = False  # True: unparseable writer reply fails the run

    # Feeds
    news_feed_url: str = "https://news.google.com/rss?hl=en-IN&gl=IN&ceid=IN:en"
    trends_feed_url: str = "https://trends.google.com/trending/rss?geo=IN"
    feed_timeout_sec: float = 15.0

    # Cost comparison
    usd_to_inr: float = 85.0
    human_cost_per_script_inr: int = 650

    # Client / history
    api_url: str = "http://localhost:8765/api/generate"
    client_timeout_sec: float = 180.0
    history_path: str = "./kahaani_history.json"
    history_capacity: int = 20
    history_max_bytes: int = 5 * 1024 * 1024  # browser localStorage quota

    class Config:
        env_file = ".env"


settings = Settings()
