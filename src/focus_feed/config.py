"""Configuration management."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from focus_feed.core.entities import AIModelConfig, AIProcessingOptions


@dataclass
class ClaudeConfig:
    """Claude API settings."""
    model: str = "claude-3-5-haiku-20241022"
    max_tokens: int = 800
    temperature: float = 0.2
    base_url: str = "https://api.anthropic.com/v1"
    request_timeout: float = 60.0
    max_retries: int = 1
    initial_retry_delay: float = 1.0
    max_retry_delay: float = 10.0


@dataclass
class MockConfig:
    """Mock provider settings."""
    model: str = "mock-gpt"
    max_tokens: int = 500
    temperature: float = 0.3
    min_delay: float = 0.1
    max_delay: float = 0.5


@dataclass
class AIConfig:
    """AI enhancement settings."""
    enabled: bool = True
    max_concurrency: int = 3
    item_timeout: float = 30.0
    batch_delay: float = 1.0
    cost_per_token: float = 0.00002
    generate_summary: bool = True
    enhance_tags: bool = True
    extract_insights: bool = True
    calculate_semantic_score: bool = True


@dataclass
class FetchConfig:
    """Upstream fetch settings."""
    timeout: float = 10.0
    user_agent: str = "focus-feed/1.0"
    github_api_url: str = "https://api.github.com"
    hn_api_url: str = "https://hacker-news.firebaseio.com/v0"
    hn_search_url: str = "https://hn.algolia.com/api/v1"
    source_timeout: float = 30.0


@dataclass
class CacheConfig:
    """Cache and daily quota settings."""
    duration_hours: float = 12.0
    max_requests_per_day: int = 2


@dataclass
class ProcessingDefaults:
    """Content processor thresholds."""
    similarity_threshold: float = 0.8
    min_content_length: int = 100
    min_title_length: int = 20
    insufficient_score: float = 0.1


@dataclass
class PathsConfig:
    """Path settings."""
    config_dir: Path = Path("config")
    seen_store: Optional[Path] = Path("data/seen_items.yaml")
    seen_retention_days: int = 30


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""
    github_token: Optional[str] = None

    # Config sections
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    mock: MockConfig = field(default_factory=MockConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    processing: ProcessingDefaults = field(default_factory=ProcessingDefaults)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @property
    def cache_duration_seconds(self) -> float:
        return self.cache.duration_hours * 3600

    @property
    def sources_file(self) -> Path:
        return self.paths.config_dir / "sources.yaml"

    @property
    def profiles_dir(self) -> Path:
        return self.paths.config_dir / "profiles"

    def claude_model_config(self) -> AIModelConfig:
        return AIModelConfig(
            provider="anthropic",
            model=self.claude.model,
            max_tokens=self.claude.max_tokens,
            temperature=self.claude.temperature,
        )

    def mock_model_config(self) -> AIModelConfig:
        return AIModelConfig(
            provider="mock",
            model=self.mock.model,
            max_tokens=self.mock.max_tokens,
            temperature=self.mock.temperature,
        )

    def processing_options(self) -> AIProcessingOptions:
        return AIProcessingOptions(
            generate_summary=self.ai.generate_summary,
            enhance_tags=self.ai.enhance_tags,
            extract_insights=self.ai.extract_insights,
            calculate_semantic_score=self.ai.calculate_semantic_score,
            max_concurrency=self.ai.max_concurrency,
            timeout=self.ai.item_timeout,
            batch_delay=self.ai.batch_delay,
        )


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(section: object, values: dict, path_keys: tuple[str, ...] = ()) -> None:
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            continue
        if key in path_keys and value is not None:
            value = Path(value)
        setattr(section, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    # Load YAML config
    config = load_config(config_path)

    # Get API keys from environment
    anthropic_api_key = os.getenv("ANTHROPIC_API_KEY", "")
    github_token = os.getenv("GITHUB_TOKEN")

    settings = Settings(
        anthropic_api_key=anthropic_api_key,
        github_token=github_token,
    )

    for name in ("claude", "mock", "ai", "fetch", "cache", "processing"):
        if name in config:
            _apply_section(getattr(settings, name), config[name] or {})

    if "paths" in config:
        _apply_section(settings.paths, config["paths"] or {}, ("config_dir", "seen_store"))

    return settings
