"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ClaudeConfig:
    """Claude API settings."""
    model: str = "claude-3-5-haiku-latest"
    max_tokens: int = 4000
    routing_max_tokens: int = 6000
    temperature: float = 0.0
    max_retries: int = 5
    initial_retry_delay: float = 2.0
    request_delay: float = 1.0


@dataclass
class PathsConfig:
    """Path settings."""
    state_file: Path = Path("data/auto-update/state.yaml")
    sources_file: Path = Path("data/auto-update/sources.yaml")
    watchlist_file: Path = Path("data/auto-update/watchlist.yaml")
    content_dir: Path = Path("content/docs")
    runs_dir: Path = Path("data/auto-update/runs")


@dataclass
class RoutingConfig:
    """Digest and routing thresholds."""
    max_pages: int = 10
    max_budget: float = 50.0
    min_relevance: int = 20
    router_min_relevance: int = 40
    classify_batch_size: int = 30
    entity_sample_size: int = 150
    router_page_limit: int = 200
    seen_items_max_age_days: int = 90


@dataclass
class ExecutionConfig:
    """Page execution settings."""
    command: list[str] = field(default_factory=lambda: ["page-improve"])
    timeout_seconds: float = 30 * 60
    working_dir: Path = Path(".")
    validation_command: list[str] = field(default_factory=list)
    validation_timeout_seconds: float = 10 * 60


@dataclass
class PromptsConfig:
    """Prompts for LLM."""
    classify: dict = field(default_factory=lambda: {
        "system": (
            "You classify news items for a wiki. Score each item's relevance (0-100) to the "
            "wiki's topics. Extract topic tags and match to wiki entity IDs where possible.\n\n"
            "Known wiki entity IDs (sample): {entity_sample}\n\n"
            'Output ONLY a JSON array. Each element: {{"index": <1-based>, "relevanceScore": <0-100>, '
            '"topics": ["tag1"], "entities": ["entity-id-1"], "skip": false}}\n\n'
            "Set skip=true for items clearly irrelevant to the wiki."
        ),
        "user": "Classify these {count} news items:\n\n{items}",
    })
    route: dict = field(default_factory=lambda: {
        "system": (
            "You are a routing system for a wiki. Given news items and a list of wiki pages, "
            "decide which pages should be updated based on the news.\n\n"
            "Rules:\n"
            "- Only route items that contain genuinely new, substantive information\n"
            '- Suggest "polish" for minor additions, "standard" for notable updates, '
            '"deep" for major developments\n'
            "- If news covers a clearly important topic not in the wiki, suggest a new page "
            '(tier "budget", "standard" or "premium")\n'
            '- Include specific "directions" for each page\n\n'
            "Output ONLY a JSON object:\n"
            '{{"pageUpdates": [{{"pageId": "...", "relevantItems": [1, 3], "reason": "...", '
            '"suggestedTier": "standard", "directions": "..."}}], '
            '"newPages": [{{"suggestedTitle": "...", "suggestedId": "...", "reason": "...", '
            '"relevantItems": [5], "suggestedTier": "standard"}}], '
            '"skipped": [{{"index": 2, "reason": "..."}}]}}'
        ),
        "user": "## Wiki Pages (top {page_count} by importance)\n{pages}\n\n## News Items to Route\n{items}",
    })


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""

    # Config sections
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def claude_model(self) -> str:
        return self.claude.model

    @property
    def claude_max_tokens(self) -> int:
        return self.claude.max_tokens

    @property
    def claude_temperature(self) -> float:
        return self.claude.temperature

    @property
    def claude_max_retries(self) -> int:
        return self.claude.max_retries

    @property
    def claude_initial_retry_delay(self) -> float:
        return self.claude.initial_retry_delay

    @property
    def claude_request_delay(self) -> float:
        return self.claude.request_delay

    @property
    def max_pages(self) -> int:
        return self.routing.max_pages

    @property
    def max_budget(self) -> float:
        return self.routing.max_budget

    @property
    def min_relevance(self) -> int:
        return self.routing.min_relevance

    @property
    def state_file(self) -> Path:
        return self.paths.state_file

    @property
    def runs_dir(self) -> Path:
        return self.paths.runs_dir


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""))

    if "claude" in config:
        for key, value in config["claude"].items():
            setattr(settings.claude, key, value)

    if "paths" in config:
        for key, value in config["paths"].items():
            setattr(settings.paths, key, Path(value))

    if "routing" in config:
        for key, value in config["routing"].items():
            setattr(settings.routing, key, value)

    if "execution" in config:
        for key, value in config["execution"].items():
            if key == "working_dir":
                value = Path(value)
            setattr(settings.execution, key, value)

    if "prompts" in config:
        settings.prompts = PromptsConfig(**config["prompts"])

    return settings
