"""Configuration management for the Time Poem keyword explorer.

This module provides centralized configuration for the gateway, the stage
agents and the logging stack. All settings are loaded from environment
variables with sensible defaults.

Environment Variables:
    Required:
        GEMINI_API_KEY: Google Gemini API key for all model calls

    Models (PydanticAI format - provider:model):
        SEARCH_MODEL: Model for grounded "past" search
        REASONING_MODEL: Model for extraction, analysis, prediction, poem, translation
        IMAGE_MODEL: Gemini image model name (google-genai format, no provider prefix)

    Output:
        LANGUAGE: Output language ('zh' for Chinese, 'en' for English)

    Stage Behavior:
        NEWS_ITEM_COUNT: Number of news items extracted by the past search (default: 6)
        SEARCH_WINDOW_DAYS: Recency window stated in the search prompt (default: 30)
        SEARCH_CONTEXT_CHARS: Max chars of search prose passed to extraction
        IMAGE_ASPECT_RATIO: Aspect ratio requested for the share image

    Gateway:
        REQUEST_TIMEOUT_SECONDS: Timeout applied to every model call
        OUTPUT_RETRIES: PydanticAI output validation retries (default: 0)

    Optional Features:
        ENABLE_LOGFIRE: Enable Logfire/OpenTelemetry tracing
        LOGFIRE_TOKEN: Logfire authentication token

    Logging:
        LOG_DIR: Directory for log files
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable


_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_number(key: str, default: Any, parse: Callable[[str], Any]) -> Any:
    """Parse a numeric environment variable, keeping the default when unset.

    Raises:
        ValueError: If the variable is set but not a valid number
    """
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"{key} must be a {parse.__name__}, got '{raw}'") from None


def _env_int(key: str, default: int) -> int:
    return _env_number(key, default, int)


def _env_float(key: str, default: float) -> float:
    return _env_number(key, default, float)


def _env_bool(key: str, default: bool = False) -> bool:
    """Truthy: 1/true/yes/on. Falsy: 0/false/no/off. Anything else: default."""
    raw = os.environ.get(key, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


# Display names used inside prompts, keyed by LANGUAGE
LANGUAGE_NAMES = {
    "zh": "Simplified Chinese",
    "en": "English",
}

SUPPORTED_ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9")


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    All settings can be overridden via environment variables. Use Config.load()
    to create an instance with values from the environment.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === Required ===
    gemini_api_key: str = ""  # GEMINI_API_KEY - Google AI API key

    # === Output Settings ===
    language: str = "zh"  # LANGUAGE - 'zh' (Chinese) or 'en' (English)

    # === AI Models ===
    # PydanticAI format: provider:model (e.g., 'google-gla:gemini-2.5-flash')
    search_model: str = "google-gla:gemini-2.5-flash"  # Grounded search
    reasoning_model: str = "google-gla:gemini-2.5-flash"  # Extraction / analysis / poem
    image_model: str = "gemini-2.5-flash-image"  # Share card image

    # === Stage Behavior ===
    news_item_count: int = 6  # NEWS_ITEM_COUNT - Items extracted per search
    search_window_days: int = 30  # SEARCH_WINDOW_DAYS - Stated in prompt only
    search_context_chars: int = 10000  # SEARCH_CONTEXT_CHARS - Prose cap for extraction
    image_aspect_ratio: str = "1:1"  # IMAGE_ASPECT_RATIO

    # === Gateway ===
    request_timeout_seconds: float = 90.0  # REQUEST_TIMEOUT_SECONDS - Per call
    output_retries: int = 0  # OUTPUT_RETRIES - Structured output re-prompts

    # === Output Directories ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR

    # === Logging Configuration ===
    log_level: str = "INFO"  # LOG_LEVEL - DEBUG, INFO, WARNING, ERROR
    log_backup_count: int = 7  # LOG_BACKUP_COUNT - Number of rotated logs to keep
    log_max_bytes: int = 0  # LOG_MAX_BYTES - Max file size (0 = time-based rotation)
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json' for structured logging

    # === Optional: Observability ===
    # Requires: pip install logfire
    enable_logfire: bool = False  # ENABLE_LOGFIRE - Enable distributed tracing
    logfire_token: str = ""  # LOGFIRE_TOKEN - Authentication token

    @property
    def language_name(self) -> str:
        """Human-readable name of the output language for prompts."""
        return LANGUAGE_NAMES.get(self.language, LANGUAGE_NAMES["en"])

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY"),
            language=_env("LANGUAGE", "zh"),
            search_model=_env("SEARCH_MODEL", "google-gla:gemini-2.5-flash"),
            reasoning_model=_env("REASONING_MODEL", "google-gla:gemini-2.5-flash"),
            image_model=_env("IMAGE_MODEL", "gemini-2.5-flash-image"),
            news_item_count=_env_int("NEWS_ITEM_COUNT", 6),
            search_window_days=_env_int("SEARCH_WINDOW_DAYS", 30),
            search_context_chars=_env_int("SEARCH_CONTEXT_CHARS", 10000),
            image_aspect_ratio=_env("IMAGE_ASPECT_RATIO", "1:1"),
            request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", 90.0),
            output_retries=_env_int("OUTPUT_RETRIES", 0),
            log_dir=Path(_env("LOG_DIR", "log")),
            enable_logfire=_env_bool("ENABLE_LOGFIRE", False),
            logfire_token=_env("LOGFIRE_TOKEN"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 7),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
        )

    def validate(self) -> str | None:
        """Validate configuration for required fields and valid values.

        Checks:
            - GEMINI_API_KEY is set
            - Language is 'zh' or 'en'
            - Numeric values are positive
            - Aspect ratio and logging options are recognized

        Returns:
            Error message string if invalid, None if valid.
        """
        if not self.gemini_api_key:
            return "GEMINI_API_KEY environment variable is required"
        if self.language not in LANGUAGE_NAMES:
            return f"Invalid LANGUAGE '{self.language}' - must be 'zh' or 'en'"
        if self.news_item_count <= 0:
            return "NEWS_ITEM_COUNT must be positive"
        if self.search_window_days <= 0:
            return "SEARCH_WINDOW_DAYS must be positive"
        if self.search_context_chars <= 0:
            return "SEARCH_CONTEXT_CHARS must be positive"
        if self.request_timeout_seconds <= 0:
            return "REQUEST_TIMEOUT_SECONDS must be positive"
        if self.output_retries < 0:
            return "OUTPUT_RETRIES must be non-negative"
        if self.image_aspect_ratio not in SUPPORTED_ASPECT_RATIOS:
            return (
                f"Invalid IMAGE_ASPECT_RATIO '{self.image_aspect_ratio}' - "
                f"must be one of {', '.join(SUPPORTED_ASPECT_RATIOS)}"
            )
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be DEBUG, INFO, WARNING, ERROR, or CRITICAL"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0:
            return "LOG_BACKUP_COUNT must be non-negative"
        if self.log_max_bytes < 0:
            return "LOG_MAX_BYTES must be non-negative"
        return None
