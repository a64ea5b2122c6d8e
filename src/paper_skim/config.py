"""Configuration loading for the paper ingestion pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path


@dataclass(slots=True)
class FetchConfig:
    """Download limits for remote paper content."""

    timeout_seconds: float = 60.0
    max_bytes: int = 100 * 1024 * 1024
    user_agent: str = "Skim-Research-Reader/1.0"


@dataclass(slots=True)
class ExtractConfig:
    """PDF text extraction limits."""

    max_pages: int = 2000
    min_text_chars: int = 100


@dataclass(slots=True)
class ModelConfig:
    """Reasoning model endpoint and request settings."""

    model_name: str = "claude-sonnet-4-5-20250929"
    endpoint: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"
    request_timeout_seconds: float = 120.0
    analysis_max_tokens: int = 2000
    annotation_max_tokens: int = 1000
    chat_max_tokens: int = 1500


@dataclass(slots=True)
class LimitsConfig:
    """Character ceilings applied to document text before transmission."""

    analysis_max_chars: int = 150_000
    context_max_chars: int = 50_000


@dataclass(slots=True)
class PricingConfig:
    """Approximate USD price per token."""

    input_rate_per_token: Decimal = Decimal("0.000003")
    output_rate_per_token: Decimal = Decimal("0.000015")


@dataclass(slots=True)
class RuntimeConfig:
    """Runtime behavior configuration."""

    db_path: str = "data/usage.sqlite3"
    output_dir: str = "output"
    output_pdf: bool = False
    retry_attempts: int = 3
    retry_backoff_seconds: float = 2.0


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


DEFAULT_CONFIG_PATH = Path("config/default_config.json")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, uses default config.

    Returns:
        Parsed AppConfig object. Sections or keys missing from the file
        keep their defaults.

    Raises:
        FileNotFoundError: If config file does not exist.
        ValueError: If a section is not a JSON object.
    """

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    data = json.loads(config_path.read_text(encoding="utf-8"))
    for name in ("fetch", "extract", "model", "limits", "pricing", "runtime"):
        if not isinstance(data.get(name, {}), dict):
            raise ValueError(f"Config section '{name}' must be an object")

    fetch_data = data.get("fetch", {})
    fetch = FetchConfig(
        timeout_seconds=float(fetch_data.get("timeout_seconds", 60.0)),
        max_bytes=int(fetch_data.get("max_bytes", 100 * 1024 * 1024)),
        user_agent=fetch_data.get("user_agent", "Skim-Research-Reader/1.0"),
    )

    extract_data = data.get("extract", {})
    extract = ExtractConfig(
        max_pages=int(extract_data.get("max_pages", 2000)),
        min_text_chars=int(extract_data.get("min_text_chars", 100)),
    )

    model_data = data.get("model", {})
    defaults = ModelConfig()
    model = ModelConfig(
        model_name=model_data.get("model_name", defaults.model_name),
        endpoint=model_data.get("endpoint", defaults.endpoint),
        api_version=model_data.get("api_version", defaults.api_version),
        request_timeout_seconds=float(
            model_data.get("request_timeout_seconds", defaults.request_timeout_seconds)
        ),
        analysis_max_tokens=int(model_data.get("analysis_max_tokens", defaults.analysis_max_tokens)),
        annotation_max_tokens=int(
            model_data.get("annotation_max_tokens", defaults.annotation_max_tokens)
        ),
        chat_max_tokens=int(model_data.get("chat_max_tokens", defaults.chat_max_tokens)),
    )

    limits_data = data.get("limits", {})
    limits = LimitsConfig(
        analysis_max_chars=int(limits_data.get("analysis_max_chars", 150_000)),
        context_max_chars=int(limits_data.get("context_max_chars", 50_000)),
    )

    # Rates go through str() so JSON floats do not leak binary rounding.
    pricing_data = data.get("pricing", {})
    pricing = PricingConfig(
        input_rate_per_token=Decimal(str(pricing_data.get("input_rate_per_token", "0.000003"))),
        output_rate_per_token=Decimal(str(pricing_data.get("output_rate_per_token", "0.000015"))),
    )

    runtime_data = data.get("runtime", {})
    runtime = RuntimeConfig(
        db_path=runtime_data.get("db_path", "data/usage.sqlite3"),
        output_dir=runtime_data.get("output_dir", "output"),
        output_pdf=bool(runtime_data.get("output_pdf", False)),
        retry_attempts=int(runtime_data.get("retry_attempts", 3)),
        retry_backoff_seconds=float(runtime_data.get("retry_backoff_seconds", 2.0)),
    )

    return AppConfig(
        fetch=fetch,
        extract=extract,
        model=model,
        limits=limits,
        pricing=pricing,
        runtime=runtime,
    )
