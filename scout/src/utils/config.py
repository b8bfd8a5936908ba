"""Configuration helpers for scout services."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_flag(*names: str, default: bool = False) -> bool:
    for name in names:
        raw = os.getenv(name)
        if raw is not None and raw.strip():
            return raw.strip().lower() in _TRUTHY
    return default


@dataclass(slots=True)
class OracleConfig:
    """Settings for the language-model decision oracle."""

    backend: str = "ollama"
    ollama_url: str = "http://127.0.0.1:11434"
    model: str = "gemma3:4b"
    timeout: float = 30.0
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 400
    top_p: float = 0.9
    confidence_threshold: float = 0.6
    probe_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "OracleConfig":
        return cls(
            backend=os.getenv("SCOUT_ORACLE_BACKEND", "ollama").strip().lower() or "ollama",
            ollama_url=os.getenv("OLLAMA_URL", "http://127.0.0.1:11434").rstrip("/"),
            model=os.getenv("OLLAMA_MODEL", "gemma3:4b"),
            timeout=_env_float("OLLAMA_TIMEOUT", 30.0),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("SCOUT_OPENAI_MODEL", "gpt-4o-mini"),
            temperature=_env_float("SCOUT_ORACLE_TEMPERATURE", 0.2),
            max_tokens=_env_int("SCOUT_ORACLE_MAX_TOKENS", 400),
            confidence_threshold=_env_float("SCOUT_CONFIDENCE_THRESHOLD", 0.6),
            probe_timeout=_env_float("SCOUT_ORACLE_PROBE_TIMEOUT", 5.0),
        )

    def __post_init__(self) -> None:
        # The liveness probe must stay short.
        self.probe_timeout = min(max(self.probe_timeout, 0.1), 5.0)


@dataclass(slots=True)
class ContextConfig:
    """Caps and slice sizes for the session knowledge store."""

    max_navigation: int = 20
    max_snapshots: int = 10
    max_decisions: int = 15
    max_patterns: int = 25
    related_snapshots: int = 3
    recent_navigation: int = 5
    recent_decisions: int = 3
    similar_components: int = 3
    successful_patterns: int = 5


@dataclass(slots=True)
class RelevanceConfig:
    """Constants for the deterministic keyword-overlap scorer."""

    match_weight: float = 0.8
    base_score: float = 0.2
    floor_score: float = 0.1
    cutoff: float = 0.3
    top_k: int = 3
    min_keyword_length: int = 3

    @classmethod
    def from_env(cls) -> "RelevanceConfig":
        return cls(
            cutoff=_env_float("SCOUT_RELEVANCE_CUTOFF", 0.3),
            top_k=_env_int("SCOUT_TOP_K", 3),
        )


@dataclass(slots=True)
class ExplorerConfig:
    """Browser and plan execution settings."""

    app_url: str = "http://localhost:3000"
    max_steps: int = 20
    disable_oracle: bool = False
    headless: bool = True
    step_pause: float = 0.5
    step_timeout: int = 5000
    navigation_timeout: int = 30000
    artifacts_dir: str = "./artifacts"

    @classmethod
    def from_env(cls) -> "ExplorerConfig":
        return cls(
            app_url=os.getenv("APP_URL", "http://localhost:3000"),
            max_steps=_env_int("MAX_STEPS", 20),
            disable_oracle=_env_flag("SCOUT_DISABLE_ORACLE", "DISABLE_AI"),
            headless=_env_flag("SCOUT_HEADLESS", default=True),
            step_pause=_env_float("SCOUT_STEP_PAUSE", 0.5),
            step_timeout=_env_int("SCOUT_STEP_TIMEOUT", 5000),
            navigation_timeout=_env_int("SCOUT_NAVIGATION_TIMEOUT", 30000),
            artifacts_dir=os.getenv("SCOUT_ARTIFACTS_DIR", "./artifacts"),
        )


@dataclass(slots=True)
class AppConfig:
    """Aggregated configuration for the explorer."""

    oracle: OracleConfig = field(default_factory=OracleConfig.from_env)
    context: ContextConfig = field(default_factory=ContextConfig)
    relevance: RelevanceConfig = field(default_factory=RelevanceConfig.from_env)
    explorer: ExplorerConfig = field(default_factory=ExplorerConfig.from_env)


CONFIG = AppConfig()
