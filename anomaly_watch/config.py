"""Configuration loader for anomaly_watch."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"

DEFAULT_ENDPOINT = "https://ping.bothunter.cloud"


@dataclass
class TrackingConfig:
    """User-facing toggles and the forwarded API credential."""

    enable_tracking: bool = True
    api_key: str = ""
    show_overlay: bool = True


@dataclass
class ApiConfig:
    """Scoring service endpoint and transport settings."""

    endpoint: str = DEFAULT_ENDPOINT
    timeout_seconds: float = 30.0
    mode: str = "echo"


@dataclass
class SubmissionConfig:
    """Batch flush cadence and retry policy."""

    flush_interval_ticks: int = 100
    max_retries: int = 3
    retry_delay_seconds: float = 5.0


@dataclass
class CacheConfig:
    score_ttl_seconds: float = 60.0


@dataclass
class SessionConfig:
    # 0.6s game ticks
    tick_rate: float = 1 / 0.6


@dataclass
class LoggingConfig:
    global_level: str = "INFO"
    module_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Top level configuration dataclass."""

    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_config(data: dict[str, Any]) -> Config:
    """Convert raw ``data`` into :class:`Config`."""

    tracking_data = data.get("tracking", {}) or {}
    tracking = TrackingConfig(
        enable_tracking=bool(tracking_data.get("enable_tracking", True)),
        api_key=str(tracking_data.get("api_key", "") or ""),
        show_overlay=bool(tracking_data.get("show_overlay", True)),
    )

    api_data = data.get("api", {}) or {}
    api = ApiConfig(
        endpoint=str(api_data.get("endpoint", DEFAULT_ENDPOINT)),
        timeout_seconds=float(api_data.get("timeout_seconds", 30)),
        mode=str(api_data.get("mode", "echo")),
    )

    submission_data = data.get("submission", {}) or {}
    submission = SubmissionConfig(
        flush_interval_ticks=int(submission_data.get("flush_interval_ticks", 100)),
        max_retries=int(submission_data.get("max_retries", 3)),
        retry_delay_seconds=float(submission_data.get("retry_delay_seconds", 5)),
    )

    cache_data = data.get("cache", {}) or {}
    cache = CacheConfig(
        score_ttl_seconds=float(cache_data.get("score_ttl_seconds", 60)),
    )

    session_data = data.get("session", {}) or {}
    session = SessionConfig(
        tick_rate=float(session_data.get("tick_rate", 1 / 0.6)),
    )

    logging_data = data.get("logging", {}) or {}
    logging_cfg = LoggingConfig(
        global_level=str(logging_data.get("global_level", "INFO")).upper(),
        module_levels=dict(logging_data.get("module_levels") or {}),
    )

    return Config(
        tracking=tracking,
        api=api,
        submission=submission,
        cache=cache,
        session=session,
        logging=logging_cfg,
    )


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load configuration from ``path`` and return a :class:`Config`."""

    path = Path(path)
    if path.is_file():
        raw = yaml.safe_load(path.read_text()) or {}
    else:
        raw = {}
    return _parse_config(raw)


# Load configuration at module import time.
CONFIG = load_config()


__all__ = [
    "CONFIG",
    "Config",
    "TrackingConfig",
    "ApiConfig",
    "SubmissionConfig",
    "CacheConfig",
    "SessionConfig",
    "LoggingConfig",
    "load_config",
]
