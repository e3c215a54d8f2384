from pathlib import Path

import yaml

from anomaly_watch.config import CONFIG, Config, SubmissionConfig, TrackingConfig, load_config


def test_module_config_loaded():
    assert isinstance(CONFIG, Config)
    assert isinstance(CONFIG.tracking, TrackingConfig)
    assert isinstance(CONFIG.submission, SubmissionConfig)


def test_defaults_when_file_missing(tmp_path: Path):
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.tracking.enable_tracking is True
    assert cfg.tracking.api_key == ""
    assert cfg.tracking.show_overlay is True
    assert cfg.api.endpoint == "https://ping.bothunter.cloud"
    assert cfg.api.timeout_seconds == 30.0
    assert cfg.submission.flush_interval_ticks == 100
    assert cfg.submission.max_retries == 3
    assert cfg.submission.retry_delay_seconds == 5.0
    assert cfg.cache.score_ttl_seconds == 60.0


def test_values_from_yaml(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "tracking": {"enable_tracking": False, "api_key": "abc"},
                "api": {"mode": "live", "timeout_seconds": 2},
                "submission": {"flush_interval_ticks": 10, "max_retries": 1},
                "logging": {"global_level": "debug", "module_levels": {"httpx": "WARNING"}},
            }
        )
    )
    cfg = load_config(path)
    assert cfg.tracking.enable_tracking is False
    assert cfg.tracking.api_key == "abc"
    assert cfg.api.mode == "live"
    assert cfg.api.timeout_seconds == 2.0
    assert cfg.submission.flush_interval_ticks == 10
    assert cfg.submission.max_retries == 1
    assert cfg.submission.retry_delay_seconds == 5.0
    assert cfg.logging.global_level == "DEBUG"
    assert cfg.logging.module_levels == {"httpx": "WARNING"}


def test_repo_config_contains_keys():
    data = yaml.safe_load((Path(__file__).resolve().parents[1] / "config.yaml").read_text())
    assert data["submission"]["flush_interval_ticks"] == 100
    assert data["cache"]["score_ttl_seconds"] == 60
    assert data["api"]["mode"] == "echo"
