import asyncio

from anomaly_watch.config import ApiConfig
from anomaly_watch.scoring.fetcher import parse_score
from anomaly_watch.transport.api_client import ScoringApiClient


def test_current_mode_env_override(monkeypatch):
    monkeypatch.setenv("AW_API_MODE", "LIVE")
    assert ScoringApiClient.current_mode(ApiConfig(mode="echo")) == "live"


def test_current_mode_from_config(monkeypatch):
    monkeypatch.delenv("AW_API_MODE", raising=False)
    assert ScoringApiClient.current_mode(ApiConfig(mode="live")) == "live"
    assert ScoringApiClient.current_mode(ApiConfig(mode="bogus")) == "echo"


def test_echo_mode_is_offline_and_deterministic(mock_scoring_api):
    api = ScoringApiClient("https://scores.test/api", mode="echo")

    first = asyncio.run(api.get_score("Zezima"))
    second = asyncio.run(api.get_score("Zezima"))
    posted = asyncio.run(api.post_batch({"players": [{"name": "Zezima"}]}))

    assert first.status_code == 200
    score = parse_score(first)
    assert 0.0 <= score <= 1.0
    assert parse_score(second) == score
    assert posted.status_code == 202
    assert mock_scoring_api.calls == []


def test_live_mode_uses_configured_timeout(live_api, mock_scoring_api):
    mock_scoring_api.queue_get((200, {"anomalyScore": 0.4}))
    response = asyncio.run(live_api.get_score("A"))
    assert parse_score(response) == 0.4
    assert mock_scoring_api.client_kwargs == [{"timeout": 1.0}]

    asyncio.run(live_api.post_batch({"players": []}))
    assert mock_scoring_api.requests("POST") == [("POST", "https://scores.test/api", {"players": []})]


def test_defaults_come_from_api_config(monkeypatch):
    monkeypatch.delenv("AW_API_MODE", raising=False)
    api = ScoringApiClient(api_config=ApiConfig(endpoint="https://x.test", timeout_seconds=3, mode="live"))
    assert api.endpoint == "https://x.test"
    assert api.timeout == 3
    assert api.mode == "live"
