"""Tests for configuration loading."""

from webanalyzer.config import AnalyzerConfig, resolve_config


def test_defaults():
    config = AnalyzerConfig()
    assert config.page_timeout == 30
    assert config.probe_timeout == 5
    assert config.page_max_redirects == 10
    assert config.probe_max_redirects == 5
    assert config.max_concurrent_probes == 10
    assert config.global_probe_limit == 100


def test_from_env(monkeypatch):
    monkeypatch.setenv("PAGE_TIMEOUT", "12.5")
    monkeypatch.setenv("MAX_CONCURRENT_PROBES", "4")
    monkeypatch.setenv("GLOBAL_PROBE_LIMIT", "0")
    monkeypatch.setenv("USER_AGENT", "Custom/1.0")

    config = AnalyzerConfig.from_env()

    assert config.page_timeout == 12.5
    assert config.max_concurrent_probes == 4
    assert config.global_probe_limit == 0
    assert config.user_agent == "Custom/1.0"
    assert config.probe_timeout == 5


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("PROBE_TIMEOUT", "fast")
    monkeypatch.setenv("PAGE_MAX_REDIRECTS", "1.5")

    config = AnalyzerConfig.from_env()

    assert config.probe_timeout == 5
    assert config.page_max_redirects == 10


def test_to_dict():
    data = AnalyzerConfig(user_agent="X").to_dict()
    assert data["user_agent"] == "X"
    assert set(data) == {
        "page_timeout", "probe_timeout", "page_max_redirects", "probe_max_redirects",
        "max_concurrent_probes", "global_probe_limit", "user_agent",
    }


def test_resolve_config_prefers_explicit():
    config = AnalyzerConfig(max_concurrent_probes=2)
    assert resolve_config(config) is config
    assert isinstance(resolve_config(None), AnalyzerConfig)
