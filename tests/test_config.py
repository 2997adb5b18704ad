"""
Settings load from the environment; nothing is read at import time.
"""
from chainrisk import config
from chainrisk.config import CHAIN_IDS, Settings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("CHAINALYSIS_API_KEY", "k")
    monkeypatch.setenv("DEFAULT_CHAIN", " Polygon ")
    monkeypatch.setenv("SOURCE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.delenv("CROSS_CHAIN_API_KEY", raising=False)
    monkeypatch.setenv("CROSS_CHAIN_API_URL", "https://crosschain.test")

    s = Settings()

    assert s.sanctions_enabled is True
    assert s.cross_chain_enabled is False
    assert s.DEFAULT_CHAIN == "polygon"
    assert s.SOURCE_TIMEOUT_SECONDS == 2.5
    assert s.DEFAULT_CHAIN in CHAIN_IDS


def test_settings_built_on_demand_only():
    assert not hasattr(config, "settings")
    assert config.get_settings() is config.get_settings()
