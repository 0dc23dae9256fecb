# test_config.py
import json
import pathlib
import sys
from pathlib import Path

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import config  # noqa: E402
from config import Environment, get_settings  # noqa: E402

CONFIG_JSON = Path(config.__file__).with_name("config.json")


def _settings():
    get_settings.cache_clear()
    return get_settings()


def test_defaults_from_config():
    settings = _settings()
    data = json.loads(CONFIG_JSON.read_text())
    assert settings.redis_url == data["redis_url"]
    assert settings.merchant_name == data["merchant_name"]
    assert settings.bank_accounts[0].bank_name == data["bank_accounts"][0]["bank_name"]


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://override")
    monkeypatch.setenv("TAX_RATE", "0.1")
    settings = _settings()
    assert settings.redis_url == "redis://override"
    assert settings.tax_rate == 0.1
    monkeypatch.delenv("REDIS_URL")
    monkeypatch.delenv("TAX_RATE")
    get_settings.cache_clear()


def test_missing_key_uses_default(monkeypatch):
    original = CONFIG_JSON.read_text()
    monkeypatch.setattr(
        Path,
        "read_text",
        lambda self: json.dumps(
            {k: v for k, v in json.loads(original).items() if k != "service_fee_rate"}
        ),
    )
    settings = _settings()
    assert settings.service_fee_rate == 0.05
    get_settings.cache_clear()


def test_production_flag(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    settings = _settings()
    assert settings.env is Environment.PRODUCTION
    assert settings.is_production
    monkeypatch.delenv("ENV")
    get_settings.cache_clear()
