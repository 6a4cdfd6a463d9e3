from __future__ import annotations

import pytest

from cpamm.config import EngineConfig


def test_defaults() -> None:
    cfg = EngineConfig()
    assert (cfg.default_fee_bps, cfg.lock_timeout_s, cfg.log_level) == (30, 5.0, "WARNING")


def test_from_env_reads_and_clamps(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CPAMM_DEFAULT_FEE_BPS", "20000")
    monkeypatch.setenv("CPAMM_LOCK_TIMEOUT_MS", "250")
    monkeypatch.setenv("CPAMM_LOG_LEVEL", "debug")
    cfg = EngineConfig.from_env()
    assert cfg.default_fee_bps == 10_000
    assert cfg.lock_timeout_s == 0.25
    assert cfg.log_level == "DEBUG"


def test_from_env_falls_back_on_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CPAMM_DEFAULT_FEE_BPS", "thirty")
    monkeypatch.setenv("CPAMM_LOCK_TIMEOUT_MS", "0")
    monkeypatch.setenv("CPAMM_LOG_LEVEL", "loud")
    cfg = EngineConfig.from_env()
    assert cfg.default_fee_bps == 30
    assert cfg.lock_timeout_s == 0.001
    assert cfg.log_level == "WARNING"


def test_from_env_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CPAMM_DEFAULT_FEE_BPS", "CPAMM_LOCK_TIMEOUT_MS", "CPAMM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    assert EngineConfig.from_env() == EngineConfig()


@pytest.mark.parametrize(
    "kwargs, exc",
    [
        ({"default_fee_bps": 10_001}, ValueError),
        ({"default_fee_bps": True}, TypeError),
        ({"lock_timeout_s": 0}, ValueError),
        ({"log_level": "chatty"}, ValueError),
    ],
)
def test_invalid_values_rejected(kwargs: dict, exc: type) -> None:
    with pytest.raises(exc):
        EngineConfig(**kwargs)
