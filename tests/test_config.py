# tests/test_config.py
import pytest

from spades_arena.config import DEFAULT_MAX_ROUNDS, GameConfig


def test_defaults():
    config = GameConfig()
    assert config.target_score == 500
    assert config.max_rounds == DEFAULT_MAX_ROUNDS


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("SPADES_TARGET_SCORE", "250")
    monkeypatch.setenv("SPADES_MAX_ROUNDS", "12")
    config = GameConfig.from_env()
    assert config.target_score == 250
    assert config.max_rounds == 12


def test_from_env_defaults_when_unset(monkeypatch):
    monkeypatch.delenv("SPADES_TARGET_SCORE", raising=False)
    monkeypatch.setenv("SPADES_MAX_ROUNDS", "")
    config = GameConfig.from_env()
    assert config.target_score == 500
    assert config.max_rounds == DEFAULT_MAX_ROUNDS


def test_from_env_rejects_non_integers(monkeypatch):
    monkeypatch.setenv("SPADES_TARGET_SCORE", "lots")
    with pytest.raises(ValueError):
        GameConfig.from_env()


@pytest.mark.parametrize("kwargs", [{"target_score": 0}, {"max_rounds": -1}])
def test_non_positive_values_rejected(kwargs):
    with pytest.raises(ValueError):
        GameConfig(**kwargs)
