"""Tests for configuration class selection."""
import pytest
from app.config import get_config_class, DevelopmentConfig, TestingConfig, ProductionConfig


def test_testing_config_uses_memory_db(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'testing')
    cfg = get_config_class()
    assert cfg is TestingConfig
    assert cfg.TESTING is True
    assert cfg.SQLALCHEMY_DATABASE_URI.startswith('sqlite://')
    assert cfg.RATELIMIT_ENABLED is False


def test_development_is_default(monkeypatch):
    monkeypatch.delenv('APP_ENV', raising=False)
    assert get_config_class() is DevelopmentConfig


def test_production_requires_secrets(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'production')
    for key in ('SECRET_KEY', 'DATABASE_URL', 'JWT_SECRET', 'STRIPE_WEBHOOK_SECRET'):
        monkeypatch.delenv(key, raising=False)
    with pytest.raises(RuntimeError) as exc:
        get_config_class()
    assert 'STRIPE_WEBHOOK_SECRET' in str(exc.value)


def test_production_with_secrets(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'production')
    monkeypatch.setenv('SECRET_KEY', 's')
    monkeypatch.setenv('DATABASE_URL', 'postgresql://db/orders')
    monkeypatch.setenv('JWT_SECRET', 'j')
    monkeypatch.setenv('STRIPE_WEBHOOK_SECRET', 'whsec_x')
    assert get_config_class() is ProductionConfig
