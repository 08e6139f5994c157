from pathlib import Path

import pytest

from referly.settings import InsecureConfigurationError, Settings, validate_settings

ENV_EXAMPLE = Path(__file__).resolve().parent.parent / ".env.example"


def test_env_example_lists_every_setting():
    keys = {
        line.split("=", 1)[0].strip().lower()
        for line in ENV_EXAMPLE.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    }

    assert keys == set(Settings.model_fields)


def test_bcrypt_rounds_from_environment(monkeypatch):
    monkeypatch.setenv("BCRYPT_ROUNDS", "10")
    assert Settings(_env_file=None).bcrypt_rounds == 10


def test_bcrypt_rounds_bounds():
    with pytest.raises(ValueError):
        Settings(_env_file=None, bcrypt_rounds=3)


def test_production_rejects_weak_secret():
    with pytest.raises(InsecureConfigurationError):
        validate_settings(Settings(_env_file=None, env="production", jwt_secret_key="secret"))

    validate_settings(Settings(_env_file=None, env="production", jwt_secret_key="x" * 32))
