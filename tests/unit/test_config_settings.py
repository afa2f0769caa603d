import pytest

from avidbase.config import settings
from avidbase.config.settings import _get_or_generate, load_settings
from avidbase.core.identity import AvidbaseClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate every test from the host environment and /run/secrets."""
    for var in (
        "DEMO_MODE",
        "AVIDBASE_ACCOUNT_ID",
        "AVIDBASE_API_KEY",
        "AVIDBASE_ENVIRONMENT",
        "AVIDBASE_BASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)

    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


def make_config(**overrides):
    base = dict(
        account_id="acct-1",
        api_key="key-1",
        environment="production",
        base_url="",
        demo_mode=False,
    )
    base.update(overrides)
    return settings.AvidbaseConfig(**base)


def test_resolved_base_url_production():
    assert make_config().resolved_base_url == "https://api.avidbase.com"


def test_resolved_base_url_development():
    assert make_config(environment="development").resolved_base_url == "https://dev-api.avidbase.com"


def test_resolved_base_url_override():
    cfg = make_config(base_url="http://localhost:9000/")
    assert cfg.resolved_base_url == "http://localhost:9000"


def test_repr_masks_api_key():
    assert "key-1" not in repr(make_config())


def test_load_settings_from_environment(monkeypatch):
    monkeypatch.setenv("AVIDBASE_ACCOUNT_ID", "acct-env")
    monkeypatch.setenv("AVIDBASE_API_KEY", "key-env")
    monkeypatch.setenv("AVIDBASE_ENVIRONMENT", "Development")

    cfg = load_settings()

    assert cfg.account_id == "acct-env"
    assert cfg.api_key == "key-env"
    assert cfg.environment == "development"
    assert not cfg.demo_mode


def test_load_settings_prefers_run_secrets(monkeypatch, clean_env):
    (clean_env / "avidbase_api_key").write_text("file-key\n")
    monkeypatch.setenv("AVIDBASE_ACCOUNT_ID", "acct-env")
    monkeypatch.setenv("AVIDBASE_API_KEY", "key-env")

    cfg = load_settings()

    assert cfg.api_key == "file-key"


def test_load_settings_requires_credentials_in_production(monkeypatch):
    monkeypatch.setenv("AVIDBASE_ACCOUNT_ID", "acct-env")

    with pytest.raises(RuntimeError, match="AVIDBASE_API_KEY"):
        load_settings()


def test_load_settings_demo_defaults(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = load_settings()

    assert cfg.demo_mode
    assert cfg.account_id == settings.DEMO_ACCOUNT_ID
    assert cfg.api_key == settings.DEMO_API_KEY
    assert cfg.environment == "development"


def test_load_settings_rejects_unknown_environment(monkeypatch):
    monkeypatch.setenv("AVIDBASE_ACCOUNT_ID", "acct-env")
    monkeypatch.setenv("AVIDBASE_API_KEY", "key-env")
    monkeypatch.setenv("AVIDBASE_ENVIRONMENT", "staging")

    with pytest.raises(ValueError):
        load_settings()


def test_client_from_settings():
    client = AvidbaseClient.from_settings(make_config(environment="development"))
    assert client.account_id == "acct-1"
    assert client.base_url == "https://dev-api.avidbase.com"
    assert client.machine_token is None


def test_get_or_generate_returns_env(monkeypatch):
    monkeypatch.setenv("SOME_VAR", "value")
    assert _get_or_generate("SOME_VAR") == "value"


def test_get_or_generate_optional_missing(monkeypatch):
    monkeypatch.delenv("SOME_VAR", raising=False)
    assert _get_or_generate("SOME_VAR", required=False) == ""
