import pytest

from chat_relay.domain.exceptions import ConfigMissingError
from chat_relay.infrastructure.config import load_settings
from chat_relay.infrastructure.prompt_templates import PromptTemplates


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "OPENAI_MODEL", "API_GW_ENDPOINT", "OPENAI_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_loads_required_values(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("API_GW_ENDPOINT", "https://abc.execute-api.eu-west-1.amazonaws.com/prod")

    settings = load_settings()

    assert settings.openai_api_key.get_secret_value() == "sk-test"
    assert settings.api_gw_endpoint.endswith("/prod")
    assert settings.openai_model == ""


def test_missing_api_key_is_fatal(monkeypatch):
    monkeypatch.setenv("API_GW_ENDPOINT", "https://abc.execute-api.eu-west-1.amazonaws.com/prod")
    with pytest.raises(ConfigMissingError, match="openai_api_key"):
        load_settings()


def test_empty_api_key_is_fatal(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("API_GW_ENDPOINT", "https://abc.execute-api.eu-west-1.amazonaws.com/prod")
    with pytest.raises(ConfigMissingError, match="OPENAI_API_KEY"):
        load_settings()


def test_missing_push_endpoint_is_fatal_when_required(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with pytest.raises(ConfigMissingError, match="API_GW_ENDPOINT"):
        load_settings()


def test_push_endpoint_optional_for_direct_websocket(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    settings = load_settings(require_push_endpoint=False)
    assert settings.openai_model == "gpt-4o"


def test_prompt_templates_resolve_by_name():
    templates = PromptTemplates({"PROMPT_MATH": "Answer with [[n]]."})
    assert templates.resolve("PROMPT_MATH") == "Answer with [[n]]."
    assert templates.resolve("PROMPT_UNKNOWN") == ""
    assert templates.resolve("") == ""


def test_prompt_templates_snapshot_environment(monkeypatch):
    monkeypatch.setenv("PROMPT_SNAPSHOT", "first")
    templates = PromptTemplates.from_environ()
    monkeypatch.setenv("PROMPT_SNAPSHOT", "second")
    assert templates.resolve("PROMPT_SNAPSHOT") == "first"
