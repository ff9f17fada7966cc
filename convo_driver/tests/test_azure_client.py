import httpx
import pytest

from convo_driver.config.settings import AzureCredentials
from convo_driver.domain.exceptions import EnvironmentVariableError, RemoteAPIError
from convo_driver.domain.models import ChatMessage, ChatRequest
from convo_driver.providers.azure_client import AzureOpenAIClient


def creds():
    return AzureCredentials(api_key="k", api_base="https://example.openai.azure.com", deployment_id="gpt")


def make_request():
    return ChatRequest.from_history(
        [
            ChatMessage(role="system", content="sys"),
            ChatMessage(role="user", content="hi"),
        ]
    )


def fake_client(resp, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["init"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, params=None, json=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["params"] = params
                captured["payload"] = json
                captured["headers"] = headers
            if isinstance(resp, Exception):
                raise resp
            return resp

    return Client


class Resp:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("not json")
        return self._data


def test_azure_client_builds_request(monkeypatch):
    captured = {}
    data = {"choices": [{"index": 0, "message": {"role": "assistant", "content": "ok"}}]}
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=data), captured))
    client = AzureOpenAIClient(credentials_resolver=creds, api_version="2023-05-15")

    texts = client.complete(make_request())

    assert texts == ["ok"]
    assert captured["url"] == "https://example.openai.azure.com/openai/deployments/gpt/chat/completions"
    assert captured["params"] == {"api-version": "2023-05-15"}
    assert captured["headers"]["api-key"] == "k"
    assert captured["payload"] == {
        "messages": [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]
    }
    assert captured["init"]["timeout"] is None


def test_azure_client_filters_empty_choices(monkeypatch):
    data = {
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": None}},
            {"index": 1, "message": {"role": "assistant", "content": "first"}},
            {"index": 2, "message": {"role": "assistant", "content": ""}},
            {"index": 3},
            {"index": 4, "message": {"role": "assistant", "content": "second"}},
        ],
        "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
    }
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=data)))
    client = AzureOpenAIClient(credentials_resolver=creds)

    result = client.chat(make_request())

    assert len(result.choices) == 5
    assert result.texts() == ["first", "second"]
    assert result.usage.total_tokens == 5
    assert result.elapsed is not None


def test_azure_client_no_choices_returns_empty_list(monkeypatch):
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data={"choices": []})))
    client = AzureOpenAIClient(credentials_resolver=creds)
    assert client.complete(make_request()) == []


@pytest.mark.parametrize(
    "status,code",
    [(401, "AUTH_ERROR"), (403, "AUTH_ERROR"), (429, "RATE_LIMIT"), (400, "API_ERROR"), (500, "API_ERROR")],
)
def test_azure_client_http_errors(monkeypatch, status, code):
    monkeypatch.setattr("httpx.Client", fake_client(Resp(status_code=status, text="boom")))
    client = AzureOpenAIClient(credentials_resolver=creds)

    with pytest.raises(RemoteAPIError) as ei:
        client.complete(make_request())
    assert ei.value.code == code
    assert ei.value.http_status == status


def test_azure_client_network_error(monkeypatch):
    err = httpx.ConnectError("connection refused")
    monkeypatch.setattr("httpx.Client", fake_client(err))
    client = AzureOpenAIClient(credentials_resolver=creds)

    with pytest.raises(RemoteAPIError) as ei:
        client.complete(make_request())
    assert ei.value.code == "NETWORK_ERROR"
    assert ei.value.cause is err
    assert ei.value.__cause__ is err


def test_azure_client_bad_json(monkeypatch):
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=None, text="<html>")))
    client = AzureOpenAIClient(credentials_resolver=creds)

    with pytest.raises(RemoteAPIError) as ei:
        client.complete(make_request())
    assert ei.value.code == "BAD_RESPONSE"


def test_azure_client_missing_env_makes_no_call(monkeypatch):
    calls = []

    class Client:
        def __init__(self, *a, **kw):
            calls.append("init")

    monkeypatch.setattr("httpx.Client", Client)
    for name in ("OPENAI_API_KEY", "ENDPOINT", "DEPLOYMENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENDPOINT", "https://example.openai.azure.com")
    client = AzureOpenAIClient()

    with pytest.raises(EnvironmentVariableError) as ei:
        client.complete(make_request())
    assert ei.value.extra["missing"] == ["OPENAI_API_KEY", "DEPLOYMENT"]
    assert calls == []


def test_azure_client_resolves_credentials_each_call(monkeypatch):
    captured = {}
    data = {"choices": [{"message": {"content": "ok"}}]}
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=data), captured))
    monkeypatch.setenv("OPENAI_API_KEY", "first-key")
    monkeypatch.setenv("ENDPOINT", "https://example.openai.azure.com/")
    monkeypatch.setenv("DEPLOYMENT", "gpt")
    client = AzureOpenAIClient()

    client.complete(make_request())
    assert captured["headers"]["api-key"] == "first-key"
    assert captured["url"].startswith("https://example.openai.azure.com/openai/")

    monkeypatch.setenv("OPENAI_API_KEY", "rotated-key")
    client.complete(make_request())
    assert captured["headers"]["api-key"] == "rotated-key"


def test_azure_client_choices_not_a_list(monkeypatch):
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data={"choices": 5})))
    client = AzureOpenAIClient(credentials_resolver=creds)

    with pytest.raises(RemoteAPIError) as ei:
        client.complete(make_request())
    assert ei.value.code == "BAD_RESPONSE"
    assert ei.value.http_status == 200


def test_azure_client_ignores_malformed_usage(monkeypatch):
    data = {"choices": [{"message": {"content": "ok"}}], "usage": ["bogus"]}
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=data)))
    client = AzureOpenAIClient(credentials_resolver=creds)

    result = client.chat(make_request())
    assert result.texts() == ["ok"]
    assert result.usage is None


def test_azure_client_non_numeric_usage_counts(monkeypatch):
    data = {"choices": [{"message": {"content": "ok"}}], "usage": {"prompt_tokens": "3", "total_tokens": 7}}
    monkeypatch.setattr("httpx.Client", fake_client(Resp(data=data)))
    client = AzureOpenAIClient(credentials_resolver=creds)

    usage = client.chat(make_request()).usage
    assert usage.prompt_tokens == 0
    assert usage.total_tokens == 7
