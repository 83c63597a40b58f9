import httpx
import pytest

from replicate_core.domain.exceptions import (
    ApiError,
    ConfigurationError,
    MalformedResponseError,
    MessageValidationError,
    NetworkError,
    PollTimeoutError,
    RemoteJobError,
    UnsupportedFeatureError,
)
from replicate_core.domain.models import CallResult, ChatMessage
from replicate_core.providers.backends import FakePredictionBackend
from replicate_core.providers.replicate_client import ReplicateClient
from replicate_core.providers.replicate_config import ChatReplicateConfig
from replicate_core.tools.definitions import ToolDef, ToolParam


class SettingsStub:
    replicate_api_key = "r8_test_key_123"


def make_config(**overrides):
    attrs = {
        "model": "meta/llama-2-7b-chat",
        "version": "aabbccdd",
        "poll_interval": 0.001,
        "poll_max_interval": 0.001,
    }
    attrs.update(overrides)
    return ChatReplicateConfig.new(attrs)


class Resp:
    def __init__(self, body, status_code=200, text=""):
        self._body = body
        self.status_code = status_code
        self.text = text

    def json(self):
        return self._body


def install_replicate(monkeypatch, statuses, create=None):
    """安装一个假的 httpx.Client：POST 返回预测 id，GET 依次返回 statuses。"""

    state = {"posts": [], "gets": 0}
    pending = list(statuses)

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, **_):
            state["posts"].append(json)
            return create or Resp({"id": "pred-1", "status": "starting"}, status_code=201)

        def get(self, url, **_):
            state["gets"] += 1
            return Resp(pending.pop(0))

    monkeypatch.setattr("httpx.Client", Client)
    return state


def test_for_api_shape():
    client = ReplicateClient(make_config(temperature=1), SettingsStub())
    data = client.for_api([])
    assert data["version"] == "aabbccdd"
    assert data["input"]["temperature"] == 1
    assert data["input"]["top_p"] == 0.9
    assert data["input"]["top_k"] == 50
    assert data["input"]["prompt"] == ""
    assert data["input"]["system_prompt"] == ""


def test_call_success_polls_until_succeeded(monkeypatch):
    state = install_replicate(monkeypatch, [
        {"status": "starting"},
        {"status": "processing"},
        {"status": "succeeded", "output": ["Colorful", " Threads"]},
    ])
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([
        ChatMessage.system("Be brief."),
        ChatMessage.user("Return the response 'Colorful Threads'."),
    ])
    assert result.ok
    assert result.message.role == "assistant"
    assert result.message.content == "Colorful Threads"
    assert state["gets"] == 3
    assert state["posts"][0]["input"]["system_prompt"] == "Be brief."
    assert state["posts"][0]["input"]["prompt"] == "Return the response 'Colorful Threads'."


def test_call_with_plain_prompt_adds_default_system(monkeypatch):
    state = install_replicate(monkeypatch, [{"status": "succeeded", "output": ["Hi"]}])
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call("Say hi")
    assert result.message.content == "Hi"
    assert state["posts"][0]["input"]["system_prompt"] == "You are a helpful assistant."
    assert state["posts"][0]["input"]["prompt"] == "Say hi"


def test_call_failed_prediction(monkeypatch):
    install_replicate(monkeypatch, [{"status": "failed", "error": "Your input is too long."}])
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("x" * 100)])
    assert not result.ok
    assert isinstance(result.error, RemoteJobError)
    assert result.error_message == "Your input is too long."


def test_call_canceled_prediction(monkeypatch):
    install_replicate(monkeypatch, [{"status": "processing"}, {"status": "canceled"}])
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("hi")])
    assert result.error_message == "Prediction canceled"


def test_call_unknown_status(monkeypatch):
    install_replicate(monkeypatch, [{"status": "mystery"}])
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("hi")])
    assert isinstance(result.error, MalformedResponseError)


def test_call_submission_failure_is_not_retried(monkeypatch):
    state = install_replicate(monkeypatch, [], create=Resp({}, status_code=500, text="server error"))
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("hi")])
    assert isinstance(result.error, ApiError)
    assert result.error.http_status == 500
    assert len(state["posts"]) == 1
    assert state["gets"] == 0


def test_call_poll_network_error(monkeypatch):
    state = {"gets": 0}

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, **_):
            return Resp({"id": "pred-1", "status": "starting"}, status_code=201)

        def get(self, url, **_):
            state["gets"] += 1
            raise httpx.ReadTimeout("timed out")

    monkeypatch.setattr("httpx.Client", Client)
    received = []
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("hi")], callback=received.append)
    assert not result.ok
    assert isinstance(result.error, NetworkError)
    assert result.error.code == "NETWORK_ERROR"
    assert received == [result]
    assert state["gets"] == 1


def test_call_poll_attempts_exhausted(monkeypatch):
    install_replicate(monkeypatch, [{"status": "processing"}] * 5)
    client = ReplicateClient(make_config(poll_max_attempts=2), SettingsStub())
    result = client.call([ChatMessage.user("hi")])
    assert isinstance(result.error, PollTimeoutError)


def test_call_missing_api_key_raises(monkeypatch):
    class NoKey:
        replicate_api_key = None

    install_replicate(monkeypatch, [])
    client = ReplicateClient(make_config(), NoKey())
    with pytest.raises(ConfigurationError):
        client.call([ChatMessage.user("hi")])


def test_tools_rejected_before_any_request(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            raise AssertionError("no HTTP request may be made when tools are supplied")

    monkeypatch.setattr("httpx.Client", Client)
    tool = ToolDef(
        name="hello_world",
        description="Give a hello world greeting.",
        params={"name": ToolParam(name="name", description="who", required=False, schema={"type": "string"})},
    )
    received = []
    client = ReplicateClient(make_config(), SettingsStub())
    with pytest.raises(UnsupportedFeatureError) as exc:
        client.call([ChatMessage.user("greet")], tools=[tool], callback=received.append)
    assert exc.value.message == "Function calls are not currently supported for Replicate-hosted models"
    assert received == []


def test_invalid_role_becomes_failed_result():
    backend = FakePredictionBackend(CallResult.success(ChatMessage.assistant("unused")))
    received = []
    client = ReplicateClient(make_config(), SettingsStub(), backend=backend)
    result = client.call([ChatMessage(role="tool", content="x")], callback=received.append)  # type: ignore[arg-type]
    assert not result.ok
    assert isinstance(result.error, MessageValidationError)
    assert received == [result]
    assert backend.calls == []


def test_tools_rejected_with_fake_backend():
    backend = FakePredictionBackend(CallResult.success(ChatMessage.assistant("unused")))
    client = ReplicateClient(make_config(), SettingsStub(), backend=backend)
    with pytest.raises(UnsupportedFeatureError):
        client.call([ChatMessage.user("greet")], tools=[ToolDef(name="t", description="d")])
    assert backend.calls == []


def test_callback_receives_success_once(monkeypatch):
    install_replicate(monkeypatch, [{"status": "succeeded", "output": ["Hi"]}])
    received = []
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("Return the response 'Hi'.")], callback=received.append)
    assert len(received) == 1
    assert received[0] == result
    assert received[0].message.content == "Hi"


def test_callback_receives_error_once(monkeypatch):
    install_replicate(monkeypatch, [{"status": "failed", "error": "Your input is too long."}])
    received = []
    client = ReplicateClient(make_config(), SettingsStub())
    result = client.call([ChatMessage.user("hi")], callback=received.append)
    assert len(received) == 1
    assert received[0] is result
    assert received[0].error_message == "Your input is too long."


def test_callback_failure_does_not_change_result():
    backend = FakePredictionBackend(CallResult.success(ChatMessage.assistant("fine")))
    client = ReplicateClient(make_config(), SettingsStub(), backend=backend)

    def bad_callback(result):
        raise RuntimeError("observer exploded")

    result = client.call([ChatMessage.user("hi")], callback=bad_callback)
    assert result.ok
    assert result.message.content == "fine"


def test_fake_backend_fires_callback_without_network(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            raise AssertionError("fake backend must not touch the network")

    monkeypatch.setattr("httpx.Client", Client)
    fake = CallResult.success(ChatMessage.assistant("\n\nRainbow Sox Co."))
    backend = FakePredictionBackend(fake)
    received = []
    client = ReplicateClient(make_config(), SettingsStub(), backend=backend)

    result = client.call([ChatMessage.user("Name a sock company")], callback=received.append)
    assert result is fake
    assert received == [fake]
    assert backend.calls[0]["input"]["prompt"] == "Name a sock company"


def test_fake_backend_requires_call_result():
    with pytest.raises(ConfigurationError):
        FakePredictionBackend({"status": "succeeded", "output": ["x"]})  # type: ignore[arg-type]


def test_latest_version_uses_configured_model(monkeypatch):
    urls = []

    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, url, **_):
            urls.append(url)
            return Resp({"results": [{"id": "ac944f2e"}]})

    monkeypatch.setattr("httpx.Client", Client)
    client = ReplicateClient(make_config(model="meta/llama-2-13b-chat"), SettingsStub())
    assert client.latest_version() == "ac944f2e"
    assert urls == ["https://api.replicate.com/v1/models/meta/llama-2-13b-chat/versions"]
