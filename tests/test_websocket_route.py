import asyncio
import json
from types import SimpleNamespace

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from chat_relay.domain.exceptions import ConnectionGoneError
from chat_relay.infrastructure.config import Settings
from chat_relay.infrastructure.websocket_sink import WebSocketSink
from chat_relay.interface.app import create_app
from chat_relay.interface.dependencies import RelayRuntime
from chat_relay.interface.routes import relay

from conftest import FakeCompletionClient


def _envelope(response_type, prompt_template="SYS"):
    return {
        "prompt_template": prompt_template,
        "messages": [{"role": "user", "content": "Hi"}],
        "response_type": response_type,
    }


@pytest.fixture
def llm():
    return FakeCompletionClient()


@pytest.fixture
def client(llm, prompts):
    settings = Settings(openai_api_key="sk-test", openai_model="")
    app = create_app(settings=settings, llm=llm, prompts=prompts)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_full_answer_is_one_text_frame(client, llm):
    llm.answer = "Hello there."
    with client.websocket_connect("/ws") as ws:
        ws.send_json(_envelope("full"))
        assert ws.receive_text() == "Hello there."


def test_stream_frames_end_with_sentinel(client, llm):
    llm.fragments = ["He", "llo", " “you”"]
    with client.websocket_connect("/ws") as ws:
        ws.send_json(_envelope("stream"))
        frames = [ws.receive_text() for _ in range(4)]
    assert frames == ["He", "llo", ' "you"', "<END>"]


def test_failure_is_json_error_frame_and_connection_stays_open(client, llm):
    llm.answer = "No number here."
    with client.websocket_connect("/ws") as ws:
        ws.send_json(_envelope("int"))
        error = ws.receive_json()
        assert error["status"] == "error"
        assert error["code"] == 502
        assert "No number here." in error["message"]

        llm.answer = "The result is [[123]]."
        ws.send_json(_envelope("int"))
        assert ws.receive_text() == "123"


def test_unknown_mode_error_frame(client, llm):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(_envelope("csv"))
        assert ws.receive_json() == {
            "status": "error",
            "code": 400,
            "message": "Incorrect response type: csv",
        }
    assert llm.upstream_calls == 0


def test_invalid_json_error_frame(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        error = ws.receive_json()
    assert error["code"] == 400
    assert error["message"].startswith("Error parsing request JSON")


# ── Dropped connections ─────────────────────────────────────────────────────


class _GoneWebSocket:
    """Stand-in socket whose client has already disconnected."""

    def __init__(self, frames, send_error=RuntimeError("Cannot call 'send' once a close message has been sent.")):
        self._frames = list(frames)
        self._send_error = send_error
        self.url = SimpleNamespace(path="/ws")
        self.accepted = False
        self.json_attempts = []

    async def accept(self):
        self.accepted = True

    async def receive_text(self):
        if not self._frames:
            raise WebSocketDisconnect(code=1000)
        return self._frames.pop(0)

    async def send_text(self, data):
        raise self._send_error

    async def send_json(self, data):
        self.json_attempts.append(data)
        raise self._send_error


def _runtime(llm, prompts):
    return RelayRuntime(
        settings=Settings(openai_api_key="sk-test", openai_model=""),
        prompts=prompts,
        llm=llm,
    )


@pytest.mark.parametrize(
    "error", [RuntimeError("closed"), OSError("client disconnected"), WebSocketDisconnect(code=1006)]
)
def test_sink_send_failure_is_connection_gone(error, target):
    sink = WebSocketSink(_GoneWebSocket([], send_error=error))

    with pytest.raises(ConnectionGoneError):
        asyncio.run(sink.push(target, "He"))
    with pytest.raises(ConnectionGoneError):
        asyncio.run(sink.push_json(target, {"status": "error"}))


def test_route_returns_quietly_when_push_fails(llm, prompts):
    llm.fragments = ["He", "llo"]
    ws = _GoneWebSocket([json.dumps(_envelope("stream")), json.dumps(_envelope("full"))])

    asyncio.run(relay(ws, runtime=_runtime(llm, prompts)))

    assert ws.accepted
    assert llm.stream_closed
    assert llm.upstream_calls == 1
    assert ws.json_attempts == []


def test_route_returns_quietly_when_error_frame_cannot_be_sent(llm, prompts):
    ws = _GoneWebSocket([json.dumps(_envelope("csv")), json.dumps(_envelope("full"))])

    asyncio.run(relay(ws, runtime=_runtime(llm, prompts)))

    assert llm.upstream_calls == 0
    assert len(ws.json_attempts) == 1
