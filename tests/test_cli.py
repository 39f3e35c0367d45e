import io
import json

import pytest

from slackmcp.cli import channels_watcher, main, users_watcher


class FakeProvider:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def refresh_users(self):
        self.calls.append("users")
        if self.error:
            raise self.error

    def refresh_channels(self):
        self.calls.append("channels")
        if self.error:
            raise self.error


def test_users_watcher_skips_demo_xoxp():
    provider = FakeProvider()
    assert users_watcher(provider, {"SLACK_MCP_XOXP_TOKEN": "demo"}) is False
    assert provider.calls == []


def test_channels_watcher_skips_demo_session_pair():
    provider = FakeProvider()
    env = {"SLACK_MCP_XOXC_TOKEN": "demo", "SLACK_MCP_XOXD_TOKEN": "demo"}
    assert channels_watcher(provider, env) is False
    assert provider.calls == []


def test_watchers_refresh_with_real_credentials():
    provider = FakeProvider()
    env = {"SLACK_MCP_XOXC_TOKEN": "demo", "SLACK_MCP_XOXD_TOKEN": "token"}
    assert users_watcher(provider, env) is True
    assert channels_watcher(provider, env) is True
    assert provider.calls == ["users", "channels"]


def test_watcher_error_propagates():
    provider = FakeProvider(error=RuntimeError("down"))
    with pytest.raises(RuntimeError, match="down"):
        users_watcher(provider, {"SLACK_MCP_XOXP_TOKEN": "token"})


@pytest.fixture
def no_credentials(monkeypatch):
    for name in ("SLACK_MCP_XOXP_TOKEN", "SLACK_MCP_XOXC_TOKEN", "SLACK_MCP_XOXD_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_main_without_credentials_fails(no_credentials):
    assert main([]) == 1


def test_main_rejects_unknown_transport(no_credentials, monkeypatch):
    monkeypatch.setenv("SLACK_MCP_XOXP_TOKEN", "demo")
    assert main(["--transport", "websocket"]) == 1


def test_main_serves_stdio(no_credentials, monkeypatch):
    monkeypatch.setenv("SLACK_MCP_XOXP_TOKEN", "demo")
    request = {"jsonrpc": "2.0", "id": 5, "method": "tools/list"}
    out = io.StringIO()
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(request) + "\n"))
    monkeypatch.setattr("sys.stdout", out)
    assert main(["-t", "stdio"]) == 0
    response = json.loads(out.getvalue().splitlines()[0])
    assert response["id"] == 5
    names = {tool["name"] for tool in response["result"]["tools"]}
    assert names == {"conversations_history", "conversations_replies", "channels_list"}