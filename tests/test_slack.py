from urllib.parse import parse_qs

import httpx
import pytest

from slackmcp.slack import DEFAULT_API_URL, SlackClient, SlackError


def _client(responses, seen, api_url=DEFAULT_API_URL):
    queue = list(responses)

    def handler(request):
        seen.append(request)
        return queue.pop(0)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    return SlackClient("token", http_client=http, api_url=api_url)


def _form(request):
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def test_auth_test_posts_token():
    seen = []
    client = _client([httpx.Response(200, json={"ok": True, "url": "https://team.example.com/"})], seen)
    result = client.auth_test()
    assert result["url"] == "https://team.example.com/"
    assert seen[0].method == "POST"
    assert str(seen[0].url) == DEFAULT_API_URL + "auth.test"
    assert _form(seen[0])["token"] == "token"


def test_custom_api_url_is_used():
    seen = []
    client = _client(
        [httpx.Response(200, json={"ok": True})], seen, api_url="https://team.example.com/api/"
    )
    client.auth_test()
    assert str(seen[0].url).startswith("https://team.example.com/api/")


def test_api_error_is_raised():
    seen = []
    client = _client([httpx.Response(200, json={"ok": False, "error": "channel_not_found"})], seen)
    with pytest.raises(SlackError, match="channel_not_found"):
        client.get_conversation_history("C1")


def test_http_error_status_is_raised():
    seen = []
    client = _client([httpx.Response(500)], seen)
    with pytest.raises(SlackError) as info:
        client.auth_test()
    assert info.value.retry_after is None


def test_get_conversations_sends_parameters():
    seen = []
    body = {
        "ok": True,
        "channels": [{"id": "C1", "name": "general"}],
        "response_metadata": {"next_cursor": "next"},
    }
    client = _client([httpx.Response(200, json=body)], seen)
    channels, cursor = client.get_conversations(
        types=["public_channel", "im"], limit=50, cursor="start", exclude_archived=True
    )
    form = _form(seen[0])
    assert channels == body["channels"]
    assert cursor == "next"
    assert form["types"].split(",") == ["public_channel", "im"]
    assert form["limit"] == "50"
    assert form["cursor"] == "start"
    assert form["exclude_archived"] == "true"


def test_get_conversations_omits_empty_parameters():
    seen = []
    client = _client([httpx.Response(200, json={"ok": True, "channels": []})], seen)
    channels, cursor = client.get_conversations()
    form = _form(seen[0])
    assert (channels, cursor) == ([], "")
    assert "limit" not in form
    assert "cursor" not in form
    assert "types" not in form


def test_history_returns_payload():
    seen = []
    body = {"ok": True, "messages": [{"ts": "1.0", "text": "hi"}], "has_more": False}
    client = _client([httpx.Response(200, json=body)], seen)
    result = client.get_conversation_history("C1", limit=10, oldest="100.000000")
    form = _form(seen[0])
    assert result["messages"] == body["messages"]
    assert form["channel"] == "C1"
    assert form["oldest"] == "100.000000"
    assert "latest" not in form


def test_replies_returns_tuple():
    seen = []
    body = {
        "ok": True,
        "messages": [{"ts": "1.0"}, {"ts": "2.0"}],
        "has_more": True,
        "response_metadata": {"next_cursor": "more"},
    }
    client = _client([httpx.Response(200, json=body)], seen)
    messages, has_more, cursor = client.get_conversation_replies("C1", "1.0")
    assert messages == body["messages"]
    assert has_more is True
    assert cursor == "more"
    assert _form(seen[0])["ts"] == "1.0"


def test_get_users_follows_cursor_and_retries():
    seen = []
    responses = [
        httpx.Response(200, json={"ok": True, "members": [{"id": "U1"}],
                                  "response_metadata": {"next_cursor": "c2"}}),
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(200, json={"ok": True, "members": [{"id": "U2"}],
                                  "response_metadata": {"next_cursor": ""}}),
    ]
    client = _client(responses, seen)
    users = client.get_users(limit=1000)
    assert [u["id"] for u in users] == ["U1", "U2"]
    assert _form(seen[2])["cursor"] == "c2"
    assert _form(seen[0])["limit"] == "1000"