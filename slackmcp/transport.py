"""HTTP transport that presents a browser identity and session cookie."""

import httpx

_COOKIE_SESSION_SUFFIX = ";d-s=1744415074"


class UserAgentTransport(httpx.BaseTransport):
    """Wrap another transport, overriding User-Agent and Cookie on every request."""

    def __init__(self, transport, user_agent, cookie):
        self._transport = transport
        self.user_agent = user_agent
        self.cookie = cookie

    def handle_request(self, request):
        headers = request.headers.copy()
        headers["User-Agent"] = self.user_agent
        headers["Cookie"] = f"d={self.cookie}{_COOKIE_SESSION_SUFFIX}"
        cloned = httpx.Request(
            request.method,
            request.url,
            headers=headers,
            stream=request.stream,
            extensions=request.extensions,
        )
        return self._transport.handle_request(cloned)

    def close(self):
        self._transport.close()