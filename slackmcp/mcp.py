"""A small Model Context Protocol server speaking JSON-RPC over stdio or SSE."""

import json
import logging
import queue
import sys
import threading
import uuid
from dataclasses import dataclass, field
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

LATEST_PROTOCOL_VERSION = "2025-03-26"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-03-26", "2024-11-05")

_KEEPALIVE_SECONDS = 15.0


@dataclass
class Tool:
    """A callable tool: its handler takes the call's arguments and returns text."""

    name: str
    description: str
    handler: object
    properties: dict = field(default_factory=dict)
    required: tuple = ()


class _RpcError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


def _error(request_id, code, message):
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _tool_definition(tool):
    schema = {"type": "object", "properties": dict(tool.properties)}
    if tool.required:
        schema["required"] = list(tool.required)
    return {"name": tool.name, "description": tool.description, "inputSchema": schema}


class McpServer:
    """Dispatches MCP requests to registered tools."""

    def __init__(self, name, version):
        self.name = name
        self.version = version
        self.tools = {}

    def add_tool(self, tool):
        """Register a tool, replacing any tool of the same name."""
        self.tools[tool.name] = tool

    def handle_message(self, message, context=None):
        """Handle one JSON-RPC message; return the response, or None for notifications."""
        if not isinstance(message, dict):
            return _error(None, INVALID_REQUEST, "invalid request")
        if "method" not in message and ("result" in message or "error" in message):
            return None

        request_id = message.get("id")
        method = message.get("method")
        if message.get("jsonrpc") != "2.0" or not isinstance(method, str):
            return _error(request_id, INVALID_REQUEST, "invalid request")
        if "id" not in message:
            logger.debug("notification %s", method)
            return None

        handlers = {
            "initialize": self._initialize,
            "ping": lambda params, ctx: {},
            "logging/setLevel": lambda params, ctx: {},
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }
        handler = handlers.get(method)
        if handler is None:
            return _error(request_id, METHOD_NOT_FOUND, f"method {method!r} not found")

        params = message.get("params") or {}
        try:
            if not isinstance(params, dict):
                raise _RpcError(INVALID_PARAMS, "params must be an object")
            result = handler(params, context if context is not None else {})
        except _RpcError as exc:
            return _error(request_id, exc.code, exc.message)
        except Exception as exc:  # recovery: a failing tool must not take the server down
            logger.warning("request %s failed: %s", method, exc)
            return _error(request_id, INTERNAL_ERROR, str(exc))
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _initialize(self, params, context):
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": True}, "logging": {}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _list_tools(self, params, context):
        return {"tools": [_tool_definition(tool) for tool in self.tools.values()]}

    def _call_tool(self, params, context):
        name = params.get("name")
        tool = self.tools.get(name)
        if tool is None:
            raise _RpcError(INVALID_PARAMS, f"tool {name!r} not found")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise _RpcError(INVALID_PARAMS, "arguments must be an object")
        text = tool.handler(arguments)
        return {"content": [{"type": "text", "text": text}]}

    def serve_stdio(self, stdin=None, stdout=None):
        """Serve newline-delimited JSON-RPC until the input ends."""
        stdin = sys.stdin if stdin is None else stdin
        stdout = sys.stdout if stdout is None else stdout
        context = {}
        for line in stdin:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError:
                response = _error(None, PARSE_ERROR, "parse error")
            else:
                response = self.handle_message(message, context)
            if response is not None:
                stdout.write(json.dumps(response) + "\n")
                stdout.flush()


class SseServer:
    """Serves an McpServer over HTTP: GET /sse streams responses, POST /message submits requests."""

    def __init__(self, server, base_url="", context_func=None):
        self.server = server
        self.base_url = base_url.rstrip("/")
        self.context_func = context_func
        self._sessions = {}
        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._httpd = None

    def _endpoint(self, session_id):
        return f"{self.base_url}/message?sessionId={session_id}"

    def _open_session(self):
        session_id = str(uuid.uuid4())
        outbox = queue.Queue()
        with self._lock:
            self._sessions[session_id] = outbox
        return session_id, outbox

    def _close_session(self, session_id):
        with self._lock:
            self._sessions.pop(session_id, None)

    def _post_message(self, session_id, body, headers):
        with self._lock:
            outbox = self._sessions.get(session_id)
        if outbox is None:
            return HTTPStatus.BAD_REQUEST
        try:
            message = json.loads(body)
        except ValueError:
            return HTTPStatus.BAD_REQUEST
        context = {}
        if self.context_func is not None:
            context = self.context_func(context, headers)
        response = self.server.handle_message(message, context)
        if response is not None:
            outbox.put(response)
        return HTTPStatus.ACCEPTED

    def _shutdown(self):
        self._stopping.set()
        if self._httpd is not None:
            self._httpd.shutdown()

    def start(self, host, port):
        """Listen on host:port and serve until shut down."""
        sse = self

        class Handler(BaseHTTPRequestHandler):
            def _event(self, name, data):
                self.wfile.write(f"event: {name}\ndata: {data}\n\n".encode("utf-8"))
                self.wfile.flush()

            def do_GET(self):
                if urlsplit(self.path).path != "/sse":
                    self.send_error(HTTPStatus.NOT_FOUND)
                    return
                session_id, outbox = sse._open_session()
                self.send_response(HTTPStatus.OK)
                self.send_header("Content-Type", "text/event-stream")
                self.send_header("Cache-Control", "no-cache")
                self.send_header("Connection", "keep-alive")
                self.end_headers()
                try:
                    self._event("endpoint", sse._endpoint(session_id))
                    while not sse._stopping.is_set():
                        try:
                            message = outbox.get(timeout=_KEEPALIVE_SECONDS)
                        except queue.Empty:
                            self.wfile.write(b": ping\n\n")
                            self.wfile.flush()
                            continue
                        self._event("message", json.dumps(message))
                except (BrokenPipeError, ConnectionResetError):
                    logger.debug("SSE client %s disconnected", session_id)
                finally:
                    sse._close_session(session_id)

            def do_POST(self):
                parts = urlsplit(self.path)
                if parts.path != "/message":
                    self.send_error(HTTPStatus.NOT_FOUND)
                    return
                session_id = parse_qs(parts.query).get("sessionId", [""])[0]
                length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(length)
                status = sse._post_message(session_id, body, self.headers)
                self.send_response(status)
                self.send_header("Content-Length", "0")
                self.end_headers()

            def log_message(self, fmt, *args):
                logger.debug(fmt, *args)

        self._stopping.clear()
        self._httpd = ThreadingHTTPServer((host, port), Handler)
        self._httpd.daemon_threads = True
        try:
            self._httpd.serve_forever()
        finally:
            self._httpd.server_close()