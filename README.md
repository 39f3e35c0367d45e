# slackmcp

slackmcp is a Model Context Protocol (MCP) server for Slack. It gives MCP
clients three tools:

- `conversations_history` returns the messages in a channel. You can give the
  channel as an ID (`Cxxxxxxxxxx`) or as a name (`#general`). A name only
  resolves once the channel cache has been filled.
- `conversations_replies` returns the messages in a thread. You give it the
  channel and the thread's `thread_ts`.
- `channels_list` returns the channels of the types you ask for. The types are
  `mpim`, `im`, `public_channel` and `private_channel`, given as a
  comma-separated list. By default the list is sorted by member count
  (`sort=popularity`). `limit` must be less than 1000 and defaults to 100.

Every tool returns CSV text with a header row. If more results are available,
the last column of the last row holds a cursor. Pass that value back as
`cursor` to get the next page.

The message tools accept a `limit` in one of two forms:

- A number of days, such as `1d` or `30d`. The range runs from local midnight
  `N-1` days ago until now.
- A message count, such as `50`.

When you pass a `cursor`, you may leave `limit` empty. Activity messages such
as joins and leaves are left out unless `include_activity_messages` is true.

Links in message text are rewritten as `URL - text`. This applies to Slack
links, Markdown links and HTML links. Other markup characters are removed.

## Installation

```
pip install .
```

## Authentication

Set one of these in the environment:

- `SLACK_MCP_XOXP_TOKEN`: a user OAuth token.
- `SLACK_MCP_XOXC_TOKEN` and `SLACK_MCP_XOXD_TOKEN` together: a browser
  session token and its `d` cookie.

If neither is set, `slackmcp.provider.new_provider` raises
`AuthenticationError`, and the command exits with status 1.

With session tokens, these optional variables adjust the HTTP client:

- `SLACK_MCP_PROXY`: the proxy URL that requests go through.
- `SLACK_MCP_SERVER_CA`: a PEM file of extra trusted certificates.
- `SLACK_MCP_SERVER_CA_INSECURE`: turns off certificate verification. It cannot
  be combined with `SLACK_MCP_SERVER_CA`.

## Caches

At startup, users and channels are loaded in the background. They come from
`.users_cache.json` and `.channels_cache.json` when those files exist.
Otherwise they are fetched from Slack and written to those files.
`SLACK_MCP_USERS_CACHE` and `SLACK_MCP_CHANNELS_CACHE` change the file paths.

If the credentials are set to `demo`, the caches are not filled. If the caches
cannot be filled for any other reason, the process exits.

## Running

To serve over standard input and output, which is the default:

```
slack-mcp-server --transport stdio
```

To serve as a Server-Sent Events endpoint:

```
slack-mcp-server -t sse
```

The SSE server listens on `SLACK_MCP_HOST` (default `127.0.0.1`) and
`SLACK_MCP_PORT` (default `13080`). It works as follows:

- A client opens `GET /sse`.
- The server replies with an `endpoint` event naming `/message?sessionId=...`.
- The client posts JSON-RPC requests to that endpoint.
- Responses arrive on the event stream as `message` events.

The server handles these methods:

- `initialize`
- `ping`
- `logging/setLevel`
- `tools/list`
- `tools/call`

## Library use

```python
from slackmcp.provider import new_provider
from slackmcp.server import build_server

provider = new_provider()
server = build_server(provider)
server.serve_stdio()
```

`slackmcp.server.serve_sse(server, addr)` wraps a server in a
`slackmcp.mcp.SseServer`. Start it with `start(host, port)`.

`slackmcp.text.process_text` also works on its own. It flattens links and
strips markup from any text.

## Limitations

- All tools only read. Nothing posts, edits or reacts to messages.
- The SSE server copies each request's `Authorization` header into the request
  context, but it does not check the header. Any client that can reach the port
  can call the tools.