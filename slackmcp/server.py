"""The Slack MCP server: tool definitions wired to their handlers."""

from .auth import auth_from_request
from .channels import ChannelsHandler
from .conversations import ConversationsHandler
from .mcp import McpServer, SseServer, Tool

SERVER_NAME = "Slack MCP Server"
SERVER_VERSION = "1.1.15"

BINARY_NAME = "slack-mcp-server"
VERSION = "0.0.0"
COMMIT_HASH = "unknown"
BUILD_TIME = "1970-01-01T00:00:00Z"

_CHANNEL_ID = {
    "type": "string",
    "description": "ID of the channel in format Cxxxxxxxxxx or its name starting with #... aka #general.",
}
_ACTIVITY = {
    "type": "boolean",
    "description": (
        "If true, the response will include activity messages such as 'channel_join' or "
        "'channel_leave'. Default is boolean false."
    ),
    "default": False,
}
_CURSOR = {
    "type": "string",
    "description": (
        "Cursor for pagination. Use the value of the last row and column in the response "
        "as next_cursor field returned from the previous request."
    ),
}
_MESSAGE_LIMIT = {
    "type": "string",
    "default": "1d",
    "description": (
        "Limit of messages to fetch in format of maximum ranges of time (e.g. 1d - 1 day, "
        "30d - 30 days, 90d - 90 days which is a default limit for free tier history) or "
        "number of messages (e.g. 50). Must be empty when 'cursor' is provided."
    ),
}
_THREAD_TS = {
    "type": "string",
    "description": (
        "Unique identifier of either a thread’s parent message or a message in the thread. "
        "ts must be the timestamp in format 1234567890.123456 of an existing message with "
        "0 or more replies."
    ),
}


def build_server(provider):
    """Create the MCP server with the conversation and channel tools."""
    server = McpServer(SERVER_NAME, SERVER_VERSION)

    conversations = ConversationsHandler(provider)
    server.add_tool(
        Tool(
            name="conversations_history",
            description=(
                "Get messages from the channel by channel_id, the last row/column in the "
                "response is used as 'cursor' parameter for pagination if not empty"
            ),
            handler=conversations.history,
            properties={
                "channel_id": dict(_CHANNEL_ID),
                "include_activity_messages": dict(_ACTIVITY),
                "cursor": dict(_CURSOR),
                "limit": dict(_MESSAGE_LIMIT),
            },
            required=("channel_id",),
        )
    )
    server.add_tool(
        Tool(
            name="conversations_replies",
            description=(
                "Get a thread of messages posted to a conversation by channelID and thread_ts, "
                "the last row/column in the response is used as 'cursor' parameter for "
                "pagination if not empty"
            ),
            handler=conversations.replies,
            properties={
                "channel_id": dict(_CHANNEL_ID),
                "thread_ts": dict(_THREAD_TS),
                "include_activity_messages": dict(_ACTIVITY),
                "cursor": dict(_CURSOR),
                "limit": dict(_MESSAGE_LIMIT),
            },
            required=("channel_id", "thread_ts"),
        )
    )

    channels = ChannelsHandler(provider)
    server.add_tool(
        Tool(
            name="channels_list",
            description="Get list of channels",
            handler=channels.handle,
            properties={
                "channel_types": {
                    "type": "string",
                    "description": (
                        "Comma-separated channel types. Allowed values: 'mpim', 'im', "
                        "'public_channel', 'private_channel'. Example: "
                        "'public_channel,private_channel,im'"
                    ),
                },
                "sort": {
                    "type": "string",
                    "description": (
                        "Type of sorting. Allowed values: 'popularity' - sort by number of "
                        "members/participants in each channel."
                    ),
                },
                "limit": {
                    "type": "number",
                    "default": 100,
                    "description": (
                        "The maximum number of items to return. Must be an integer between 1 "
                        "and 1000 (maximum 999)."
                    ),
                },
                "cursor": dict(_CURSOR),
            },
            required=("channel_types",),
        )
    )
    return server


def serve_sse(server, addr):
    """Wrap the server for SSE, taking each request's Authorization header into its context."""
    return SseServer(server, base_url=f"http://{addr}", context_func=auth_from_request)