"""Authenticated Slack access with cached users and channels."""

import json
import logging
import os
import ssl
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .slack import SlackClient, SlackError
from .transport import UserAgentTransport

logger = logging.getLogger(__name__)

ALL_CHAN_TYPES = ("mpim", "im", "public_channel", "private_channel")
PUB_CHAN_TYPE = "public_channel"

DEFAULT_USERS_CACHE = ".users_cache.json"
DEFAULT_CHANNELS_CACHE = ".channels_cache.json"

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)


class AuthenticationError(Exception):
    """No usable Slack credentials were configured."""


@dataclass
class ChannelsCache:
    """Channels by ID and channel IDs by '#name'."""

    channels: dict = field(default_factory=dict)
    channels_inv: dict = field(default_factory=dict)


def _read_cached_list(path):
    try:
        data = Path(path).read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        items = json.loads(data)
    except ValueError as exc:
        logger.warning("Failed to unmarshal %s: %s; will refetch", path, exc)
        return None
    if not isinstance(items, list):
        logger.warning("Failed to unmarshal %s: not a list; will refetch", path)
        return None
    return items


def _write_cached_list(path, items, what):
    try:
        Path(path).write_text(json.dumps(items, indent=2), encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Failed to write cache file %r: %s", path, exc)
    else:
        logger.info("Wrote %d %s to cache %r", len(items), what, path)


def _matches_type(channel_type, channel):
    if channel_type == "public_channel":
        return not channel.get("is_private", False)
    if channel_type == "private_channel":
        return bool(channel.get("is_private", False))
    if channel_type == "im":
        return bool(channel.get("is_im", False))
    if channel_type == "mpim":
        return bool(channel.get("is_mpim", False))
    return False


class ApiProvider:
    """Lazily boots a Slack client and keeps users and channels in memory."""

    def __init__(self, boot, users_cache=DEFAULT_USERS_CACHE, channels_cache=DEFAULT_CHANNELS_CACHE):
        self._boot = boot
        self._client = None
        self.users_cache = users_cache
        self.channels_cache = channels_cache
        self.users = {}
        self.channels = {}
        self.channels_inv = {}

    def provide(self):
        """Return the Slack client, authenticating on first use."""
        if self._client is None:
            self._client = self._boot()
        return self._client

    def refresh_users(self):
        """Load users from the cache file, or fetch them and write the cache."""
        cached = _read_cached_list(self.users_cache)
        if cached is not None:
            for user in cached:
                self.users[user["id"]] = user
            logger.info("Loaded %d users from cache %r", len(cached), self.users_cache)
            return

        try:
            users = self.provide().get_users(limit=1000)
        except (SlackError, httpx.HTTPError) as exc:
            logger.error("Failed to fetch users: %s", exc)
            raise

        for user in users:
            self.users[user["id"]] = user
        _write_cached_list(self.users_cache, users, "users")

    def refresh_channels(self):
        """Load channels from the cache file, or fetch them and write the cache."""
        cached = _read_cached_list(self.channels_cache)
        if cached is not None:
            for channel in cached:
                self.channels[channel["id"]] = channel
            logger.info("Loaded %d channels from cache %r", len(cached), self.channels_cache)
            return

        channels = self.get_channels(list(ALL_CHAN_TYPES))
        _write_cached_list(self.channels_cache, channels, "channels")

    def get_channels(self, channel_types=None):
        """Fetch all conversations, then return those of the given types."""
        if not channel_types:
            channel_types = list(ALL_CHAN_TYPES)

        client = self.provide()
        limit = 999
        cursor = ""
        while True:
            try:
                page, next_cursor = client.get_conversations(
                    types=list(ALL_CHAN_TYPES),
                    limit=limit,
                    cursor=cursor,
                    exclude_archived=True,
                )
            except (SlackError, httpx.HTTPError) as exc:
                logger.warning("channels fetch stopped: %s", exc)
                break

            for channel in page:
                self.channels[channel["id"]] = channel
                self.channels_inv["#" + channel.get("name", "")] = channel["id"]
            limit -= len(page)

            if not next_cursor:
                logger.info("channels fetch exhausted")
                break
            cursor = next_cursor

        return [
            channel
            for channel_type in channel_types
            for channel in self.channels.values()
            if _matches_type(channel_type, channel)
        ]

    def channels_maps(self):
        """Return the live channel maps."""
        return ChannelsCache(channels=self.channels, channels_inv=self.channels_inv)


def build_http_client(cookie, env=None):
    """Build an HTTP client for session-token access, honouring proxy and CA settings."""
    env = os.environ if env is None else env

    proxy_url = env.get("SLACK_MCP_PROXY", "")
    proxy = httpx.Proxy(proxy_url) if proxy_url else None

    context = ssl.create_default_context()
    ca_file = env.get("SLACK_MCP_SERVER_CA", "")
    if ca_file:
        pem = Path(ca_file).read_text(encoding="utf-8", errors="replace")
        try:
            context.load_verify_locations(cadata=pem)
        except (ssl.SSLError, ValueError):
            logger.warning("No certs appended, using system certs only")

    if env.get("SLACK_MCP_SERVER_CA_INSECURE", ""):
        if ca_file:
            raise ValueError(
                "Variable SLACK_MCP_SERVER_CA is at the same time with SLACK_MCP_SERVER_CA_INSECURE"
            )
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    inner = httpx.HTTPTransport(verify=context, proxy=proxy)
    return httpx.Client(
        transport=UserAgentTransport(inner, BROWSER_USER_AGENT, cookie),
        timeout=30.0,
    )


def new_provider(env=None):
    """Create a provider from SLACK_MCP_* environment variables."""
    env = os.environ if env is None else env
    users_cache = env.get("SLACK_MCP_USERS_CACHE", "") or DEFAULT_USERS_CACHE
    channels_cache = env.get("SLACK_MCP_CHANNELS_CACHE", "") or DEFAULT_CHANNELS_CACHE

    xoxp = env.get("SLACK_MCP_XOXP_TOKEN", "")
    if xoxp:
        def boot():
            client = SlackClient(xoxp)
            logger.info("Authenticated as: %s", client.auth_test())
            return client

        return ApiProvider(boot, users_cache, channels_cache)

    xoxc = env.get("SLACK_MCP_XOXC_TOKEN", "")
    xoxd = env.get("SLACK_MCP_XOXD_TOKEN", "")
    if not xoxc or not xoxd:
        raise AuthenticationError(
            "Authentication required: Either SLACK_MCP_XOXP_TOKEN (User OAuth) or both "
            "SLACK_MCP_XOXC_TOKEN and SLACK_MCP_XOXD_TOKEN (session-based) environment "
            "variables must be provided"
        )

    def boot():
        http = build_http_client(xoxd, env)
        identity = SlackClient(xoxc, http_client=http).auth_test()
        logger.info("Authenticated as: %s", identity)
        return SlackClient(xoxc, http_client=http, api_url=identity["url"] + "api/")

    return ApiProvider(boot, users_cache, channels_cache)