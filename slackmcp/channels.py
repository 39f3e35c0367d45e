"""The channels_list tool: list conversations as CSV."""

import csv
import io
import logging
from dataclasses import dataclass

import httpx

from .provider import ALL_CHAN_TYPES, PUB_CHAN_TYPE
from .slack import SlackError

logger = logging.getLogger(__name__)

MAX_LIMIT = 1000
DEFAULT_LIMIT = 100

_HEADER = ("ID", "Name", "Topic", "Purpose", "MemberCount", "Cursor")


@dataclass
class Channel:
    """One row of the channel listing."""

    id: str
    name: str
    topic: str
    purpose: str
    member_count: int
    cursor: str = ""

    def as_row(self):
        return (self.id, self.name, self.topic, self.purpose, str(self.member_count), self.cursor)


def _get_string(arguments, key, default):
    value = arguments.get(key)
    return value if isinstance(value, str) else default


def _get_int(arguments, key, default):
    value = arguments.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _to_csv(header, rows):
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _describe(channel, users):
    name = "#" + channel.get("name", "")
    purpose = (channel.get("purpose") or {}).get("value", "")
    member_count = channel.get("num_members", 0) or 0

    if channel.get("is_im"):
        member_count = 2
        user_id = channel.get("user", "")
        user = users.get(user_id)
        if user is not None:
            name = "@" + user.get("name", "")
            purpose = "DM " + user.get("real_name", "")
        else:
            name = "@" + user_id
            purpose = "DM with " + user_id
    elif channel.get("is_mpim") and channel.get("is_private") and member_count > 0:
        names = [
            users[user_id].get("real_name", "") if user_id in users else user_id
            for user_id in channel.get("members") or []
        ]
        name = "@" + channel.get("name_normalized", "")
        purpose = "Group DM with " + ", ".join(names)

    return Channel(
        id=channel.get("id", ""),
        name=name,
        topic=(channel.get("topic") or {}).get("value", ""),
        purpose=purpose,
        member_count=member_count,
    )


class ChannelsHandler:
    """Serves the channels_list tool from a provider."""

    def __init__(self, provider):
        self.provider = provider
        self.valid_types = frozenset(ALL_CHAN_TYPES)

    def handle(self, arguments):
        """Return the requested channels as CSV text."""
        sort_type = _get_string(arguments, "sort", "popularity")
        types = _get_string(arguments, "channel_types", PUB_CHAN_TYPE)
        channel_types = [t.strip() for t in types.split(",") if t.strip() in self.valid_types]

        cursor = _get_string(arguments, "cursor", "")
        limit = _get_int(arguments, "limit", 0) or DEFAULT_LIMIT
        if limit >= MAX_LIMIT:
            raise ValueError(f"limit must be less than {MAX_LIMIT}, got {limit}")

        api = self.provider.provide()

        channels = []
        remaining = limit
        page_cursor = cursor
        total = 0
        next_cursor = ""
        while True:
            try:
                page, next_cursor = api.get_conversations(
                    types=channel_types,
                    limit=remaining,
                    cursor=page_cursor,
                    exclude_archived=True,
                )
            except (SlackError, httpx.HTTPError) as exc:
                logger.warning("channels fetch failed: %s", exc)
                next_cursor = ""
                break

            users = self.provider.users
            channels.extend(_describe(channel, users) for channel in page)
            total += len(page)
            remaining -= len(page)

            if total >= limit:
                logger.info("channels fetch limit reached %s", total)
                break
            if not next_cursor:
                logger.info("channels fetch exhausted")
                break
            page_cursor = next_cursor

        if sort_type == "popularity":
            channels.sort(key=lambda c: c.member_count, reverse=True)

        if channels and next_cursor:
            channels[-1].cursor = next_cursor

        return _to_csv(_HEADER, (c.as_row() for c in channels))