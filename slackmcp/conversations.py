"""The conversations_history and conversations_replies tools."""

import csv
import io
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from .text import process_text

DAYS_PAGE_LIMIT = 100

_HEADER = ("UserID", "UserName", "RealName", "Channel", "ThreadTs", "Text", "Time", "Cursor")
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass
class Message:
    """One row of a message listing."""

    user_id: str
    user_name: str
    real_name: str
    channel: str
    thread_ts: str
    text: str
    time: str
    cursor: str = ""

    def as_row(self):
        return (
            self.user_id,
            self.user_name,
            self.real_name,
            self.channel,
            self.thread_ts,
            self.text,
            self.time,
            self.cursor,
        )


@dataclass
class _Params:
    channel: str
    limit: int
    oldest: str
    latest: str
    cursor: str
    activity: bool


def _get_string(arguments, key, default):
    value = arguments.get(key)
    return value if isinstance(value, str) else default


def _get_bool(arguments, key, default):
    value = arguments.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "t", "true"):
            return True
        if lowered in ("0", "f", "false"):
            return False
    return default


def get_user_info(user_id, users_map):
    """Return (user name, real name), falling back to the ID for unknown users."""
    user = users_map.get(user_id)
    if user is None:
        return user_id, user_id
    return user.get("name", ""), user.get("real_name", "")


def limit_by_numeric(limit):
    """Parse a message-count limit."""
    if not _INTEGER.fullmatch(limit):
        raise ValueError(f'invalid numeric limit: "{limit}"')
    return int(limit)


def limit_by_days(limit, now=None):
    """Parse a limit such as '3d'.

    Returns the page size, the oldest timestamp (local midnight of today
    minus days-1) and the latest timestamp (now), both as Slack timestamps.
    """
    days_text = limit[:-1] if limit.endswith("d") else limit
    if not _INTEGER.fullmatch(days_text) or int(days_text) <= 0:
        raise ValueError(
            f'invalid duration limit "{limit}": must be a positive integer with \'d\' suffix'
        )
    days = int(days_text)

    now = datetime.now() if now is None else now
    start_date = now.date() - timedelta(days=days - 1)
    oldest_time = datetime.combine(start_date, time.min, tzinfo=now.tzinfo)

    latest = f"{int(now.timestamp())}.000000"
    oldest = f"{int(oldest_time.timestamp())}.000000"
    return DAYS_PAGE_LIMIT, oldest, latest


class ConversationsHandler:
    """Serves message history and thread replies from a provider."""

    def __init__(self, provider):
        self.provider = provider

    def history(self, arguments):
        """Return channel history as CSV text."""
        params = self._parse_params(arguments)
        api = self.provider.provide()
        payload = api.get_conversation_history(
            params.channel,
            limit=params.limit,
            oldest=params.oldest,
            latest=params.latest,
            cursor=params.cursor,
            inclusive=False,
        )
        messages = self._convert(payload.get("messages") or [], params.channel, params.activity)
        if messages and payload.get("has_more"):
            metadata = payload.get("response_metadata") or {}
            messages[-1].cursor = metadata.get("next_cursor", "") or ""
        return self._to_csv(messages)

    def replies(self, arguments):
        """Return a thread's messages as CSV text."""
        params = self._parse_params(arguments)
        thread_ts = _get_string(arguments, "thread_ts", "")
        if not thread_ts:
            raise ValueError("thread_ts must be a string")

        api = self.provider.provide()
        replies, has_more, next_cursor = api.get_conversation_replies(
            params.channel,
            thread_ts,
            limit=params.limit,
            oldest=params.oldest,
            latest=params.latest,
            cursor=params.cursor,
            inclusive=False,
        )
        messages = self._convert(replies, params.channel, params.activity)
        if messages and has_more:
            messages[-1].cursor = next_cursor
        return self._to_csv(messages)

    def _convert(self, slack_messages, channel, include_activity):
        users = self.provider.users
        messages = []
        for msg in slack_messages:
            if msg.get("subtype") and not include_activity:
                continue
            user_id = msg.get("user", "")
            user_name, real_name = get_user_info(user_id, users)
            messages.append(
                Message(
                    user_id=user_id,
                    user_name=user_name,
                    real_name=real_name,
                    channel=channel,
                    thread_ts=msg.get("thread_ts", ""),
                    text=process_text(msg.get("text", "")),
                    time=msg.get("ts", ""),
                )
            )
        return messages

    @staticmethod
    def _to_csv(messages):
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(_HEADER)
        writer.writerows(m.as_row() for m in messages)
        return buffer.getvalue()

    def _parse_params(self, arguments):
        channel = _get_string(arguments, "channel_id", "")
        if not channel:
            raise ValueError("channel_id must be a string")

        limit = _get_string(arguments, "limit", "")
        cursor = _get_string(arguments, "cursor", "")
        activity = _get_bool(arguments, "include_activity_messages", False)

        page_limit, oldest, latest = 0, "", ""
        if limit.endswith("d"):
            page_limit, oldest, latest = limit_by_days(limit)
        elif not cursor:
            page_limit = limit_by_numeric(limit)

        if channel.startswith("#"):
            maps = self.provider.channels_maps()
            channel_id = maps.channels_inv.get(channel)
            if channel_id is None:
                raise ValueError(f'channel "{channel}" not found')
            channel = maps.channels[channel_id]["id"]

        return _Params(channel, page_limit, oldest, latest, cursor, activity)