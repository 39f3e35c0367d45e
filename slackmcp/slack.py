"""Minimal client for the Slack Web API methods the server relies on."""

import logging
import time

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://slack.com/api/"


class SlackError(Exception):
    """A Slack API call failed; ``retry_after`` is set when rate limited."""

    def __init__(self, message, retry_after=None):
        super().__init__(message)
        self.retry_after = retry_after


class SlackClient:
    """Calls Slack Web API methods over form-encoded POST requests."""

    def __init__(self, token, http_client=None, api_url=DEFAULT_API_URL):
        self.token = token
        self.api_url = api_url
        self._http = http_client if http_client is not None else httpx.Client(timeout=30.0)

    def _call(self, method, params=None):
        form = {"token": self.token}
        form.update({k: v for k, v in (params or {}).items() if v is not None})
        response = self._http.post(self.api_url + method, data=form)
        if response.status_code == 429:
            retry_after = float(response.headers.get("Retry-After", "1"))
            raise SlackError(f"slack rate limit exceeded, retry after {retry_after}s", retry_after)
        if response.status_code != 200:
            raise SlackError(f"slack server error: {response.status_code} {response.reason_phrase}")
        payload = response.json()
        if not payload.get("ok"):
            raise SlackError(payload.get("error", "unknown_error"))
        return payload

    @staticmethod
    def _next_cursor(payload):
        return (payload.get("response_metadata") or {}).get("next_cursor", "") or ""

    def auth_test(self):
        """Return the identity the token belongs to, including the team ``url``."""
        return self._call("auth.test")

    def get_users(self, limit=0):
        """Return every workspace member, following cursors and waiting out rate limits."""
        users = []
        cursor = None
        while True:
            try:
                page = self._call(
                    "users.list",
                    {"limit": str(limit) if limit else None, "cursor": cursor},
                )
            except SlackError as exc:
                if exc.retry_after is None:
                    raise
                logger.info("users.list rate limited, waiting %ss", exc.retry_after)
                time.sleep(exc.retry_after)
                continue
            users.extend(page.get("members") or [])
            cursor = self._next_cursor(page) or None
            if cursor is None:
                return users

    def get_conversations(self, types=(), limit=0, cursor="", exclude_archived=False):
        """Return one page of conversations and the cursor of the next page."""
        payload = self._call(
            "conversations.list",
            {
                "types": ",".join(types) if types else None,
                "limit": str(limit) if limit else None,
                "cursor": cursor or None,
                "exclude_archived": "true" if exclude_archived else None,
            },
        )
        return payload.get("channels") or [], self._next_cursor(payload)

    def get_conversation_history(
        self, channel_id, limit=0, oldest="", latest="", cursor="", inclusive=False
    ):
        """Return the raw history response for a channel."""
        return self._call(
            "conversations.history",
            {
                "channel": channel_id,
                "cursor": cursor or None,
                "inclusive": "1" if inclusive else "0",
                "latest": latest or None,
                "limit": str(limit) if limit else None,
                "oldest": oldest or None,
            },
        )

    def get_conversation_replies(
        self, channel_id, timestamp, limit=0, oldest="", latest="", cursor="", inclusive=False
    ):
        """Return (messages, has_more, next_cursor) for a thread."""
        payload = self._call(
            "conversations.replies",
            {
                "channel": channel_id,
                "ts": timestamp,
                "cursor": cursor or None,
                "inclusive": "1" if inclusive else "0",
                "latest": latest or None,
                "limit": str(limit) if limit else None,
                "oldest": oldest or None,
            },
        )
        return (
            payload.get("messages") or [],
            bool(payload.get("has_more")),
            self._next_cursor(payload),
        )