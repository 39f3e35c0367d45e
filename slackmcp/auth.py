"""Carrying the caller's authorization value in a request context."""

import os

_AUTH_KEY = "auth"


def with_auth_key(context, auth):
    """Return a copy of the context holding the given auth value."""
    return {**context, _AUTH_KEY: auth}


def _header(headers, name):
    wanted = name.lower()
    return next((value for key, value in headers.items() if key.lower() == wanted), "")


def auth_from_request(context, headers):
    """Store the request's Authorization header in the context."""
    return with_auth_key(context, _header(headers, "Authorization"))


def auth_from_env(context, env=None):
    """Store SLACK_MCP_SSE_API_KEY from the environment in the context."""
    env = os.environ if env is None else env
    return with_auth_key(context, env.get("SLACK_MCP_SSE_API_KEY", ""))


def token_from_context(context):
    """Return the auth value held by the context."""
    auth = context.get(_AUTH_KEY)
    if not isinstance(auth, str):
        raise LookupError("missing auth")
    return auth