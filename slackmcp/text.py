"""Normalisation of Slack message text into plain, link-friendly prose."""

import re
import unicodedata

_SLACK_LINK = re.compile(r"<(https?://[^>|]+)\|([^>]+)>")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\((https?://[^)]+)\)")
_HTML_LINK = re.compile(r"<a[\t\n\f\r ]+href=[\"']([^\"']+)[\"'][^>]*>([^<]+)</a>")
_URL = re.compile(r"https?://[^\t\n\f\r <>\"{}|\\^`\[\]]+")
_SPACES = re.compile(r"[\t\n\f\r ]+")

_KEPT_CHARS = frozenset("0123456789\t\n\f\r .,-_:/?=&%")


def process_text(s):
    """Return message text with links flattened and stray symbols removed."""
    return filter_special_chars(s)


def _is_last(original, current):
    pos = current.rfind(original)
    if pos == -1:
        return False
    return current[pos + len(original):].strip() == ""


def _piped_link(match):
    whole, first, second = match.group(0, 1, 2)
    if "|" in whole:
        return first, second
    return second, first


def _html_link(match):
    return match.group(1), match.group(2)


def _flatten_links(text, pattern, extract):
    for match in list(pattern.finditer(text)):
        original = match.group(0)
        url, label = extract(match)
        replacement = f"{url} - {label}"
        if not _is_last(original, text):
            replacement += ","
        text = text.replace(original, replacement, 1)
    return text


def _placeholder(index):
    return f"___URL_PLACEHOLDER_{chr(48 + index)}___"


def _is_kept(ch):
    return ch in _KEPT_CHARS or unicodedata.category(ch)[0] in "LM"


def filter_special_chars(text):
    """Rewrite Slack, Markdown and HTML links as 'url - label' and drop symbols.

    Bare URLs are kept intact; every other character that is not a letter,
    mark, digit, whitespace or one of ``.,-_:/?=&%`` is removed, and runs of
    whitespace collapse to one space.
    """
    text = _flatten_links(text, _SLACK_LINK, _piped_link)
    text = _flatten_links(text, _MARKDOWN_LINK, _piped_link)
    text = _flatten_links(text, _HTML_LINK, _html_link)

    urls = _URL.findall(text)
    protected = text
    for index, url in enumerate(urls):
        protected = protected.replace(url, _placeholder(index), 1)

    cleaned = "".join(ch for ch in protected if _is_kept(ch))

    for index, url in enumerate(urls):
        cleaned = cleaned.replace(_placeholder(index), url, 1)

    return _SPACES.sub(" ", cleaned).strip()