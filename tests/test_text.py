import pytest

from slackmcp.text import filter_special_chars, process_text


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "aaabbcc <https://google.com|This is a link> aabbcc",
            "aaabbcc https://google.com - This is a link, aabbcc",
        ),
        (
            "aaabbcc <https://google.com|This is a link>",
            "aaabbcc https://google.com - This is a link",
        ),
        (
            "aaabbcc <https://google.com|This is a link>   ",
            "aaabbcc https://google.com - This is a link",
        ),
        (
            "First <https://site1.com|Site One> then <https://site2.com|Site Two>",
            "First https://site1.com - Site One, then https://site2.com - Site Two",
        ),
        (
            "First <https://site1.com|Site One> then <https://site2.com|Site Two> done",
            "First https://site1.com - Site One, then https://site2.com - Site Two, done",
        ),
        (
            "Check this [Google](https://google.com)",
            "Check this https://google.com - Google",
        ),
        (
            "Check this [Google](https://google.com) out",
            "Check this https://google.com - Google, out",
        ),
    ],
)
def test_filter_special_chars_with_commas(text, expected):
    assert filter_special_chars(text) == expected


def test_html_link_is_flattened():
    text = '<a href="https://x.com">X</a> end'
    assert filter_special_chars(text) == "https://x.com - X, end"


def test_symbols_are_removed():
    assert filter_special_chars("Hello! *world*") == "Hello world"


def test_unicode_letters_are_kept():
    assert filter_special_chars("Привет, мир!") == "Привет, мир"


def test_bare_url_is_protected_from_cleaning():
    text = "see https://a.com/?q=1#frag!"
    assert filter_special_chars(text) == text


def test_whitespace_collapses():
    assert filter_special_chars("  a \n\n b\t c  ") == "a b c"


def test_process_text_matches_filter():
    text = "Check this [Google](https://google.com) out"
    assert process_text(text) == filter_special_chars(text)